from supabase import Client
from app.modules.notifications.schemas import NotificationResponse
from app.modules.users.service import UserService
from typing import List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_for_user(self, user_id: str, limit: int = 20) -> List[NotificationResponse]:
        """The user's notifications, newest first, with actor, group and post resolved"""
        try:
            result = self.supabase.table("notifications")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .execute()
        except Exception as e:
            logger.error(f"Error listing notifications for user {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Server error")

        rows = result.data or []
        if not rows:
            return []

        actors = UserService(self.supabase).get_summaries(r.get("from_user_id") for r in rows)
        group_names = self._lookup(
            "groups", "id, name", {r["group_id"] for r in rows if r.get("group_id")}, "name"
        )
        captions = self._lookup(
            "posts", "id, caption", {r["post_id"] for r in rows if r.get("post_id")}, "caption"
        )
        return [
            NotificationResponse(
                **row,
                from_user=actors.get(row.get("from_user_id")),
                group_name=group_names.get(row.get("group_id")),
                post_caption=captions.get(row.get("post_id")),
            )
            for row in rows
        ]

    def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification of the user as read"""
        try:
            result = self.supabase.table("notifications")\
                .update({"read": True})\
                .eq("user_id", user_id)\
                .eq("read", False)\
                .execute()
        except Exception as e:
            logger.error(f"Error marking notifications read for user {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Server error")
        return len(result.data or [])

    def _lookup(self, table: str, columns: str, ids: set, field: str) -> dict:
        if not ids:
            return {}
        result = self.supabase.table(table)\
            .select(columns)\
            .in_("id", list(ids))\
            .execute()
        return {row["id"]: row.get(field) for row in result.data or []}

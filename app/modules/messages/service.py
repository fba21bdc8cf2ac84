from supabase import Client
from app.modules.messages.schemas import MessageResponse
from app.core.errors import NotAuthorized, NotFound, ValidationError
from app.config import settings
from typing import List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_messages(self, group_id: str) -> List[MessageResponse]:
        """Group chat history, oldest first"""
        result = self.supabase.table("group_messages")\
            .select("*")\
            .eq("group_id", group_id)\
            .order("created_at")\
            .execute()
        return [MessageResponse(**m) for m in result.data or []]

    def send_message(self, group_id: str, sender: dict, text: str) -> MessageResponse:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Message text is required")
        if len(text) > settings.message_max_length:
            raise ValidationError(f"Message too long (max {settings.message_max_length} characters)")

        result = self.supabase.table("group_messages").insert({
            "group_id": group_id,
            "sender_id": sender["id"],
            "sender_name": sender.get("username") or "Unknown User",
            "sender_avatar_url": sender.get("profile_picture") or "",
            "text": text,
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to send message")
        return MessageResponse(**result.data[0])

    def delete_message(self, group: dict, message_id: str, user_id: str) -> None:
        """Only the sender or the group admin may delete a message"""
        result = self.supabase.table("group_messages")\
            .select("*")\
            .eq("id", message_id)\
            .eq("group_id", group["id"])\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise NotFound("Message not found")
        if result.data["sender_id"] != user_id and group.get("admin_id") != user_id:
            raise NotAuthorized("Not authorized to delete this message")

        self.supabase.table("group_messages")\
            .delete()\
            .eq("id", message_id)\
            .execute()
        logger.info("Message %s deleted from group %s by %s", message_id, group["id"], user_id)

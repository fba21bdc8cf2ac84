from supabase import Client
from app.modules.users.schemas import (
    UserUpdate, UserResponse, UserSummary, UserProfileResponse, PhoneLookupResponse
)
from app.core.errors import AppError, NotFound, ValidationError
from app.database.supabase_client import is_unique_violation
from typing import Dict, Iterable, List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = "id, username, profile_picture"


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_user_by_id(self, user_id: str) -> dict:
        """Get raw profile row by ID"""
        try:
            result = self.supabase.table("user_profiles")\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise NotFound("User not found")

            return result.data
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error getting user {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_summaries(self, user_ids: Iterable[str]) -> Dict[str, UserSummary]:
        """Resolve user ids to display summaries; unknown ids are left out."""
        ids = list(dict.fromkeys(i for i in user_ids if i))
        if not ids:
            return {}
        result = self.supabase.table("user_profiles")\
            .select(SUMMARY_COLUMNS)\
            .in_("id", ids)\
            .execute()
        return {row["id"]: UserSummary(**row) for row in result.data or []}

    def get_profile(self, user_id: str) -> UserProfileResponse:
        """Profile with the user's posts, newest first"""
        user = self.get_user_by_id(user_id)
        try:
            posts_result = self.supabase.table("posts")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading posts for user {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail="Failed to fetch profile")

        posts = posts_result.data or []
        return UserProfileResponse(
            user=UserResponse(**user),
            posts=posts,
            group_count=len(user.get("groups") or []),
            post_count=len(posts),
        )

    def get_user_by_phone(self, phone_number: str) -> PhoneLookupResponse:
        result = self.supabase.table("user_profiles")\
            .select("id")\
            .eq("phone_number", phone_number)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise NotFound("User not found")
        return PhoneLookupResponse(id=result.data["id"])

    def search(self, query: str, limit: int = 20) -> List[UserSummary]:
        """Case-insensitive username substring search"""
        query = (query or "").strip()
        if not query:
            return []
        # % and _ are wildcards for ilike
        escaped = query.replace("%", r"\%").replace("_", r"\_")
        result = self.supabase.table("user_profiles")\
            .select(SUMMARY_COLUMNS)\
            .ilike("username", f"%{escaped}%")\
            .order("username")\
            .limit(limit)\
            .execute()
        return [UserSummary(**row) for row in result.data or []]

    def update_user(self, user_id: str, user_data: UserUpdate) -> UserResponse:
        """Update profile fields that were supplied"""
        update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
        if user_data.username is not None:
            update_data["username"] = user_data.username.strip()
        if user_data.bio is not None:
            update_data["bio"] = user_data.bio
        if user_data.dob is not None:
            update_data["dob"] = user_data.dob.isoformat()
        if user_data.profile_picture is not None:
            update_data["profile_picture"] = user_data.profile_picture

        try:
            result = self.supabase.table("user_profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            if is_unique_violation(e):
                raise ValidationError("Username already taken")
            logger.error(f"Error updating user {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data:
            raise NotFound("User not found")
        return UserResponse(**result.data[0])

    def set_fcm_token(self, user_id: str, fcm_token: Optional[str]) -> None:
        """Register (or clear, with None) the user's push-delivery token"""
        self.supabase.table("user_profiles")\
            .update({"fcm_token": fcm_token})\
            .eq("id", user_id)\
            .execute()
        logger.info("FCM token %s for user %s", "saved" if fcm_token else "removed", user_id)

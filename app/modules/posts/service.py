from supabase import Client
from app.modules.posts.models import MediaType, TOGGLE_LIKE_FUNCTION, APPEND_COMMENT_FUNCTION
from app.modules.posts.schemas import PostResponse, CommentResponse, LikeResponse
from app.modules.users.service import UserService
from app.core.errors import AppError, NotFound, ValidationError
from typing import List
from datetime import datetime, timezone
from fastapi import HTTPException
import logging
import uuid

logger = logging.getLogger(__name__)


class PostService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_post(self, user_id: str, group_id: str, caption: str, media_url: str, media_type: MediaType) -> dict:
        """Create a post; media must already be uploaded"""
        if not media_url or not group_id:
            raise ValidationError("Missing mediaUrl or groupId")
        try:
            result = self.supabase.table("posts").insert({
                "user_id": user_id,
                "group_id": group_id,
                "caption": caption or "",
                "media_url": media_url,
                "media_type": MediaType(media_type).value,
                "likes": [],
                "comments": [],
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create post")
            return result.data[0]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating post: {str(e)}")
            raise HTTPException(status_code=500, detail="Server error during post creation")

    def get_post(self, post_id: str) -> dict:
        try:
            result = self.supabase.table("posts")\
                .select("*")\
                .eq("id", post_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise NotFound("Post not found")
            return result.data
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error getting post {post_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_posts(self, group_ids: List[str], limit: int = 20, offset: int = 0) -> List[PostResponse]:
        """Posts in the given groups, newest first"""
        if not group_ids:
            return []
        try:
            result = self.supabase.table("posts")\
                .select("*")\
                .in_("group_id", group_ids)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
        except Exception as e:
            logger.error(f"Error listing posts: {str(e)}")
            raise HTTPException(status_code=500, detail="Server error")
        return self.to_responses(result.data or [])

    def toggle_like(self, post: dict, user_id: str) -> LikeResponse:
        """Like if not yet liked, otherwise unlike; decided by the database row, not the snapshot"""
        row = self._call(TOGGLE_LIKE_FUNCTION, {"p_post_id": post["id"], "p_user_id": user_id})
        likes = row.get("likes") or []
        return LikeResponse(liked=user_id in likes, likes=likes)

    def add_comment(self, post: dict, user_id: str, text: str) -> CommentResponse:
        """Append a comment to the post"""
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment text missing")
        comment = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "text": text,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        self._call(APPEND_COMMENT_FUNCTION, {"p_post_id": post["id"], "p_comment": comment})
        author = UserService(self.supabase).get_summaries([user_id]).get(user_id)
        return CommentResponse(**comment, user=author)

    def _call(self, function: str, params: dict) -> dict:
        """Run one of the posts array functions and return the updated row"""
        try:
            result = self.supabase.rpc(function, params).execute()
        except Exception as e:
            logger.error(f"Error calling {function} for post {params['p_post_id']}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))
        data = result.data
        if isinstance(data, list):
            data = data[0] if data else None
        if not data:
            raise NotFound("Post not found")
        return data

    def to_responses(self, posts: List[dict]) -> List[PostResponse]:
        user_ids = []
        for post in posts:
            user_ids.append(post["user_id"])
            user_ids.extend(c.get("user_id") for c in post.get("comments") or [])
        profiles = UserService(self.supabase).get_summaries(user_ids)
        responses = []
        for post in posts:
            comments = [
                CommentResponse(**c, user=profiles.get(c.get("user_id")))
                for c in post.get("comments") or []
            ]
            responses.append(PostResponse(
                **{**post, "comments": comments},
                user=profiles.get(post["user_id"]),
            ))
        return responses

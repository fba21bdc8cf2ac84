"""
Notification fan-out for new posts and comments.

Fan-out runs after the post or comment is committed, as a background task
scheduled by the route. Nothing raised here ever reaches the caller: each
recipient's notification row is written under its own error boundary, push
delivery is a single best-effort attempt, and whatever escapes is logged and
dropped. Rows that were written stay written.
"""
import logging
from typing import List, Optional

from supabase import Client

from app.modules.notifications.models import NotificationType
from app.modules.notifications.push import FirebasePushSender

logger = logging.getLogger(__name__)

MESSAGE_PREVIEW_LENGTH = 100
ELLIPSIS = "..."


def truncate_message(text: str, limit: int = MESSAGE_PREVIEW_LENGTH) -> str:
    """Cut text longer than limit to limit characters plus an ellipsis."""
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


class NotificationFanout:
    def __init__(self, supabase: Client, push_sender: Optional[FirebasePushSender] = None):
        self.supabase = supabase
        self.push_sender = push_sender

    def notify_new_post(self, group_id: str, post_id: str, author_id: str, caption: str = "") -> int:
        """Notify every group member except the author. Returns rows written."""
        try:
            return self._fan_out_new_post(group_id, post_id, author_id, caption)
        except Exception:
            logger.exception("New-post fan-out failed for post %s in group %s", post_id, group_id)
            return 0

    def notify_comment(
        self,
        post_id: str,
        post_author_id: str,
        commenter_id: str,
        commenter_name: str,
        text: str,
    ) -> int:
        """Notify the post's author about a comment by someone else. Returns rows written."""
        if commenter_id == post_author_id:
            return 0
        try:
            return self._fan_out_comment(post_id, post_author_id, commenter_id, commenter_name, text)
        except Exception:
            logger.exception("Comment fan-out failed for post %s", post_id)
            return 0

    def _fan_out_new_post(self, group_id: str, post_id: str, author_id: str, caption: str) -> int:
        result = self.supabase.table("groups")\
            .select("id, name, members")\
            .eq("id", group_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            logger.warning("Group %s not found; skipping new-post fan-out", group_id)
            return 0
        group = result.data

        recipients = [m for m in dict.fromkeys(group.get("members") or []) if m != author_id]
        if not recipients:
            logger.info("No group members to notify for post %s", post_id)
            return 0

        group_name = group.get("name") or "Your group"
        message = f"New post in {group_name}: {caption or 'Check it out!'}"
        created = 0
        for recipient_id in recipients:
            if self._create_notification({
                "user_id": recipient_id,
                "type": NotificationType.NEW_POST.value,
                "group_id": group_id,
                "post_id": post_id,
                "from_user_id": author_id,
                "message": message,
            }):
                created += 1
        logger.info("Created %d/%d new_post notifications for post %s", created, len(recipients), post_id)

        try:
            tokens = self._push_tokens(recipients)
            if not tokens:
                logger.info("No push tokens registered for recipients of post %s", post_id)
                return created
            if self.push_sender is None:
                logger.info("Push disabled; skipped %d device(s) for post %s", len(tokens), post_id)
                return created
            self.push_sender.send_multicast(
                tokens,
                title=f"New post in {group_name}",
                body=caption or "Someone shared a new post",
                data={
                    "type": "group_post",
                    "groupId": group_id,
                    "groupName": group_name,
                    "postId": post_id,
                },
            )
        except Exception:
            logger.exception("Push delivery failed for post %s", post_id)
        return created

    def _fan_out_comment(
        self,
        post_id: str,
        post_author_id: str,
        commenter_id: str,
        commenter_name: str,
        text: str,
    ) -> int:
        result = self.supabase.table("user_profiles")\
            .select("id, fcm_token")\
            .eq("id", post_author_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            logger.warning("Post author %s not found; skipping comment fan-out", post_author_id)
            return 0
        author = result.data

        preview = truncate_message(text)
        created = int(self._create_notification({
            "user_id": post_author_id,
            "type": NotificationType.COMMENT.value,
            "post_id": post_id,
            "from_user_id": commenter_id,
            "message": preview,
        }))

        token = author.get("fcm_token")
        if not token:
            logger.info("Post author %s has no push token", post_author_id)
            return created
        if self.push_sender is None:
            return created
        try:
            self.push_sender.send(
                token,
                title="New comment on your post",
                body=f"{commenter_name}: {preview}",
                data={"type": "post_comment", "postId": post_id},
            )
        except Exception:
            logger.exception("Push delivery failed for comment on post %s", post_id)
        return created

    def _create_notification(self, row: dict) -> bool:
        try:
            result = self.supabase.table("notifications").insert({**row, "read": False}).execute()
            return bool(result.data)
        except Exception:
            logger.exception("Failed to create %s notification for user %s", row["type"], row["user_id"])
            return False

    def _push_tokens(self, user_ids: List[str]) -> List[str]:
        result = self.supabase.table("user_profiles")\
            .select("id, fcm_token")\
            .in_("id", user_ids)\
            .execute()
        return list(dict.fromkeys(row["fcm_token"] for row in result.data or [] if row.get("fcm_token")))

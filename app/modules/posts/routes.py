from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.groups.routes import get_group_service
from app.modules.groups.service import GroupService
from app.modules.notifications.fanout import NotificationFanout
from app.modules.notifications.push import FirebasePushSender, get_push_sender
from app.modules.posts.models import MediaType
from app.modules.posts.schemas import PostResponse, CommentCreate, CommentResponse, LikeResponse
from app.modules.posts.service import PostService
from app.modules.posts.storage import MediaStorage, get_media_storage
from app.core.dependencies import get_current_user, check_group_member
from app.core.errors import ValidationError
from supabase import Client
from typing import List, Dict, Optional
import logging
import time

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])


def get_post_service(supabase: Client = Depends(get_supabase)) -> PostService:
    return PostService(supabase)


def get_notification_fanout(
    supabase: Client = Depends(get_service_supabase),
    push_sender: Optional[FirebasePushSender] = Depends(get_push_sender)
) -> NotificationFanout:
    return NotificationFanout(supabase, push_sender)


@router.post("", response_model=PostResponse, status_code=201)
async def create_post(
    background_tasks: BackgroundTasks,
    group_id: str = Form(""),
    caption: str = Form(""),
    media: Optional[UploadFile] = File(None),
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    group_service: GroupService = Depends(get_group_service),
    storage: MediaStorage = Depends(get_media_storage),
    fanout: NotificationFanout = Depends(get_notification_fanout)
):
    """
    Upload media, create the post and notify the group.
    Notification fan-out runs after the response and never affects it.
    """
    if media is None:
        raise ValidationError("No file uploaded")
    if not group_id:
        raise ValidationError("Missing groupId")
    content_type = media.content_type or ""
    if not content_type.startswith(("image/", "video/")):
        raise ValidationError("Media must be an image or a video")

    group = group_service.get_group(group_id)
    check_group_member(group, current_user)

    user_id = current_user["id"]
    key = f"posts/{user_id}/{int(time.time() * 1000)}.{content_type.split('/')[1]}"
    media_url = storage.upload_file(await media.read(), key, content_type)
    media_type = MediaType.VIDEO if content_type.startswith("video/") else MediaType.IMAGE

    post = service.create_post(user_id, group_id, caption, media_url, media_type)
    background_tasks.add_task(
        fanout.notify_new_post,
        group_id=group_id,
        post_id=post["id"],
        author_id=user_id,
        caption=caption,
    )
    logger.info("Post %s created in group %s; fan-out scheduled", post["id"], group_id)
    return service.to_responses([post])[0]


@router.get("", response_model=List[PostResponse])
async def list_posts(
    group_id: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    group_service: GroupService = Depends(get_group_service)
):
    """Posts from one group, or from all of the caller's groups"""
    if group_id:
        group = group_service.get_group(group_id)
        check_group_member(group, current_user)
        group_ids = [group_id]
    else:
        group_ids = current_user.get("groups") or []
    return service.list_posts(group_ids, limit=min(max(limit, 1), 100), offset=max(offset, 0))


@router.post("/{post_id}/like", response_model=LikeResponse)
async def toggle_like(
    post_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    group_service: GroupService = Depends(get_group_service)
):
    """Like or unlike a post"""
    post = service.get_post(post_id)
    check_group_member(group_service.get_group(post["group_id"]), current_user)
    return service.toggle_like(post, current_user["id"])


@router.post("/{post_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    post_id: str,
    body: CommentCreate,
    background_tasks: BackgroundTasks,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
    group_service: GroupService = Depends(get_group_service),
    fanout: NotificationFanout = Depends(get_notification_fanout)
):
    """Comment on a post and notify its author"""
    post = service.get_post(post_id)
    check_group_member(group_service.get_group(post["group_id"]), current_user)
    comment = service.add_comment(post, current_user["id"], body.text)
    background_tasks.add_task(
        fanout.notify_comment,
        post_id=post_id,
        post_author_id=post["user_id"],
        commenter_id=current_user["id"],
        commenter_name=current_user.get("username") or "Someone",
        text=comment.text,
    )
    return comment

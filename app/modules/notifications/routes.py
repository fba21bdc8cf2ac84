from fastapi import APIRouter, Depends
from app.config import settings
from app.database.supabase_client import get_supabase
from app.modules.notifications.schemas import NotificationResponse, MarkReadResponse
from app.modules.notifications.service import NotificationService
from app.core.dependencies import get_current_user
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(supabase: Client = Depends(get_supabase)) -> NotificationService:
    return NotificationService(supabase)


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    """The caller's most recent notifications"""
    return service.list_for_user(current_user["id"], limit=settings.notifications_page_size)


@router.put("/mark-read", response_model=MarkReadResponse)
async def mark_read(
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    """Mark all of the caller's unread notifications as read"""
    updated = service.mark_all_read(current_user["id"])
    return MarkReadResponse(message="Notifications marked as read", updated=updated)

from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.modules.notifications.models import NotificationType
from app.modules.users.schemas import UserSummary


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: NotificationType
    post_id: Optional[str] = None
    group_id: Optional[str] = None
    from_user_id: Optional[str] = None
    from_user: Optional[UserSummary] = None
    group_name: Optional[str] = None
    post_caption: Optional[str] = None
    message: str
    read: bool = False
    created_at: datetime

    class Config:
        from_attributes = True


class MarkReadResponse(BaseModel):
    message: str
    updated: int

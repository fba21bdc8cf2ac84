from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from app.modules.posts.models import MediaType
from app.modules.users.schemas import UserSummary


class CommentCreate(BaseModel):
    text: str = ""


class CommentResponse(BaseModel):
    id: str
    user_id: str
    user: Optional[UserSummary] = None
    text: str
    created_at: datetime


class PostResponse(BaseModel):
    id: str
    user_id: str
    user: Optional[UserSummary] = None
    group_id: str
    caption: Optional[str] = ""
    media_url: str
    media_type: MediaType
    likes: List[str] = []
    comments: List[CommentResponse] = []
    created_at: datetime


class LikeResponse(BaseModel):
    liked: bool
    likes: List[str]

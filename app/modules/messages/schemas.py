from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class MessageCreate(BaseModel):
    text: str = ""


class MessageResponse(BaseModel):
    id: str
    group_id: str
    sender_id: str
    sender_name: str
    sender_avatar_url: Optional[str] = ""
    text: str
    created_at: datetime

    class Config:
        from_attributes = True

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.modules.users.schemas import UserSummary


class GroupCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = ""
    member_ids: List[str] = []


class GroupUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    member_ids: Optional[List[str]] = None


class GroupResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = ""
    admin_id: str
    members: List[str]
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupDetailResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = ""
    admin: Optional[UserSummary] = None
    members: List[UserSummary]
    created_at: datetime
    updated_at: Optional[datetime] = None


class GroupMembersAdd(BaseModel):
    member_ids: List[str] = []


class GroupJoinRequest(BaseModel):
    token: str


class GroupJoinResponse(BaseModel):
    group_id: str
    name: str


class GroupInviteRequest(BaseModel):
    phone_numbers: List[str] = []


class GroupInviteResponse(BaseModel):
    invite_link: str
    sent: List[str] = []
    failed: List[str] = []

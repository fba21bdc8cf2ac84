from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime


class UserSummary(BaseModel):
    id: str
    username: str
    profile_picture: Optional[str] = ""

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    id: str
    username: str
    phone_number: str
    dob: Optional[date] = None
    bio: Optional[str] = ""
    profile_picture: Optional[str] = ""
    groups: List[str] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=1)
    bio: Optional[str] = None
    dob: Optional[date] = None
    profile_picture: Optional[str] = None


class UserProfileResponse(BaseModel):
    user: UserResponse
    posts: List[dict]
    group_count: int
    post_count: int


class PhoneLookupResponse(BaseModel):
    id: str


class FcmTokenRequest(BaseModel):
    fcm_token: Optional[str] = None

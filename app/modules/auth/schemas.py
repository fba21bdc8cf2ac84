from pydantic import BaseModel
from typing import Optional
from datetime import date

from app.modules.users.schemas import UserResponse


class RegisterOrLoginRequest(BaseModel):
    id_token: str
    username: Optional[str] = None
    dob: Optional[date] = None


class RegisterOrLoginResponse(BaseModel):
    user: UserResponse
    created: bool


class PhoneExistsResponse(BaseModel):
    exists: bool

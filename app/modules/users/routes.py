from fastapi import APIRouter, Depends, File, Form, UploadFile
from app.database.supabase_client import get_supabase
from app.modules.posts.storage import MediaStorage, get_optional_media_storage
from app.modules.users.schemas import (
    UserUpdate, UserResponse, UserSummary, UserProfileResponse,
    PhoneLookupResponse, FcmTokenRequest
)
from app.modules.users.service import UserService
from app.core.dependencies import get_current_user
from app.core.errors import DependencyError, ValidationError
from supabase import Client
from typing import List, Dict, Optional
from datetime import date
import logging
import time

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: Dict = Depends(get_current_user)):
    """The authenticated user's profile"""
    return current_user


@router.put("/me", response_model=UserResponse)
async def update_me(
    username: Optional[str] = Form(None, min_length=1),
    bio: Optional[str] = Form(None),
    dob: Optional[date] = Form(None),
    profile_picture: Optional[UploadFile] = File(None),
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
    storage: Optional[MediaStorage] = Depends(get_optional_media_storage)
):
    """
    Update the authenticated user's profile (multipart form).
    A profile_picture file is uploaded to media storage and its public URL stored.
    """
    user_id = current_user["id"]
    picture_url = None
    if profile_picture is not None:
        content_type = profile_picture.content_type or ""
        if not content_type.startswith("image/"):
            raise ValidationError("Profile picture must be an image")
        if storage is None:
            raise DependencyError("Media storage is not configured")
        key = f"profiles/{user_id}/{int(time.time() * 1000)}.{content_type.split('/')[1]}"
        picture_url = storage.upload_file(await profile_picture.read(), key, content_type)
        logger.info("Uploaded profile picture for user %s", user_id)

    user_data = UserUpdate(username=username, bio=bio, dob=dob, profile_picture=picture_url)
    return service.update_user(user_id, user_data)


@router.get("/search", response_model=List[UserSummary])
async def search_users(
    q: str = "",
    limit: int = 20,
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Search users by username"""
    return service.search(q, limit=min(max(limit, 1), 50))


@router.get("/mobile/{phone}", response_model=PhoneLookupResponse)
async def lookup_by_phone(
    phone: str,
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Resolve a phone number to a user id (used when picking group members)"""
    return service.get_user_by_phone(phone)


@router.post("/fcm-token")
@router.put("/fcm-token")
async def save_fcm_token(
    body: FcmTokenRequest,
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Register or replace the caller's push-delivery token"""
    if not body.fcm_token:
        raise ValidationError("FCM token is required")
    service.set_fcm_token(current_user["id"], body.fcm_token)
    return {"success": True, "message": "FCM token saved successfully"}


@router.delete("/fcm-token")
async def remove_fcm_token(
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Forget the caller's push-delivery token (logout)"""
    service.set_fcm_token(current_user["id"], None)
    return {"success": True, "message": "FCM token removed successfully"}


@router.get("/{user_id}", response_model=UserProfileResponse)
async def get_user_profile(
    user_id: str,
    current_user: Dict = Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Public profile: user, posts and counts"""
    return service.get_profile(user_id)

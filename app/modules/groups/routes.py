from fastapi import APIRouter, Depends
from datetime import timedelta
from app.config import settings
from app.database.supabase_client import get_supabase
from app.modules.groups.invites import InviteTokenCodec
from app.modules.groups.schemas import (
    GroupCreate, GroupUpdate, GroupResponse, GroupDetailResponse,
    GroupMembersAdd, GroupJoinRequest, GroupJoinResponse,
    GroupInviteRequest, GroupInviteResponse
)
from app.modules.groups.service import GroupService
from app.modules.groups.sms import TwilioSmsSender, get_sms_sender
from app.core.dependencies import get_current_user, check_group_admin, check_group_member
from supabase import Client
from typing import List, Dict, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/groups", tags=["groups"])


def get_invite_codec() -> Optional[InviteTokenCodec]:
    """Invite codec from settings, or None when INVITE_TOKEN_SECRET is unset"""
    try:
        return InviteTokenCodec(
            settings.invite_token_secret,
            ttl=timedelta(days=settings.invite_token_ttl_days),
        )
    except ValueError as e:
        logger.warning("Invite links disabled: %s", e)
        return None


def get_group_service(
    supabase: Client = Depends(get_supabase),
    codec: Optional[InviteTokenCodec] = Depends(get_invite_codec)
) -> GroupService:
    return GroupService(supabase, codec)


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group(
    group_data: GroupCreate,
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Create a group; the caller becomes its admin"""
    return service.create_group(group_data, current_user["id"])


@router.get("", response_model=List[GroupDetailResponse])
async def list_groups(
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """List groups the caller belongs to"""
    return service.list_user_groups(current_user["id"])


@router.post("/join", response_model=GroupJoinResponse)
async def join_group(
    body: GroupJoinRequest,
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Join a group with an invite token"""
    return service.join_via_invite(body.token, current_user["id"])


@router.get("/{group_id}", response_model=GroupDetailResponse)
async def get_group(
    group_id: str,
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Get group detail (members only)"""
    group = service.get_group(group_id)
    check_group_member(group, current_user)
    return service.get_group_detail(group)


@router.post("/{group_id}/invite", response_model=GroupInviteResponse)
async def invite_to_group(
    group_id: str,
    body: GroupInviteRequest,
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service),
    sms_sender: Optional[TwilioSmsSender] = Depends(get_sms_sender)
):
    """Create an invite link and text it to the given phone numbers (admin only)"""
    group = service.get_group(group_id)
    check_group_admin(group, current_user)
    return service.send_invites(group, current_user["id"], body.phone_numbers, sms_sender)


@router.put("/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: str,
    group_data: GroupUpdate,
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Rename and/or replace the member list (admin only)"""
    group = service.get_group(group_id)
    check_group_admin(group, current_user)
    return service.update_group(group, group_data)


@router.post("/{group_id}/members", response_model=GroupResponse)
async def add_members(
    group_id: str,
    body: GroupMembersAdd,
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Add members to the group (admin only)"""
    group = service.get_group(group_id)
    check_group_admin(group, current_user)
    return service.add_members(group, body.member_ids)


@router.delete("/{group_id}", status_code=204)
async def delete_group(
    group_id: str,
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Delete the group (admin only)"""
    group = service.get_group(group_id)
    check_group_admin(group, current_user)
    service.delete_group(group)
    return None

from supabase import Client
from app.modules.groups.invites import InviteTokenCodec
from app.modules.groups.membership import MembershipSynchronizer
from app.modules.groups.schemas import (
    GroupCreate, GroupUpdate, GroupResponse, GroupDetailResponse,
    GroupJoinResponse, GroupInviteResponse
)
from app.modules.groups.sms import TwilioSmsSender
from app.modules.users.service import UserService
from app.core.errors import AppError, NotFound
from app.config import settings
from typing import List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class GroupService:
    def __init__(self, supabase: Client, invite_codec: Optional[InviteTokenCodec] = None):
        self.supabase = supabase
        self.invite_codec = invite_codec
        self.membership = MembershipSynchronizer(supabase)

    def create_group(self, group_data: GroupCreate, admin_id: str) -> GroupResponse:
        """Create a group administered by admin_id"""
        group = self.membership.create_group(
            group_data.name.strip(), admin_id, group_data.member_ids, group_data.description
        )
        return GroupResponse(**group)

    def get_group(self, group_id: str) -> dict:
        """Get raw group row by ID"""
        try:
            result = self.supabase.table("groups")\
                .select("*")\
                .eq("id", group_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise NotFound("Group not found")

            return result.data
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error getting group {group_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_group_detail(self, group: dict) -> GroupDetailResponse:
        """Group with admin and member usernames resolved"""
        return self._with_profiles([group])[0]

    def list_user_groups(self, user_id: str) -> List[GroupDetailResponse]:
        """Groups the user is a member of, newest first"""
        try:
            result = self.supabase.table("groups")\
                .select("*")\
                .contains("members", [user_id])\
                .order("created_at", desc=True)\
                .execute()
        except Exception as e:
            logger.error(f"Error listing groups for user {user_id}: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))
        return self._with_profiles(result.data or [])

    def update_group(self, group: dict, group_data: GroupUpdate) -> GroupResponse:
        """Rename and/or replace the member list; unknown member ids fail before any write"""
        if group_data.member_ids is not None:
            self.membership.require_users([i for i in group_data.member_ids if i])

        update_data = {}
        if group_data.name:
            update_data["name"] = group_data.name.strip()
        if group_data.description is not None:
            update_data["description"] = group_data.description

        if update_data:
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("groups")\
                .update(update_data)\
                .eq("id", group["id"])\
                .execute()
            if not result.data:
                raise NotFound("Group not found")
            group = result.data[0]

        if group_data.member_ids is not None:
            group = self.membership.replace_members(group, group_data.member_ids)

        return GroupResponse(**group)

    def add_members(self, group: dict, member_ids: List[str]) -> GroupResponse:
        return GroupResponse(**self.membership.add_members(group, member_ids))

    def delete_group(self, group: dict) -> None:
        self.membership.delete_group(group)

    def join_via_invite(self, token: str, user_id: str) -> GroupJoinResponse:
        """Redeem an invite token and admit the user to its group"""
        claims = self._codec().redeem(token)
        group = self.get_group(claims.group_id)
        group = self.membership.join(group, user_id)
        logger.info("User %s joined group %s via invite from %s", user_id, group["id"], claims.inviter_id)
        return GroupJoinResponse(group_id=group["id"], name=group["name"])

    def create_invite_link(self, group: dict, inviter_id: str) -> str:
        token = self._codec().issue(group["id"], inviter_id)
        return f"{settings.app_url.rstrip('/')}/invite/{token}"

    def send_invites(
        self,
        group: dict,
        inviter_id: str,
        phone_numbers: List[str],
        sms_sender: Optional[TwilioSmsSender]
    ) -> GroupInviteResponse:
        """Issue one invite link and text it to each phone number"""
        invite_link = self.create_invite_link(group, inviter_id)
        body = f'Join "{group["name"]}": {invite_link}'
        sent, failed = [], []
        for to in dict.fromkeys(p.strip() for p in phone_numbers if p and p.strip()):
            if sms_sender is None:
                failed.append(to)
                continue
            try:
                sms_sender.send(to, body)
                sent.append(to)
            except Exception as e:
                logger.error(f"Invite SMS to {to} for group {group['id']} failed: {str(e)}")
                failed.append(to)
        return GroupInviteResponse(invite_link=invite_link, sent=sent, failed=failed)

    def _codec(self) -> InviteTokenCodec:
        if self.invite_codec is None:
            raise HTTPException(status_code=500, detail="Invite tokens are not configured")
        return self.invite_codec

    def _with_profiles(self, groups: List[dict]) -> List[GroupDetailResponse]:
        user_ids = []
        for group in groups:
            user_ids.append(group["admin_id"])
            user_ids.extend(group.get("members") or [])
        profiles = UserService(self.supabase).get_summaries(user_ids)
        return [
            GroupDetailResponse(
                id=group["id"],
                name=group["name"],
                description=group.get("description") or "",
                admin=profiles.get(group["admin_id"]),
                members=[profiles[m] for m in group.get("members") or [] if m in profiles],
                created_at=group["created_at"],
                updated_at=group.get("updated_at"),
            )
            for group in groups
        ]

from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.groups.routes import get_group_service
from app.modules.groups.service import GroupService
from app.modules.messages.schemas import MessageCreate, MessageResponse
from app.modules.messages.service import MessageService
from app.core.dependencies import get_current_user, check_group_member
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/groups", tags=["messages"])


def get_message_service(supabase: Client = Depends(get_supabase)) -> MessageService:
    return MessageService(supabase)


@router.get("/{group_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    group_id: str,
    current_user: Dict = Depends(get_current_user),
    group_service: GroupService = Depends(get_group_service),
    service: MessageService = Depends(get_message_service)
):
    """Group chat history (members only)"""
    check_group_member(group_service.get_group(group_id), current_user)
    return service.list_messages(group_id)


@router.post("/{group_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    group_id: str,
    body: MessageCreate,
    current_user: Dict = Depends(get_current_user),
    group_service: GroupService = Depends(get_group_service),
    service: MessageService = Depends(get_message_service)
):
    """Post a chat message to the group (members only)"""
    check_group_member(group_service.get_group(group_id), current_user)
    return service.send_message(group_id, current_user, body.text)


@router.delete("/{group_id}/messages/{message_id}")
async def delete_message(
    group_id: str,
    message_id: str,
    current_user: Dict = Depends(get_current_user),
    group_service: GroupService = Depends(get_group_service),
    service: MessageService = Depends(get_message_service)
):
    """Delete a message (sender or group admin)"""
    group = group_service.get_group(group_id)
    check_group_member(group, current_user)
    service.delete_message(group, message_id, current_user["id"])
    return {"message": "Message deleted successfully"}

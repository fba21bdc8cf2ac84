"""
Core dependencies for route protection and shared collaborator clients
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.core.errors import NotAuthorized
from app.core.firebase import FirebaseClient
from app.database.supabase_client import get_supabase
from app.modules.auth.identity import FirebaseIdentityProvider
from app.modules.auth.service import AuthService
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()

_identity_provider: Optional[FirebaseIdentityProvider] = None


def get_identity_provider() -> FirebaseIdentityProvider:
    """Process-wide identity verifier bound to the shared Firebase app."""
    global _identity_provider
    if _identity_provider is None:
        _identity_provider = FirebaseIdentityProvider(FirebaseClient.get_app())
    return _identity_provider


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract the Firebase ID token from the Authorization header"""
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_bearer_token),
    identity: FirebaseIdentityProvider = Depends(get_identity_provider),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Verify the bearer ID token and load the matching user_profiles row"""
    claims = identity.verify(token)
    user = auth_service.get_user_by_firebase_uid(claims.uid)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found in database"
        )
    return user


def is_group_member(group: dict, user_id: str) -> bool:
    return user_id in (group.get("members") or []) or group.get("admin_id") == user_id


def check_group_admin(group: dict, user_data: dict) -> dict:
    """Only the group's admin may rename, re-member, invite, add members or delete"""
    if group.get("admin_id") != user_data["id"]:
        raise NotAuthorized("You must be the group admin to perform this action")
    return user_data


def check_group_member(group: dict, user_data: dict) -> dict:
    """Any member (admin included) may read group content"""
    if not is_group_member(group, user_data["id"]):
        raise NotAuthorized("You must be a member of this group")
    return user_data

from supabase import Client
from app.modules.auth.identity import IdentityClaims
from app.modules.auth.schemas import RegisterOrLoginRequest, RegisterOrLoginResponse
from app.modules.users.schemas import UserResponse
from app.core.errors import InvalidToken, ValidationError
from app.database.supabase_client import is_unique_violation
from fastapi import HTTPException
from datetime import datetime, timezone
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """Identity directory: maps a verified identity to a user_profiles row."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_user_by_firebase_uid(self, uid: str) -> Optional[dict]:
        result = self.supabase.table("user_profiles")\
            .select("*")\
            .eq("firebase_uid", uid)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            return None
        return result.data

    def register_or_login(self, claims: IdentityClaims, data: RegisterOrLoginRequest) -> RegisterOrLoginResponse:
        """Create the profile on first sign-in, otherwise apply username/dob changes"""
        if not claims.phone_number:
            raise InvalidToken("Token carries no phone number")
        try:
            user = self.get_user_by_firebase_uid(claims.uid)
            if user is None:
                username = data.username or claims.display_name or f"user_{claims.uid[:8]}"
                row = {
                    "firebase_uid": claims.uid,
                    "username": username.strip(),
                    "phone_number": claims.phone_number,
                    "dob": data.dob.isoformat() if data.dob else None,
                    "groups": [],
                }
                result = self.supabase.table("user_profiles").insert(row).execute()
                if not result.data:
                    raise HTTPException(status_code=500, detail="Failed to create user")
                logger.info("Registered user %s for uid %s", result.data[0]["id"], claims.uid)
                return RegisterOrLoginResponse(user=UserResponse(**result.data[0]), created=True)

            updates = {}
            if data.username and data.username.strip() != user["username"]:
                updates["username"] = data.username.strip()
            if data.dob and data.dob.isoformat() != (user.get("dob") or "")[:10]:
                updates["dob"] = data.dob.isoformat()
            if updates:
                updates["updated_at"] = datetime.now(timezone.utc).isoformat()
                result = self.supabase.table("user_profiles")\
                    .update(updates)\
                    .eq("id", user["id"])\
                    .execute()
                user = result.data[0] if result.data else {**user, **updates}
                logger.info("Updated %s for user %s", ", ".join(sorted(updates)), user["id"])
            return RegisterOrLoginResponse(user=UserResponse(**user), created=False)
        except HTTPException:
            raise
        except Exception as e:
            if is_unique_violation(e):
                raise ValidationError("Username or phone number already registered")
            logger.error(f"register-or-login failed for uid {claims.uid}: {str(e)}")
            raise HTTPException(status_code=500, detail="Registration failed")

    def phone_exists(self, phone_number: str) -> bool:
        result = self.supabase.table("user_profiles")\
            .select("id")\
            .eq("phone_number", phone_number)\
            .limit(1)\
            .execute()
        return bool(result.data)

from fastapi import APIRouter, Depends
from app.modules.auth.identity import FirebaseIdentityProvider
from app.modules.auth.schemas import (
    RegisterOrLoginRequest, RegisterOrLoginResponse, PhoneExistsResponse
)
from app.modules.auth.service import AuthService
from app.core.dependencies import get_auth_service, get_identity_provider
from app.core.errors import ValidationError

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register-or-login", response_model=RegisterOrLoginResponse)
async def register_or_login(
    data: RegisterOrLoginRequest,
    identity: FirebaseIdentityProvider = Depends(get_identity_provider),
    service: AuthService = Depends(get_auth_service)
):
    """Verify a Firebase ID token and create or update the caller's profile"""
    claims = identity.verify(data.id_token)
    return service.register_or_login(claims, data)


@router.get("/exists", response_model=PhoneExistsResponse)
async def phone_exists(
    phone: str = "",
    service: AuthService = Depends(get_auth_service)
):
    """Check whether a phone number is already registered"""
    if not phone:
        raise ValidationError("Missing phone number")
    return PhoneExistsResponse(exists=service.phone_exists(phone))

"""
Application error taxonomy.

Every error is an HTTPException so FastAPI renders it directly; the `code`
attribute is a stable machine-readable identifier added to the response body
by the handler registered in app.main.
"""

from fastapi import HTTPException, status
from typing import Optional


class AppError(HTTPException):
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "error"
    default_detail = "Server error"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=self.status_code_default, detail=detail or self.default_detail)


class NotFound(AppError):
    status_code_default = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Not found"


class NotAuthorized(AppError):
    status_code_default = status.HTTP_403_FORBIDDEN
    code = "not_authorized"
    default_detail = "Not authorized"


class AlreadyMember(AppError):
    status_code_default = status.HTTP_409_CONFLICT
    code = "already_member"
    default_detail = "Already a member"


class TokenExpired(AppError):
    status_code_default = status.HTTP_400_BAD_REQUEST
    code = "token_expired"
    default_detail = "Invite link expired"


class TokenInvalid(AppError):
    status_code_default = status.HTTP_400_BAD_REQUEST
    code = "token_invalid"
    default_detail = "Invalid invite link"


class InvalidToken(AppError):
    """Identity token rejected by the identity provider."""
    status_code_default = status.HTTP_401_UNAUTHORIZED
    code = "invalid_token"
    default_detail = "Invalid or expired token"


class ValidationError(AppError):
    status_code_default = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    default_detail = "Invalid request"


class DependencyError(AppError):
    status_code_default = status.HTTP_502_BAD_GATEWAY
    code = "dependency_error"
    default_detail = "Upstream service failed"

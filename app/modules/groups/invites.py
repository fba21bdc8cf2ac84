"""
Signed, time-bounded group invite tokens.

A token is an HS256 JWT carrying the group id and the inviter id. Nothing is
stored: possession of an unexpired token with a valid signature is the whole
authorization, so a token stays usable for its full lifetime.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

from app.core.errors import TokenExpired, TokenInvalid

logger = logging.getLogger(__name__)

DEFAULT_INVITE_TTL = timedelta(days=7)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class InviteClaims:
    group_id: str
    inviter_id: str
    issued_at: datetime
    expires_at: datetime


class InviteTokenCodec:
    ALGORITHM = "HS256"
    REQUIRED_CLAIMS = ["group_id", "inviter_id", "iat", "exp"]

    def __init__(
        self,
        secret: str,
        ttl: timedelta = DEFAULT_INVITE_TTL,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not secret:
            raise ValueError("Invite token secret must be configured")
        self._secret = secret
        self._ttl = ttl
        self._clock = clock or _utcnow

    def issue(self, group_id: str, inviter_id: str) -> str:
        issued_at = self._clock()
        payload = {
            "group_id": str(group_id),
            "inviter_id": str(inviter_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self.ALGORITHM)

    def redeem(self, token: str) -> InviteClaims:
        """Verify signature and freshness; expiry is judged against the codec clock."""
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.ALGORITHM],
                options={
                    "require": self.REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            logger.info("Rejected invite token: %s", e)
            raise TokenInvalid()

        group_id = payload.get("group_id")
        inviter_id = payload.get("inviter_id")
        if not isinstance(group_id, str) or not isinstance(inviter_id, str):
            raise TokenInvalid()
        try:
            issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError):
            raise TokenInvalid()

        if self._clock() >= expires_at:
            raise TokenExpired()

        return InviteClaims(
            group_id=group_id,
            inviter_id=inviter_id,
            issued_at=issued_at,
            expires_at=expires_at,
        )

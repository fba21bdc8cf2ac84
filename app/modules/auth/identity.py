"""Firebase phone-auth identity verification."""
import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin.exceptions import FirebaseError

from app.core.errors import DependencyError, InvalidToken

logger = logging.getLogger(__name__)

# Verified claims are cached briefly so parallel requests carrying the same ID token
# do not each hit Google's public key endpoint.
_CLAIMS_CACHE_TTL_SEC = 60
_CLAIMS_CACHE_MAX_SIZE = 500


@dataclass(frozen=True)
class IdentityClaims:
    uid: str
    phone_number: Optional[str] = None
    display_name: Optional[str] = None


class FirebaseIdentityProvider:
    def __init__(self, app: Optional[firebase_admin.App] = None):
        self.app = app
        self._cache: Dict[str, Tuple[IdentityClaims, float]] = {}

    def verify(self, id_token: str) -> IdentityClaims:
        """Verify a Firebase ID token and return the identity it asserts."""
        cache_key = hashlib.sha256(id_token.encode()).hexdigest()
        now = time.monotonic()
        cached = self._cache.get(cache_key)
        if cached is not None:
            claims, expiry = cached
            if now < expiry:
                return claims
            del self._cache[cache_key]

        try:
            decoded = firebase_auth.verify_id_token(id_token, app=self.app)
        except (firebase_auth.InvalidIdTokenError, ValueError) as e:
            logger.info("Rejected ID token: %s", e)
            raise InvalidToken()
        except FirebaseError as e:
            logger.error("Firebase token verification failed: %s", e)
            raise DependencyError("Identity provider unavailable")

        claims = IdentityClaims(
            uid=decoded["uid"],
            phone_number=decoded.get("phone_number"),
            display_name=decoded.get("name"),
        )
        if len(self._cache) < _CLAIMS_CACHE_MAX_SIZE:
            self._cache[cache_key] = (claims, now + _CLAIMS_CACHE_TTL_SEC)
        return claims

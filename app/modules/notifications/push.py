"""Firebase Cloud Messaging push sender."""
import logging
from typing import Any, Dict, List, Optional

import firebase_admin
from firebase_admin import messaging
from firebase_admin.exceptions import FirebaseError

from app.core.errors import DependencyError
from app.core.firebase import FirebaseClient

logger = logging.getLogger(__name__)

# FCM accepts at most 500 tokens per multicast request
MULTICAST_BATCH_SIZE = 500


def _stringify(data: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """FCM data payloads must be str -> str"""
    return {str(k): str(v) for k, v in (data or {}).items() if v is not None}


class FirebasePushSender:
    def __init__(self, app: Optional[firebase_admin.App] = None):
        self.app = app

    def send_multicast(self, tokens: List[str], title: str, body: str, data: Optional[Dict[str, Any]] = None) -> int:
        """Send one notice to many devices; returns the number delivered"""
        delivered = 0
        for start in range(0, len(tokens), MULTICAST_BATCH_SIZE):
            batch = tokens[start:start + MULTICAST_BATCH_SIZE]
            message = messaging.MulticastMessage(
                tokens=batch,
                notification=messaging.Notification(title=title, body=body),
                data=_stringify(data),
            )
            try:
                response = messaging.send_each_for_multicast(message, app=self.app)
            except (FirebaseError, ValueError) as e:
                raise DependencyError(f"Push delivery failed: {e}")
            delivered += response.success_count
        logger.info("FCM notifications sent: %d/%d", delivered, len(tokens))
        return delivered

    def send(self, token: str, title: str, body: str, data: Optional[Dict[str, Any]] = None) -> str:
        """Send one notice to one device; returns the FCM message id"""
        message = messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body),
            data=_stringify(data),
        )
        try:
            return messaging.send(message, app=self.app)
        except (FirebaseError, ValueError) as e:
            raise DependencyError(f"Push delivery failed: {e}")


def get_push_sender() -> Optional[FirebasePushSender]:
    """Push sender on the shared Firebase app, or None when Firebase is not configured"""
    try:
        return FirebasePushSender(FirebaseClient.get_app())
    except (ValueError, OSError) as e:
        logger.warning("Push notifications disabled: %s", e)
        return None

import logging
import firebase_admin
from firebase_admin import credentials
from app.config import settings

logger = logging.getLogger(__name__)


class FirebaseClient:
    """Single firebase_admin App shared by identity verification and push."""
    _app: firebase_admin.App = None

    @classmethod
    def _credential(cls) -> credentials.Base:
        if settings.firebase_project_id and settings.firebase_private_key and settings.firebase_client_email:
            logger.info("Using Firebase credentials from environment variables")
            return credentials.Certificate({
                "type": "service_account",
                "project_id": settings.firebase_project_id,
                "private_key": settings.firebase_private_key.replace("\\n", "\n"),
                "client_email": settings.firebase_client_email,
                "token_uri": "https://oauth2.googleapis.com/token",
            })
        if settings.firebase_service_account_key_path:
            logger.info("Using Firebase service account file %s", settings.firebase_service_account_key_path)
            return credentials.Certificate(settings.firebase_service_account_key_path)
        raise ValueError("Firebase credentials must be configured")

    @classmethod
    def get_app(cls) -> firebase_admin.App:
        if cls._app is None:
            cls._app = firebase_admin.initialize_app(
                cls._credential(),
                {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None,
            )
            logger.info("Firebase Admin initialized")
        return cls._app

    @classmethod
    def reset_app(cls):
        if cls._app is not None:
            firebase_admin.delete_app(cls._app)
        cls._app = None

from supabase import create_client, Client
from postgrest.exceptions import APIError
from app.config import settings
import logging

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class SupabaseClient:
    """
    Process-wide Supabase clients.

    Request handlers share the anon-key client. Notification fan-out writes rows
    owned by other users, so it uses the service-role client when one is
    configured.
    """
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            if not settings.supabase_url or not settings.supabase_key:
                raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be configured")
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
            logger.info("Supabase client created for %s", settings.supabase_url)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Client:
    """Client for background fan-out (bypasses RLS when a service key is set)"""
    return SupabaseClient.get_service_client()


def is_unique_violation(exc: Exception) -> bool:
    """True when PostgREST reports a unique constraint violation."""
    return isinstance(exc, APIError) and getattr(exc, "code", None) == UNIQUE_VIOLATION

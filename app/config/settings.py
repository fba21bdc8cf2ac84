from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Used by background fan-out when set

    # Firebase (phone auth + push)
    firebase_project_id: Optional[str] = None
    firebase_client_email: Optional[str] = None
    firebase_private_key: Optional[str] = None
    firebase_service_account_key_path: Optional[str] = None

    # Invite links
    invite_token_secret: str = ""  # Required for invite links; unset disables them
    invite_token_ttl_days: int = 7
    app_url: str = "http://localhost:5000"

    # Media storage (S3-compatible, e.g. Cloudflare R2)
    r2_access_key_id: Optional[str] = None
    r2_secret_access_key: Optional[str] = None
    r2_endpoint_url: Optional[str] = None
    r2_bucket_name: Optional[str] = None
    r2_public_url: Optional[str] = None  # e.g. https://pub-xxxx.r2.dev
    r2_region: str = "auto"

    # Twilio (SMS invites)
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone: Optional[str] = None

    # App
    app_name: str = "groupshare-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "*"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    notifications_page_size: int = 20
    message_max_length: int = 1000

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()

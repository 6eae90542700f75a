from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for admin operations and lead intake
    storage_bucket: str = "property-images"

    # Email (Resend)
    resend_api_key: Optional[str] = None
    resend_api_url: str = "https://api.resend.com/emails"
    email_from: str = "Covialvi <noreply@covialvi.com>"
    admin_email: str = "covialvi@gmail.com"

    # Google Calendar
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    oauth_state_secret: Optional[str] = None  # Signs the OAuth state; defaults to the Google client secret
    calendar_time_zone: str = "Europe/Lisbon"

    # Company
    company_name: str = "Covialvi"
    company_phone: str = "+351 244 000 000"
    site_url: str = "http://localhost:3000"
    api_url: str = "http://localhost:8000"

    # Behaviour
    autosave_debounce_seconds: float = 0.8
    autosave_saved_display_seconds: float = 3.0
    autosave_session_idle_seconds: float = 30 * 60  # editor sessions with no requests for this long are evicted
    autosave_sweep_interval_seconds: float = 60.0
    lead_dedup_window_hours: int = 24
    http_timeout_seconds: float = 10.0

    # App
    app_name: str = "covialvi-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def google_redirect_uri(self) -> str:
        return f"{self.api_url.rstrip('/')}/api/auth/google/callback"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()

"""
referral_genie.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (JWT secret, login password, API credentials).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Every field can be overridden with an `RG_`-prefixed environment variable,
    e.g. `RG_HUMBLE_FAX_API_KEY`.
    """

    model_config = SettingsConfigDict(env_prefix="RG_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "referral-genie"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "referral-genie"
    jwt_audience: str = "referral-genie-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    session_ttl_minutes: int = 30 * 24 * 60
    auth_username: str = "admin"
    auth_password: str = Field(default="referralgenie2024", repr=False)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./referral_genie.db"
    db_max_retries: int = 5
    db_retry_base_delay_seconds: float = 1.0
    db_retry_max_delay_seconds: float = 30.0

    # Uploaded campaign documents
    uploads_dir: Path = Path("./uploads")

    # Outbound HTTP
    http_timeout_seconds: float = 30.0

    # HumbleFax
    humble_fax_api_url: str = "https://api.humblefax.com"
    humble_fax_api_key: str = ""
    humble_fax_api_secret: str = Field(default="", repr=False)
    # The only sender number the HumbleFax account is authorised to send from.
    humble_fax_from_number: str = "19103974373"
    # None disables the delayed delivery check after a send.
    fax_status_check_delay_seconds: float | None = 180.0
    fax_webhook_secret: str | None = Field(default=None, repr=False)

    # Google Maps (Geocoding + Places)
    google_places_api_key: str | None = Field(default=None, repr=False)
    google_maps_api_base_url: str = "https://maps.googleapis.com/maps/api"
    places_page_token_delay_seconds: float = 2.0
    prospecting_default_radius_m: int = 50_000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Nearly every other module depends on this one; add fields with safe local-dev defaults.

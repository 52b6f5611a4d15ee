"""Configuration from environment (no hardcoded secrets)."""

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Backend settings from env. Built once per process and passed to services."""

    model_config = SettingsConfigDict(env_prefix="CLIPSYNC_", extra="ignore")

    # Storage
    db_path: Path = Path("/data/clipsync.db")

    # JWT (secret is shared with the identity provider that signs primary-device tokens)
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    token_expire_days: int = 7

    @field_validator("jwt_secret")
    @classmethod
    def jwt_secret_required(cls, v: str) -> str:
        """Refuse to start without a signing secret."""
        if not v.strip():
            raise ValueError("CLIPSYNC_JWT_SECRET must be set")
        return v

    # Pairing
    pairing_code_ttl_minutes: int = 5
    pairing_code_max_attempts: int = 16
    pairing_deep_link_prefix: str = "clipsync://pair/"

    # Listings
    max_page_size: int = 100

    # CORS: comma-separated string in env so pydantic-settings does not try to JSON-decode it
    cors_origins: str = "http://localhost:3000,http://localhost:3001"

    @property
    def cors_origins_list(self) -> List[str]:
        """CORS origins as a list (split on comma)."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    # Logging (empty log_file = stderr only; level DEBUG|INFO|WARNING|ERROR)
    log_level: str = "INFO"
    log_file: str = ""


@lru_cache
def get_settings() -> Settings:
    """Return application settings (loaded once)."""
    return Settings()

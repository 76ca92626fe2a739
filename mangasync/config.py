"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_SECRET_KEY = "change-me-in-production"


class Settings(BaseSettings):
    """MangaSync application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    secret_key: str = _DEFAULT_SECRET_KEY
    debug: bool = False
    expose_docs: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///data/db/mangasync.db"

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    max_request_body_bytes: int = Field(default=50 * 1024 * 1024, ge=1)

    # Auth
    jwt_issuer: str = "mangasync"
    jwt_audience: str = "mangasync"
    access_token_expire_hours: int = Field(default=24, ge=1)
    allow_registration: bool = True

    def validate_runtime_security(self) -> None:
        """Validate security-critical production settings."""
        if self.debug:
            return

        if self.secret_key == _DEFAULT_SECRET_KEY or len(self.secret_key) < 32:
            raise ValueError(
                "Insecure production configuration: "
                "SECRET_KEY must be overridden with a high-entropy value (>=32 chars)"
            )

"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Literal["local", "dev", "prod"] = Field(default="local")
    log_level: str = Field(default="INFO")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/callflow.db",
        description="SQLAlchemy connection string.",
    )

    # Migrations / schema
    auto_create_db_schema: bool = Field(
        default=True,
        description="If true, creates tables automatically on startup (useful for local/dev).",
    )

    # Session persistence
    session_backend: Literal["sql", "memory"] = Field(
        default="sql",
        description="Where call sessions live. 'memory' only works for a single worker.",
    )

    # Twilio (Voice)
    twilio_auth_token: str | None = Field(default=None)
    twilio_validate_requests: bool | None = Field(
        default=None,
        description=(
            "If true, rejects webhooks without a valid X-Twilio-Signature. "
            "Unset means on everywhere except the local environment."
        ),
    )
    public_base_url: str | None = Field(
        default=None,
        description="Public base URL Twilio reaches us on (e.g. https://<ngrok>.ngrok-free.app).",
    )

    # Assets
    asset_version: str | None = Field(
        default=None,
        description="Appended as ?v=... to asset URLs so carriers refetch after a deploy.",
    )
    hold_music_path: str = Field(default="/hold.mp3")
    hold_music_loop: int = Field(default=100, ge=0)
    hold_music_max_age: int = Field(default=31536000, ge=0)

    data_dir: Path = Field(default=Path("./data"), validate_default=True)

    @field_validator("public_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.rstrip("/") or None

    @field_validator("data_dir")
    @classmethod
    def ensure_data_dir(cls, value: Path) -> Path:
        value.mkdir(parents=True, exist_ok=True)
        return value

    @field_validator("hold_music_path")
    @classmethod
    def ensure_absolute_path(cls, value: str) -> str:
        if not value.startswith("/"):
            return "/" + value
        return value

    @property
    def validate_twilio_requests(self) -> bool:
        if self.twilio_validate_requests is not None:
            return self.twilio_validate_requests
        return self.environment != "local"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()

"""Client settings with validation using pydantic-settings.

Values come from ``STOCKDESK_*`` environment variables or a ``.env`` file.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Default data directory: <repo root>/data when installed in editable mode.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


class Settings(BaseSettings):
    """Client settings."""

    model_config = SettingsConfigDict(
        env_prefix="STOCKDESK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote API
    api_url: str = Field(default="http://localhost:3001/api", description="Stock API base URL")
    api_token: Optional[str] = Field(default=None, description="Bearer token for the API")
    http_timeout: float = Field(default=10.0, gt=0, description="Request timeout in seconds")

    # Current user context
    user_id: Optional[str] = Field(default=None, description="Id of the signed-in user")
    permissions: str = Field(
        default="",
        description="Comma-separated permission codes of the user's role",
    )

    # Local storage
    data_dir: Path = Field(default=_DEFAULT_DATA_DIR, description="Directory for local state")

    # Logging
    log_level: str = Field(default="WARNING", description="Logging level")
    log_json: bool = Field(default=False, description="Emit JSON logs instead of console logs")

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {value}")
        return value

    @property
    def permission_codes(self) -> frozenset[str]:
        return frozenset(code.strip() for code in self.permissions.split(",") if code.strip())


@lru_cache
def get_settings() -> Settings:
    return Settings()

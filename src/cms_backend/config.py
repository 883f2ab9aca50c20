"""Application configuration using environment variables."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal, Optional

from pydantic import AliasChoices, AnyHttpUrl, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Base URL for the public site (added to the CORS allow-list)
    frontend_url: Optional[AnyHttpUrl] = Field(
        default=None,
        validation_alias=AliasChoices("FRONTEND_URL", "frontend_url"),
    )
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        validation_alias=AliasChoices("CORS_ORIGINS", "cors_origins"),
    )

    database_path: Path = Field(
        default_factory=lambda: Path("data/cms.db"),
        validation_alias=AliasChoices("DATABASE_PATH", "database_path"),
    )
    upload_dir: Path = Field(
        default_factory=lambda: Path("data/uploads"),
        validation_alias=AliasChoices("UPLOAD_DIR", "upload_dir"),
    )
    upload_staging_dir: Path = Field(
        default_factory=lambda: Path("data/incoming"),
        validation_alias=AliasChoices("UPLOAD_STAGING_DIR", "upload_staging_dir"),
    )
    upload_max_size_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1,
        validation_alias=AliasChoices(
            "UPLOAD_MAX_SIZE_BYTES",
            "upload_max_size_bytes",
        ),
    )
    upload_staging_max_age_hours: int = Field(
        default=24,
        ge=0,
        validation_alias=AliasChoices(
            "UPLOAD_STAGING_MAX_AGE_HOURS",
            "upload_staging_max_age_hours",
        ),
    )
    image_profile: Literal["optimized", "responsive"] = Field(
        default="optimized",
        validation_alias=AliasChoices("IMAGE_PROFILE", "image_profile"),
    )

    auth_token_ttl_hours: int = Field(
        default=24 * 7,
        ge=1,
        validation_alias=AliasChoices("AUTH_TOKEN_TTL_HOURS", "auth_token_ttl_hours"),
    )
    initial_admin_email: str = Field(
        default="admin@example.com",
        validation_alias=AliasChoices("INITIAL_ADMIN_EMAIL", "initial_admin_email"),
    )
    initial_admin_password: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices(
            "INITIAL_ADMIN_PASSWORD",
            "initial_admin_password",
        ),
    )
    initial_admin_name: str = Field(
        default="Admin",
        validation_alias=AliasChoices("INITIAL_ADMIN_NAME", "initial_admin_name"),
    )

    slow_request_ms: float = Field(
        default=1000.0,
        ge=0,
        validation_alias=AliasChoices("SLOW_REQUEST_MS", "slow_request_ms"),
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        # CORS_ORIGINS may be a JSON array or a comma separated list
        if not isinstance(value, str):
            return value
        text = value.strip()
        if text.startswith("["):
            return json.loads(text)
        return [origin.strip() for origin in text.split(",") if origin.strip()]

    @property
    def allowed_origins(self) -> list[str]:
        origins = list(self.cors_origins)
        if self.frontend_url is not None:
            origin = str(self.frontend_url).rstrip("/")
            if origin not in origins:
                origins.append(origin)
        return origins


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


def resolve_under(base: Path, p: Path) -> Path:
    """Resolve a configured path against ``base``, refusing escapes."""

    # Absolute paths are used as-is (tests and external mounts).
    if p.is_absolute():
        return p.resolve()
    resolved = (base / p).resolve()
    if not resolved.is_relative_to(base):
        raise ValueError(f"Configured path {resolved} escapes project root {base}")
    return resolved


__all__ = ["PROJECT_ROOT", "Settings", "get_settings", "resolve_under"]

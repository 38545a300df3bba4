"""Settings base shared by the builder service and its tooling.

Values come from the environment or a local `.env` file; names are matched
case-insensitively and unknown variables are ignored. Only the logging knobs
live here; connection URLs and tuning values are declared by the service with
the field helpers below.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class BaseSettings(PydanticBaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    service_name: str = Field(default="builder", description="Bound to every log event")
    log_format: Literal["json", "console"] = "console"
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return level


def database_url_field():
    """Mandatory async SQLAlchemy URL."""
    return Field(
        ...,
        description="SQLAlchemy async URL of the build database",
        examples=["postgresql+asyncpg://builder:builder@db:5432/builder"],
    )


def redis_url_field():
    """Mandatory Redis URL (build leases, usage counters)."""
    return Field(
        ...,
        description="Redis URL used for build leases and usage counters",
        examples=["redis://redis:6379/0"],
    )


def vercel_token_field():
    """Platform Vercel token; publish and preview are disabled while unset."""
    return Field(
        default=None,
        description="Vercel API token for publish and preview deployments",
    )


def seconds_field(default: float, description: str):
    """Positive duration in seconds."""
    return Field(default=default, gt=0, description=description)

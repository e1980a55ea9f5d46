"""Verifier settings using pydantic-settings.

Loads configuration from ``SANDBOX_VERIFY_*`` environment variables with
.env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SOURCE_TREE_ENV = "BUILD_WORKSPACE_DIRECTORY"
DEFAULT_LANDMARKS = (".runfiles/", "/execroot/")


class Settings(BaseSettings):
    """Verifier configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SANDBOX_VERIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Boundary
    source_tree_env: str = Field(
        default=DEFAULT_SOURCE_TREE_ENV,
        min_length=1,
        description="Name of the variable whose presence selects run mode",
    )
    sandbox_landmarks: list[str] = Field(
        default_factory=lambda: list(DEFAULT_LANDMARKS),
        min_length=1,
        description="Path segments that mark a contained path in test mode",
    )

    # Subprocess probes
    realpath_command: str = Field(
        default="realpath",
        min_length=1,
        description="External canonicalization command used as the ground-truth oracle",
    )
    probe_timeout_seconds: float = Field(
        default=10.0,
        ge=0.1,
        le=300.0,
        description="Timeout for each subprocess a probe spawns",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("sandbox_landmarks")
    @classmethod
    def _reject_empty_landmarks(cls, value: list[str]) -> list[str]:
        if any(not item for item in value):
            raise ValueError("sandbox landmarks must be non-empty strings")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()

"""
Shared configuration management for the memoizer.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


LockMode = Literal["per_key", "global"]


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="MEMOIZER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Logging
    log_level: str = Field(default="warning")

    # Observability
    enable_metrics: bool = Field(default=False)


class MemoizerConfig(BaseConfig):
    """Cache and CLI settings."""

    service_name: str = "memoizer"

    # Concurrency discipline for caches built by the CLI
    lock_mode: LockMode = Field(default="per_key")

    # Number of repeated calls the memo demo issues after the first one
    repeat_calls: int = Field(default=6, ge=0)


def get_config(**overrides) -> MemoizerConfig:
    """Get memoizer configuration, with optional explicit overrides."""
    return MemoizerConfig(**overrides)

"""Environment-driven defaults for csv_guardian."""

from __future__ import annotations

import threading

from pydantic import Field
from pydantic_settings import BaseSettings


class GuardianSettings(BaseSettings):
    """Process defaults, read from ``CSV_GUARDIAN_*`` environment variables.

    These only seed :meth:`CsvOptions.from_settings` and the package log level;
    every reader entry point still receives an explicit options object.
    """

    log_level: str = Field(default="INFO", description="Level of the csv_guardian logger")
    default_encoding: str = Field(default="utf-8", description="Encoding used to open source files")
    default_batch_size: int = Field(default=1000, ge=1, description="Rows per dispatched batch")
    queue_capacity: int = Field(
        default=1, ge=1, description="Batches that may wait for a slow consumer before the reader suspends"
    )
    max_errors_sample: int = Field(
        default=100, ge=0, description="Maximum validation errors kept by streaming collectors"
    )

    model_config = {"env_prefix": "CSV_GUARDIAN_", "case_sensitive": False}


_settings: GuardianSettings | None = None
_lock = threading.Lock()


def create_settings() -> GuardianSettings:
    return GuardianSettings()


def get_settings() -> GuardianSettings:
    """Create or get the global settings instance."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        with _lock:
            if _settings is None:
                _settings = create_settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings  # noqa: PLW0603
    with _lock:
        _settings = None

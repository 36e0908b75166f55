"""Runtime settings for the flowlight engine.

Manifesto:
    The engine has very little to configure, but what it has (the generic
    error message shown to users, how much backtrace ends up in a context,
    log format) differs between development and production.  Settings are
    read from ``FLOWLIGHT_*`` environment variables and an optional ``.env``
    file, validated once, and cached.

Features:
    - **FlowlightSettings:** pydantic-settings model, ``FLOWLIGHT_`` prefix
    - **get_settings():** cached accessor used by the engine
    - **reset_settings():** drop the cache (tests, reconfiguration)

Examples:
    >>> import os
    >>> os.environ["FLOWLIGHT_BACKTRACE_LINES"] = "10"
    >>> reset_settings()
    >>> get_settings().backtrace_lines
    10

Tags:
    settings, configuration, pydantic, environment, flowlight

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlowlightSettings(BaseSettings):
    """Engine-wide settings.

    Fields
    ──────
    log_level                   : Structlog log level
    log_json                    : JSON log output (None = auto-detect tty)
    backtrace_lines             : Cleaned frames kept in a context's error info
    generic_error_message       : Message added under ``base`` for raised errors
    backtrace_silence_patterns  : Frames containing any of these are library noise
    """

    model_config = SettingsConfigDict(
        env_prefix="FLOWLIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    # ── Error capture ────────────────────────────────────────────
    backtrace_lines: int = Field(default=5, ge=0)
    generic_error_message: str = "An unexpected error occurred."
    backtrace_silence_patterns: list[str] = Field(
        default_factory=lambda: ["site-packages", "dist-packages"],
        description="Substrings marking third-party frames",
    )


@lru_cache(maxsize=1)
def get_settings() -> FlowlightSettings:
    """Return the cached settings instance."""
    return FlowlightSettings()


def reset_settings() -> None:
    """Clear the settings cache so the next call re-reads the environment."""
    get_settings.cache_clear()


__all__ = ["FlowlightSettings", "get_settings", "reset_settings"]

"""
cellfilter configuration - all environment variables in one place.

Read from environment at import time.
"""

from __future__ import annotations

import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None


class Settings:
    """Engine settings from environment variables."""

    # Unknown field/value references raise UnknownFieldError instead of
    # silently matching nothing
    STRICT_FIELD_REFERENCES: bool = _env_bool("CELLFILTER_STRICT_FIELDS", True)

    # Selection index
    USE_SELECTION_INDEX: bool = _env_bool("CELLFILTER_USE_INDEX", False)
    INDEX_THRESHOLD: int = _env_int("CELLFILTER_INDEX_THRESHOLD", 50000)
    GRID_SIZE: int = _env_int("CELLFILTER_GRID_SIZE", 32)

    # Logging
    LOG_LEVEL: str = os.environ.get("CELLFILTER_LOG_LEVEL", "INFO")

    def should_index(self, n_records: int) -> bool:
        return self.USE_SELECTION_INDEX or n_records >= self.INDEX_THRESHOLD


# Singleton instance
settings = Settings()

if settings.GRID_SIZE < 1:
    raise RuntimeError("CELLFILTER_GRID_SIZE must be a positive integer")

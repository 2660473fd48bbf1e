"""Logging utilities for llm-bridge."""

from __future__ import annotations

import logging
from typing import Final

DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "WARNING", fmt: str | None = None) -> None:
    """Configure application logging.

    The root level is set even when handlers already exist, so a level read
    from configuration after an earlier call still takes effect.

    Args:
        level: Logging level name (e.g., "INFO", "DEBUG").
        fmt: Optional logging format string.
    """

    numeric_level = normalize_level(level)
    logging.basicConfig(level=numeric_level, format=fmt or DEFAULT_LOG_FORMAT)
    logging.getLogger().setLevel(numeric_level)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module or component."""

    return logging.getLogger(name)


def normalize_level(level: str) -> int:
    """Map a level name to its numeric value, falling back to INFO."""

    return logging.getLevelNamesMapping().get(level.strip().upper(), logging.INFO)

from __future__ import annotations

import logging

from autocut.config import LoggingSettings
from autocut.errors import ConfigurationError

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
SILENT = logging.CRITICAL + 10

# ordered from most to least verbose
LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "silent": SILENT,
}


def resolve_log_level(name: str) -> int:
    normalized = name.strip().lower()
    if normalized == "warning":
        normalized = "warn"
    try:
        return LOG_LEVELS[normalized]
    except KeyError:
        raise ConfigurationError(
            f"Unknown log level '{name}'. Expected one of: {', '.join(LOG_LEVELS)}."
        ) from None


def configure_logging(settings: LoggingSettings) -> None:
    """Configure process-wide logging once at startup."""

    logging.basicConfig(
        level=resolve_log_level(settings.level),
        format=DEFAULT_LOG_FORMAT,
        force=True,
    )

"""Process-wide logging shared by the booking API and its store."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from backend.utils.config import get_settings


_LOGGER_INITIALIZED = False

# Held at WARNING or above; they log every HTTP request at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "multipart")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure process-wide logging once.

    Every layer logs through the same handler and format so booking commits,
    rejections and startup steps read as one stream.
    """

    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    settings = get_settings()
    resolved_level = (level or settings.log_level).upper()

    logging.basicConfig(
        level=resolved_level,
        format=(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
        ),
        stream=sys.stdout,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, logging.getLogger().level))
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    """Module logger; the first call installs the shared stdout handler."""
    configure_logging()
    return logging.getLogger(name)

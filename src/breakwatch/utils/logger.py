"""Application-wide logger writing to platformdirs user_log_dir."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from platformdirs import user_log_dir

_APP_NAME = "breakwatch"
_LOG_FILE = "breakwatch.log"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3

_logger: logging.Logger | None = None


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the application logger, initialising it on first call.

    ``name`` selects a child logger (``breakwatch.<name>``) that shares the
    root application handler.
    """
    global _logger
    if _logger is None:
        log_dir = Path(user_log_dir(_APP_NAME))
        log_dir.mkdir(parents=True, exist_ok=True)

        logger = logging.getLogger(_APP_NAME)
        logger.setLevel(logging.DEBUG)
        # Capture handlers installed by test runners do not count
        if not any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers):
            handler = logging.handlers.RotatingFileHandler(
                log_dir / _LOG_FILE,
                maxBytes=_MAX_BYTES,
                backupCount=_BACKUP_COUNT,
                encoding="utf-8",
            )
            handler.setFormatter(
                logging.Formatter(
                    fmt="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
                    datefmt="%Y-%m-%dT%H:%M:%S",
                )
            )
            logger.addHandler(handler)
        logger.propagate = False

        _logger = logger

    if name:
        return _logger.getChild(name)
    return _logger

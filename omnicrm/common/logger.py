"""Logging for OmniCRM.

Modules log through `get_logger(__name__)`. Handlers live only on the
"omnicrm" package logger, which `setup_logger` configures once from the
application settings (level, optional rotating file under `log_dir`).
"""

import logging
import logging.handlers
import os
from typing import Optional

from omnicrm.core.config import Settings, get_settings

PACKAGE_LOGGER = "omnicrm"
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _level(name: str) -> int:
    level = name.upper()
    if level not in _LEVELS:
        raise ValueError(f"Invalid log level: {name}. Must be one of: {', '.join(_LEVELS)}")
    return getattr(logging, level)


def setup_logger(settings: Optional[Settings] = None, name: str = PACKAGE_LOGGER) -> logging.Logger:
    """Attach console and (if enabled) rotating file handlers to `name`.

    Calling it again only re-applies the level; handlers are added once.

    Raises:
        ValueError: If settings.log_level is not a standard level name
    """
    settings = settings or get_settings()
    logger = logging.getLogger(name)
    logger.setLevel(_level(settings.log_level))

    if logger.handlers:
        return logger

    handlers = [logging.StreamHandler()]
    if settings.file_logging:
        os.makedirs(settings.log_dir, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            os.path.join(settings.log_dir, f"{name}.log"),
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUPS,
        ))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Module logger, nested under the package logger so its handlers apply."""
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)

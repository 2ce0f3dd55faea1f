"""
Logging configuration.

Modules log through ``logging.getLogger(__name__)``; the single stdout handler
sits on the ``donation_sync`` package logger so every module shares it.
"""
import logging
import sys
from typing import Optional

from donation_sync.config import Settings, get_settings

PACKAGE_LOGGER = "donation_sync"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Attach the stdout handler once and apply DEBUG / LOG_LEVEL"""
    settings = settings or get_settings()
    root = logging.getLogger(PACKAGE_LOGGER)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    if settings.DEBUG:
        root.setLevel(logging.DEBUG)
    else:
        root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    return root


def get_logger(name: str) -> logging.Logger:
    """Package-scoped logger, configured on first use"""
    configure_logging()
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")

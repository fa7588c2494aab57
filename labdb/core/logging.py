"""Logging setup shared by the maintenance entry points."""

from __future__ import annotations

import logging
from typing import Optional

from labdb.core.config import Settings, get_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Install a root handler using the configured level and format."""

    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
    logging.getLogger("labdb").setLevel(settings.LOG_LEVEL)

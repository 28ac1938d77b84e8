from __future__ import annotations

import logging
import os
from typing import Optional

from convingest.config.models import LOG_LEVEL_ENV, LoggingSettings

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel((level or "INFO").upper())
        handler = logging.StreamHandler()
        formatter = logging.Formatter(DEFAULT_FORMAT)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """Root logging from settings; ``CONVINGEST_LOG_LEVEL`` wins when set."""
    settings = settings or LoggingSettings()
    level_name = (os.getenv(LOG_LEVEL_ENV) or settings.level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=settings.format,
    )

"""Logging setup for scripts that drive the stores."""

import logging
import sys
from typing import Optional

from lcpstore.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Send log records to stdout at ``level`` (defaults to settings.LOG_LEVEL)."""
    level_name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

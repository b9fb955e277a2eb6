"""Logging setup for scripts and applications embedding euvat."""
import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging. ``level`` defaults to Settings.log_level."""
    if level is None:
        from euvat.core.config import get_settings

        level = get_settings().log_level

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

import logging
from typing import Optional

from app.core.config import settings

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger from LOG_LEVEL unless a level is given."""
    log_level = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO), format=_DEFAULT_FORMAT)

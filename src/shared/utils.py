import sys
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo

from loguru import logger as loguru_logger

from src.config.settings_env import settings


def initialize_logger():
    """Initialize the logger based on DEV_MODE setting."""
    loguru_logger.remove()

    if settings.DEV_MODE:
        loguru_logger.add(sys.stderr, level="TRACE")
    else:
        loguru_logger.add(sys.stderr, level="INFO")

    return loguru_logger


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def local_timezone() -> tzinfo:
    """Zone in which parking opening hours are expressed."""
    if settings.LOCAL_TIMEZONE.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(settings.LOCAL_TIMEZONE)


# Initialize logger
logger = initialize_logger()

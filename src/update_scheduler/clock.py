from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

import tzlocal

from update_scheduler.config import get_settings


def local_zone() -> tzinfo:
    name = get_settings().timezone
    if name:
        return ZoneInfo(name)
    return tzlocal.get_localzone()


def now() -> datetime:
    """
    Current moment as a timezone-aware datetime. Every task reads time through
    this function so callers (and tests) can replace it.
    """
    return datetime.now(local_zone())

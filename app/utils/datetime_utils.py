# app/utils/datetime_utils.py
import os
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

# Calendar days for session logging are counted in this zone
GOAL_TIMEZONE = ZoneInfo(os.getenv("GOAL_TIMEZONE", "UTC"))


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_naive() -> datetime:
    """Naive UTC, the shape Mongo hands back for stored datetimes."""
    return now_utc().replace(tzinfo=None)


def now_local() -> datetime:
    """Naive wall-clock time in GOAL_TIMEZONE."""
    return datetime.now(GOAL_TIMEZONE).replace(tzinfo=None)


def to_wall_clock(dt):
    """Drop tzinfo after converting to GOAL_TIMEZONE; naive values pass through."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(GOAL_TIMEZONE).replace(tzinfo=None)


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)

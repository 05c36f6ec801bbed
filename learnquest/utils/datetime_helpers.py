"""
Date/Time Handling for Streaks and Timestamps

Streak correctness depends entirely on where one calendar day ends and the
next begins. The policy used everywhere in learnquest:

- Stored timestamps are timezone-aware UTC (use now_utc()).
- Calendar days are evaluated in the session timezone (use calendar_day()).
- Naive datetimes handed in by callers are taken to already be in the
  session timezone.
"""

import logging
from datetime import datetime, date
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from learnquest.config import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")


def resolve_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """
    Resolve an IANA timezone name, falling back to DEFAULT_TIMEZONE

    Args:
        tz_name: IANA timezone name (e.g. 'Europe/Stockholm')

    Returns:
        ZoneInfo object
    """
    name = tz_name or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.error(f"Invalid timezone '{name}': {e}")
        return UTC


def now_utc() -> datetime:
    """Current datetime in UTC (timezone-aware)"""
    return datetime.now(UTC)


def calendar_day(moment: Union[datetime, date], tz: ZoneInfo) -> date:
    """
    Calendar date of a moment in the given timezone

    Args:
        moment: Aware datetime, naive datetime (already in tz) or date
        tz: Timezone whose midnight boundaries define the day

    Returns:
        Calendar date
    """
    if isinstance(moment, datetime):
        if moment.tzinfo is None:
            return moment.date()
        return moment.astimezone(tz).date()
    return moment


def days_between(earlier: date, later: date) -> int:
    """Whole calendar days from earlier to later (negative if reversed)"""
    return (later - earlier).days


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware UTC

    Args:
        dt: Datetime (naive values are assumed to be UTC)

    Returns:
        Aware UTC datetime, or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)

"""
Date/time resolution for extracted events.
Parses ISO-8601 shaped strings, anchors them to the operating timezone, and
applies year-rollover correction to dates that already passed.
"""

from datetime import datetime
from typing import Optional

from dateutil import parser as dateutil_parser
from dateutil import tz as dateutil_tz
from dateutil.relativedelta import relativedelta

from scheduleshare.logging_helper import Log

DEFAULT_OPERATING_TIMEZONE = "America/New_York"


def default_zone():
    return dateutil_tz.gettz(DEFAULT_OPERATING_TIMEZONE)


def _tz_display(dt: datetime) -> str:
    """Readable offset for logs, e.g. 'EDT (UTC-4)' or 'IST (UTC+5:30)'."""
    if dt.tzinfo is None:
        return "None"
    tz_offset = dt.strftime("%z")  # e.g., "-0400"
    tz_name = dt.strftime("%Z")      # e.g., "EDT"
    if not tz_offset:
        return tz_name or "None"
    offset_hours = int(tz_offset[1:3])
    offset_mins = int(tz_offset[3:5])
    if offset_mins == 0:
        return f"{tz_name} (UTC{tz_offset[0]}{offset_hours})"
    return f"{tz_name} (UTC{tz_offset[0]}{offset_hours}:{offset_mins:02d})"


def anchor(dt: datetime, zone=None) -> datetime:
    """Attach the operating zone to a naive datetime; aware values are kept."""
    if dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=zone or default_zone())


def parse_iso_datetime(value: Optional[str], zone=None) -> Optional[datetime]:
    """
    Parse an ISO-8601 shaped timestamp.

    Args:
        value: String such as "2025-08-05T18:30:00-04:00" or "2025-08-05T18:30:00"
        zone: Operating timezone for values without an offset

    Returns:
        Timezone-aware datetime, or None if the string cannot be parsed
    """
    if not value:
        return None

    try:
        dt = dateutil_parser.isoparse(value.strip())
    except (ValueError, OverflowError) as e:
        Log.warn(f"Date parsing error for '{value}': {e}")
        return None

    dt = anchor(dt, zone)

    # Strip microseconds to avoid precision issues and cleaner logs
    if dt.microsecond != 0:
        dt = dt.replace(microsecond=0)

    Log.info(f"Parsed datetime: {dt} ({_tz_display(dt)})")
    return dt


def resolve_year_rollover(dt: datetime, now: datetime, zone=None) -> datetime:
    """
    Move a date that already passed this year into next year.

    The parsed timestamp's own calendar date is compared with today's date in
    the operating zone. If it is strictly before today, exactly one year is
    added to the original timestamp, keeping its time of day and offset.
    """
    zone = zone or default_zone()
    parsed_day = dt.date()
    today = anchor(now, zone).astimezone(zone).date()

    if parsed_day < today:
        adjusted = dt + relativedelta(years=1)
        Log.info(f"Date {parsed_day} was in the past, adjusted to next year: {adjusted}")
        Log.kv({"stage": "resolve", "result": "rolled_over", "original": dt.isoformat(), "resolved": adjusted.isoformat()})
        return adjusted

    return dt


def resolve(value: Optional[str], now: datetime, zone=None) -> Optional[datetime]:
    """Parse an extracted timestamp string and apply year-rollover correction."""
    dt = parse_iso_datetime(value, zone)
    if dt is None:
        return None
    return resolve_year_rollover(dt, now, zone)

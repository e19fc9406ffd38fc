"""
Timezone utility functions.
Timestamps are stored as naive UTC; display conversion uses the configured DISPLAY_TIMEZONE.
"""

from datetime import datetime, timezone
import pytz
from flask import current_app, has_app_context
from typing import Optional, Union

DEFAULT_DISPLAY_TIMEZONE = "America/Halifax"


def get_display_timezone() -> str:
    """
    Get the configured display timezone.
    Falls back to the default outside an application context.
    """
    if has_app_context():
        return current_app.config.get('DISPLAY_TIMEZONE', DEFAULT_DISPLAY_TIMEZONE)
    return DEFAULT_DISPLAY_TIMEZONE


def utc_now() -> datetime:
    """Current time in UTC (timezone-aware)."""
    return datetime.now(timezone.utc)


def utc_now_naive() -> datetime:
    """Current UTC time without tzinfo, the form used for database columns."""
    return utc_now().replace(tzinfo=None)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalise an aware or naive datetime to naive UTC. Naive input is assumed to be UTC already."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def convert_utc_to_display(utc_dt: Union[datetime, str]) -> datetime:
    """
    Convert a UTC datetime to the configured display timezone.

    Args:
        utc_dt: UTC datetime object or ISO string

    Returns:
        Datetime object in the display timezone
    """
    if isinstance(utc_dt, str):
        if utc_dt.endswith('Z'):
            utc_dt = utc_dt[:-1]
        utc_dt = datetime.fromisoformat(utc_dt)

    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)
    else:
        utc_dt = utc_dt.astimezone(timezone.utc)

    display_tz = pytz.timezone(get_display_timezone())
    return utc_dt.astimezone(display_tz)


def parse_datetime_string(dt_string: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 or YYYY-MM-DD string into a naive UTC datetime.
    Strings without an offset are read in the display timezone.

    Raises:
        ValueError: If the string cannot be parsed
    """
    if not dt_string:
        return None

    try:
        dt = datetime.fromisoformat(dt_string.replace('Z', '+00:00'))
    except ValueError:
        for fmt in ('%Y-%m-%d %H:%M:%S', '%Y-%m-%d', '%d/%m/%Y'):
            try:
                dt = datetime.strptime(dt_string, fmt)
                break
            except ValueError:
                continue
        else:
            raise ValueError(f"Unable to parse datetime string: {dt_string}")

    if dt.tzinfo is None:
        display_tz = pytz.timezone(get_display_timezone())
        dt = display_tz.localize(dt, is_dst=None)
    return to_naive_utc(dt)


def format_datetime_for_display(utc_dt: Optional[datetime], fmt: str = "%Y-%m-%d %H:%M") -> str:
    """Format a UTC datetime for display in the configured timezone."""
    if utc_dt is None:
        return ""
    return convert_utc_to_display(utc_dt).strftime(fmt)


"""Shared time and date helpers used across the booking client."""

from datetime import date, datetime, time
from typing import Optional, Union

TIME_FORMATS = ("%H:%M:%S", "%H:%M")


def parse_time_of_day(value: str) -> time:
    """Parse an ``HH:MM`` or ``HH:MM:SS`` string.

    Raises:
        ValueError: If the value matches neither format.
    """
    cleaned = value.strip()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time of day: {value!r}")


def normalize_time(value: str) -> str:
    """Normalize a time-of-day string to ``HH:MM:SS``.

    Examples:
        >>> normalize_time("09:30")
        '09:30:00'
        >>> normalize_time("9:30:15")
        '09:30:15'
    """
    return parse_time_of_day(value).strftime("%H:%M:%S")


def format_time_range(start: str, end: str) -> str:
    """Render a slot window for display, e.g. ``9:00 AM - 10:30 AM``."""

    def _fmt(value: str) -> str:
        return parse_time_of_day(value).strftime("%I:%M %p").lstrip("0")

    return f"{_fmt(start)} - {_fmt(end)}"


def to_iso_date(value: Union[date, str, None]) -> Optional[str]:
    """Coerce a date or ISO-ish string to ``YYYY-MM-DD``; blank/invalid -> None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    try:
        return date.fromisoformat(cleaned[:10]).isoformat()
    except ValueError:
        return None

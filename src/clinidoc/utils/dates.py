"""ISO-8601 parsing helpers shared by the models and the formatter."""

from datetime import date, datetime, time, timezone
from typing import Any, Optional


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a date-like value into a datetime.

    Accepts datetime and date objects and ISO-8601 strings (a trailing ``Z``
    is treated as UTC). Timezone-aware results are converted to naive local
    wall-clock values in their own offset, which is what the documents show.

    Args:
        value: Raw value to parse

    Returns:
        Parsed datetime, or None if the value cannot be interpreted as a date

    Example:
        >>> parse_datetime("2024-03-01T10:30:00Z")
        datetime.datetime(2024, 3, 1, 10, 30)
        >>> parse_datetime("not a date") is None
        True
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None) if value.tzinfo else value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed


def parse_date(value: Any) -> Optional[date]:
    """Parse a date-like value into a date, dropping any time part."""
    parsed = parse_datetime(value)
    return parsed.date() if parsed is not None else None


def parse_time(value: Any) -> Optional[time]:
    """Parse a time-like value.

    Accepts time objects, ``HH:MM[:SS]`` strings and full ISO timestamps.
    """
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        try:
            return time.fromisoformat(value.strip())
        except ValueError:
            pass
    parsed = parse_datetime(value)
    return parsed.time() if parsed is not None else None


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize an optional datetime or date to an ISO-8601 string."""
    return value.isoformat() if value is not None else None


def utc_now() -> datetime:
    """Current UTC time as a naive datetime.

    Default clock for services; tests inject their own.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)

"""UTC clock helpers.

All obligation windows are computed on UTC calendar dates.
"""

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    """Current timezone-aware UTC timestamp."""
    return datetime.now(UTC)


def utc_today() -> date:
    """Current UTC calendar date."""
    return utc_now().date()


def as_date(value: date | datetime) -> date:
    """Truncate a datetime to its calendar date; dates pass through."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    return value


def parse_iso_date(value: str) -> date:
    """Parse ``YYYY-MM-DD`` (or a full ISO timestamp) into a date."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        return as_date(datetime.fromisoformat(value))

"""Calendar date helpers shared by the status engine and input models.

Dates are stored as ``YYYY-MM-DD`` strings. Two parsers exist on purpose:
``validate_calendar_date`` is strict and guards every write path, while
``parse_calendar_date`` is lenient and lets the status engine read records
that were edited by hand without raising.
"""

import re
from datetime import date, datetime

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_calendar_date(value: str, field: str = "date") -> date:
    """Parse a ``YYYY-MM-DD`` string, raising on anything else.

    Args:
        value: Date string to parse
        field: Field name used in the error message

    Returns:
        The parsed date

    Raises:
        ValueError: If the string does not match the grammar or names a
            day that does not exist (e.g. 2024-02-30)
    """
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValueError(f"Invalid {field}: {value!r} (expected YYYY-MM-DD)")
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValueError(f"Invalid {field}: {value!r} is not a real calendar date") from e


def parse_calendar_date(value: object) -> date | None:
    """Parse a stored date, returning None when it is absent or malformed."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return validate_calendar_date(value)  # type: ignore[arg-type]
    except ValueError:
        return None


def to_calendar_date(now: date | datetime | None) -> date:
    """Reduce a reference instant to the calendar day it falls on."""
    if now is None:
        return date.today()
    if isinstance(now, datetime):
        return now.date()
    return now


def format_date(value: date) -> str:
    return value.isoformat()

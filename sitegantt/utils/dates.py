"""
Calendar date helpers.

Task dates are stored as ``YYYY-MM-DD`` strings. They are parsed as plain
``datetime.date`` values (no time zone, no time of day) so that day
arithmetic never shifts across midnight.
"""

import math
import re
from datetime import date, datetime, timedelta
from typing import Optional, Union

DateLike = Union[str, date, datetime, None]

STORAGE_FORMAT = "%Y-%m-%d"
DISPLAY_FORMAT = "%d/%m/%Y"

_ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_DISPLAY_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})")
_SHORT_DISPLAY_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{2})$")


def parse_date(value: DateLike) -> Optional[date]:
    """
    Parse a date value into a ``date``.

    Accepts ``date``/``datetime`` objects and strings in ``YYYY-MM-DD``,
    ``DD/MM/YYYY`` or ``DD/MM/YY`` form. Anything else, including an
    impossible calendar date, yields None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        match = _ISO_RE.match(text)
        if match:
            year, month, day = (int(g) for g in match.groups())
            return date(year, month, day)

        match = _DISPLAY_RE.match(text)
        if match:
            day, month, year = (int(g) for g in match.groups())
            return date(year, month, day)

        match = _SHORT_DISPLAY_RE.match(text)
        if match:
            day, month, year = (int(g) for g in match.groups())
            return date(2000 + year, month, day)
    except ValueError:
        return None

    return None


def format_date(value: Optional[date], fmt: str = STORAGE_FORMAT) -> str:
    """Format a date for storage; None becomes an empty string."""
    if value is None:
        return ""
    return value.strftime(fmt)


def days_between(later: date, earlier: date) -> int:
    """Whole calendar days from ``earlier`` to ``later`` (negative if reversed)."""
    return (later - earlier).days


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def inclusive_duration(start: Optional[date], end: Optional[date]) -> int:
    """
    Number of days covered by an inclusive range.

    Degenerate ranges (end before start) and missing dates count as one day.
    """
    if start is None or end is None:
        return 1
    return max(1, days_between(end, start) + 1)


def today() -> date:
    return date.today()


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def week_start(value: date) -> date:
    """Monday of the week containing ``value``."""
    return value - timedelta(days=value.weekday())

"""Date parsing and relative-date resolution."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone

from .patterns import HEADING_DATE_ISO, HEADING_DATE_NATURAL, HEADING_DATE_SLASH

# Tried in order; the first strict match wins.
ABSOLUTE_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%y", "%m/%d/%Y")

_MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}


def parse_absolute_date(date_str: str) -> date | None:
    """Parse ``2026-01-25``, ``1/25/26`` or ``1/25/2026``.

    Impossible calendar dates (``2025-02-29``) are rejected. Two-digit years
    follow ``strptime``: 00-68 map to 2000-2068, 69-99 to 1969-1999.
    """
    date_str = date_str.strip()
    for fmt in ABSOLUTE_DATE_FORMATS:
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue
    return None


def add_months(base: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    index = base.month - 1 + months
    year = base.year + index // 12
    month = index % 12 + 1
    day = min(base.day, calendar.monthrange(year, month)[1])
    return base.replace(year=year, month=month, day=day)


def start_of_week(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def resolve_relative_date(keyword: str, base: date) -> date | None:
    """Resolve ``today``, ``tomorrow``, ``next week`` or ``next month``.

    ``next week`` is the Monday after the week containing ``base``, so it
    is always in the future, even when ``base`` is a Monday.
    """
    normalized = " ".join(keyword.lower().split())
    if normalized == "today":
        return base
    if normalized == "tomorrow":
        return base + timedelta(days=1)
    if normalized == "next week":
        return start_of_week(base) + timedelta(weeks=1)
    if normalized == "next month":
        return add_months(base, 1)
    return None


def extract_date_from_heading(line: str) -> date | None:
    """Find a date in a markdown heading.

    Tries slash (``1/13/26``), ISO (``2026-01-13``), then natural
    (``Jan 13, 2026``) forms.
    """
    m = HEADING_DATE_SLASH.match(line)
    if m:
        parsed = parse_absolute_date(m.group(1))
        if parsed:
            return parsed

    m = HEADING_DATE_ISO.match(line)
    if m:
        parsed = parse_absolute_date(m.group(1))
        if parsed:
            return parsed

    m = HEADING_DATE_NATURAL.match(line)
    if m:
        month = _MONTHS[m.group(1)[:3].lower()]
        try:
            return date(int(m.group(3)), month, int(m.group(2)))
        except ValueError:
            return None

    return None


def utc_day(instant: datetime | date) -> date:
    """Calendar day of ``instant`` in UTC; naive datetimes count as UTC."""
    if isinstance(instant, datetime):
        if instant.tzinfo is not None:
            instant = instant.astimezone(timezone.utc)
        return instant.date()
    return instant

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Iterator, List, Optional, Tuple

from ..core.exceptions import InvalidRequestError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidRequestError(f"Invalid date (YYYY-MM-DD): {value!r}")


def parse_hhmm(value: Optional[str]) -> Optional[time]:
    v = (value or "").strip()
    if not v:
        return None
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise InvalidRequestError(f"Invalid time (HH:MM): {value!r}")


def format_hhmm(value: Optional[time]) -> str:
    return value.strftime("%H:%M") if value else ""


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def working_days(start: date, end: date) -> List[date]:
    """Days of a requested range that produce vacation requests.

    A single-day range is kept even on a weekend; longer ranges skip Saturday
    and Sunday.
    """
    if start == end:
        return [start]
    return [d for d in iter_days(start, end) if not is_weekend(d)]


def month_window(anchor: date, months: int) -> Tuple[date, date]:
    """First day of anchor's month to the last day of the month `months - 1` later."""
    months = max(int(months), 1)
    start = anchor.replace(day=1)
    month_index = start.month - 1 + months - 1
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return start, date(year, month, last_day)

"""GMB Dashboard: Month Ordering.

Insight rows carry their month as a three-letter name ("Jan".."Dec") and,
when the source had one, an ISO date. Ordering is by position in
MONTH_ORDER; the year from the date (when present) breaks ties across
a year boundary.
"""

from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

MONTH_ORDER = [
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
]


def month_index(month: str) -> int:
    """Position of a month name in MONTH_ORDER, -1 if unrecognised."""
    try:
        return MONTH_ORDER.index(month)
    except ValueError:
        return -1


def sort_months(months: Iterable[str], reverse: bool = False) -> List[str]:
    """Order month names by calendar position.

    Unrecognised names sort before "Jan" (after "Dec" when reversed).
    """
    return sorted(months, key=month_index, reverse=reverse)


def parse_year(value: Optional[str]) -> int:
    """Year from an ISO date string, 0 if it does not parse."""
    if not value:
        return 0
    try:
        return datetime.fromisoformat(str(value)[:10]).year
    except ValueError:
        return 0


def period_key(month: str, date_value: Optional[str] = None) -> Tuple[int, int]:
    """(year, month index) for ordering rows across years."""
    return parse_year(date_value), month_index(month)


def previous_calendar_month(today: Optional[date] = None) -> str:
    """Name of the month before today's, used when there is no data."""
    today = today or datetime.now(timezone.utc).date()
    return MONTH_ORDER[today.month - 2] if today.month > 1 else "Dec"


def latest_period(rows: Sequence) -> Tuple[str, int]:
    """(month, year) of the most recent row, by period_key.

    Falls back to the previous calendar month when there are no rows.
    """
    if not rows:
        today = datetime.now(timezone.utc).date()
        year = today.year - 1 if today.month == 1 else today.year
        return previous_calendar_month(today), year
    latest = max(rows, key=lambda r: period_key(r.month, r.date))
    return latest.month, parse_year(latest.date)


def latest_month(rows: Sequence) -> str:
    """Month name of the most recent row (see latest_period)."""
    return latest_period(rows)[0]


def in_period(row, period: Tuple[str, int]) -> bool:
    """True if `row` falls in the (month, year) period.

    Undated rows have year 0, so they only match a period of year 0.
    """
    month, year = period
    return row.month == month and parse_year(row.date) == year

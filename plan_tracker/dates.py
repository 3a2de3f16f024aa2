from __future__ import annotations

from calendar import month_name, monthrange
from datetime import date, datetime, timedelta
from typing import Union

from plan_tracker.constants import DAYS_PER_WEEK

DateLike = Union[date, str]


ISO_DATE_FORMAT = "%Y-%m-%d"
ISO_DATE_LENGTH = 10


def parse_date(value: DateLike | None) -> date | None:
    """Return a calendar date for ``value`` or ``None`` when it is not a ``YYYY-MM-DD`` date."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    # strptime alone also takes "2024-1-5"; stored keys are always zero padded.
    if len(text) != ISO_DATE_LENGTH:
        return None
    try:
        return datetime.strptime(text, ISO_DATE_FORMAT).date()
    except ValueError:
        return None


def date_key(value: date) -> str:
    return value.isoformat()


def week_start(value: date) -> date:
    """Monday of the week containing ``value``."""

    return value - timedelta(days=value.weekday())


def week_dates(start: date) -> list[date]:
    """The seven days from ``start``; empty when the week would run past ``date.max``."""

    if (date.max - start).days < DAYS_PER_WEEK - 1:
        return []
    return [start + timedelta(days=offset) for offset in range(DAYS_PER_WEEK)]


def month_days(year: int, month: int) -> list[date]:
    if not 1 <= month <= 12 or not date.min.year <= year <= date.max.year:
        return []
    _, days_in_month = monthrange(year, month)
    return [date(year, month, day) for day in range(1, days_in_month + 1)]


def month_label(month: int) -> str:
    if not 1 <= month <= 12:
        return ""
    return month_name[month]


__all__ = [
    "DateLike",
    "date_key",
    "month_days",
    "month_label",
    "parse_date",
    "week_dates",
    "week_start",
]

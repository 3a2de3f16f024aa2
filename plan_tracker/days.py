from __future__ import annotations

from typing import Mapping

from plan_tracker.dates import DateLike, date_key, parse_date, week_dates
from plan_tracker.migrations import normalize_day_record
from plan_tracker.models import DayRecord, MutationResult, PlannerDocument


def load_day(document: PlannerDocument, day: DateLike) -> DayRecord:
    target_day = parse_date(day)
    if target_day is None:
        return {}
    return dict(document.days.get(date_key(target_day), {}))


def save_day(document: PlannerDocument, day: DateLike, values: Mapping[str, object]) -> MutationResult:
    """Replace the whole record for ``day``; values are stored as given, not clamped."""

    target_day = parse_date(day)
    if target_day is None:
        return MutationResult.ignored()
    document.days[date_key(target_day)] = normalize_day_record(values)
    return MutationResult.applied_to()


def load_week(document: PlannerDocument, week_start: DateLike) -> dict[str, DayRecord]:
    start = parse_date(week_start)
    if start is None:
        return {}
    return {date_key(day): dict(document.days.get(date_key(day), {})) for day in week_dates(start)}


__all__ = ["load_day", "load_week", "save_day"]

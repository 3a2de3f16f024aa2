from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import StrEnum
from statistics import fmean, pvariance
from typing import Callable, Sequence

from plan_tracker.constants import DAYS_PER_WEEK, TREND_THRESHOLD
from plan_tracker.dates import DateLike, date_key, month_days, month_label, parse_date, week_dates
from plan_tracker.models import PlannerDocument, TaskTemplate
from plan_tracker.registry import tasks_valid_on


class Trend(StrEnum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass
class WeeklyReport:
    daily_percentages: list[float]
    weekly_average: float

    @property
    def has_progress(self) -> bool:
        return self.weekly_average > 0 or any(value > 0 for value in self.daily_percentages)


@dataclass
class MonthlyReport:
    weekly_averages: list[float]
    month_name: str
    trend: Trend = Trend.STABLE


@dataclass
class YearlyReport:
    monthly_averages: list[float]
    most_consistent_month: int = 0
    year_total: float = 0.0


@dataclass
class StreakSummary:
    perfect_days: int = 0
    task_streaks: dict[str, int] = field(default_factory=dict)


def _completion_percentage(tasks: Sequence[TaskTemplate], record: dict[str, int]) -> float:
    completed = sum(1 for task in tasks if record.get(task.id, 0) > 0)
    return completed / len(tasks) * 100.0


def day_percentage(document: PlannerDocument, day: date) -> float | None:
    """Share of tasks valid on ``day`` with a value above zero.

    ``None`` when no task was valid that day or nothing was recorded for it;
    callers decide whether that counts as 0 or is left out.
    """

    tasks = tasks_valid_on(document, day)
    if not tasks:
        return None
    record = document.days.get(date_key(day))
    if record is None:
        return None
    return _completion_percentage(tasks, record)


def weekly_report(document: PlannerDocument, week_start: DateLike) -> WeeklyReport:
    start = parse_date(week_start)
    if start is None:
        return WeeklyReport(daily_percentages=[], weekly_average=0.0)

    daily = [day_percentage(document, day) or 0.0 for day in week_dates(start)]
    # Empty days still count: the average is always over all seven days.
    return WeeklyReport(daily_percentages=daily, weekly_average=sum(daily) / DAYS_PER_WEEK)


def classify_trend(block_averages: Sequence[float]) -> Trend:
    if len(block_averages) < 2:
        return Trend.STABLE
    first, last = block_averages[0], block_averages[-1]
    if last > first + TREND_THRESHOLD:
        return Trend.UP
    if last < first - TREND_THRESHOLD:
        return Trend.DOWN
    return Trend.STABLE


def monthly_report(document: PlannerDocument, year: int, month: int) -> MonthlyReport:
    """Averages of consecutive 7-day blocks starting on the 1st; the last block may be shorter."""

    days = month_days(year, month)
    blocks = [days[offset : offset + DAYS_PER_WEEK] for offset in range(0, len(days), DAYS_PER_WEEK)]
    averages = [sum(day_percentage(document, day) or 0.0 for day in block) / len(block) for block in blocks]
    return MonthlyReport(weekly_averages=averages, month_name=month_label(month), trend=classify_trend(averages))


def yearly_report(document: PlannerDocument, year: int) -> YearlyReport:
    monthly_averages = [0.0] * 12
    monthly_variances = [0.0] * 12

    for month in range(1, 13):
        percentages = [
            value for value in (day_percentage(document, day) for day in month_days(year, month)) if value is not None
        ]
        if not percentages:
            continue
        monthly_averages[month - 1] = fmean(percentages)
        monthly_variances[month - 1] = pvariance(percentages)

    most_consistent = 0
    lowest_variance: float | None = None
    for index, variance in enumerate(monthly_variances):
        if monthly_averages[index] <= 0:
            continue
        if lowest_variance is None or variance < lowest_variance:
            lowest_variance = variance
            most_consistent = index

    active_averages = [average for average in monthly_averages if average > 0]
    year_total = fmean(active_averages) if active_averages else 0.0
    return YearlyReport(
        monthly_averages=monthly_averages,
        most_consistent_month=most_consistent,
        year_total=year_total,
    )


def _count_back(predicate: Callable[[date], bool], today: date) -> int:
    # An unfinished today does not break the streak; it just does not count yet.
    pointer = today if predicate(today) or today == date.min else today - timedelta(days=1)
    streak = 0
    while predicate(pointer):
        streak += 1
        if pointer == date.min:
            break
        pointer -= timedelta(days=1)
    return streak


def _task_done_on(document: PlannerDocument, template: TaskTemplate) -> Callable[[date], bool]:
    def done(day: date) -> bool:
        if not template.is_valid_on(day):
            return False
        return document.days.get(date_key(day), {}).get(template.id, 0) > 0

    return done


def streak_summary(document: PlannerDocument, today: date) -> StreakSummary:
    def perfect(day: date) -> bool:
        value = day_percentage(document, day)
        return value is not None and value >= 100.0

    task_streaks = {
        template.id: _count_back(_task_done_on(document, template), today)
        for template in tasks_valid_on(document, today)
    }
    return StreakSummary(perfect_days=_count_back(perfect, today), task_streaks=task_streaks)


__all__ = [
    "MonthlyReport",
    "StreakSummary",
    "Trend",
    "WeeklyReport",
    "YearlyReport",
    "classify_trend",
    "day_percentage",
    "monthly_report",
    "streak_summary",
    "weekly_report",
    "yearly_report",
]

"""Entry point for presentation layers.

:class:`Planner` is the only object a UI needs: it owns the persisted
document, runs the startup migration and exposes the task registry, the day
store, the reports and the export bookkeeping. Reads run under a shared lock,
writes under an exclusive lock that is held until the file has been saved.

Write methods return a :class:`~plan_tracker.models.MutationResult`; unknown
task ids and invalid input are successful no-ops reported as ``not_found`` or
``ignored``. The only failure a caller has to handle is
:class:`~plan_tracker.storage.PersistenceError`, raised when a change could
not be written to disk (the in-memory change is kept).
"""

from __future__ import annotations

import functools
from datetime import date
from pathlib import Path
from typing import Mapping, Sequence

from plan_tracker import days, exports, registry, reports
from plan_tracker.constants import EXPORT_HISTORY_WEEKS
from plan_tracker.dates import DateLike
from plan_tracker.migrations import MigrationOutcome
from plan_tracker.models import DayRecord, MutationResult, TaskKind, TaskTemplate
from plan_tracker.state import Clock, PlannerState, persist_when_applied
from plan_tracker.storage import FileStorageBackend, StorageBackend


class Planner:
    def __init__(
        self,
        backend: StorageBackend | None = None,
        *,
        clock: Clock | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._state = PlannerState(backend, clock=clock)
        self._env = env

    @classmethod
    def open(
        cls,
        path: str | Path | None = None,
        *,
        clock: Clock | None = None,
        env: Mapping[str, str] | None = None,
    ) -> "Planner":
        """Create a planner backed by the data file and run the startup load."""

        planner = cls(FileStorageBackend(path, env=env), clock=clock, env=env)
        planner.startup()
        return planner

    def startup(self) -> MigrationOutcome:
        return self._state.load()

    def today(self) -> date:
        return self._state.today()

    # Task templates

    def add_task(self, name: str, kind: TaskKind | str | None = None, unit: str | None = None) -> TaskTemplate:
        today = self.today()
        return self._state.mutate(lambda document: registry.add_task(document, name, kind, unit, today=today))

    def update_task(self, task_id: str, name: str) -> MutationResult:
        return self._state.mutate(
            lambda document: registry.update_task(document, task_id, name),
            should_persist=persist_when_applied,
        )

    def set_task_kind(self, task_id: str, kind: TaskKind | str | None) -> MutationResult:
        return self._state.mutate(
            lambda document: registry.set_task_kind(document, task_id, kind),
            should_persist=persist_when_applied,
        )

    def delete_task(self, task_id: str) -> MutationResult:
        today = self.today()
        return self._state.mutate(
            lambda document: registry.delete_task(document, task_id, today=today),
            should_persist=persist_when_applied,
        )

    def reorder_tasks(self, task_ids: Sequence[str]) -> MutationResult:
        ids = list(task_ids)
        return self._state.mutate(lambda document: registry.reorder_tasks(document, ids))

    def get_task_templates(self) -> list[TaskTemplate]:
        return self._state.read(registry.get_task_templates)

    def get_tasks_for_date(self, day: DateLike) -> list[TaskTemplate]:
        return self._state.read(lambda document: registry.get_tasks_for_date(document, day))

    # Day records

    def load_day(self, day: DateLike) -> DayRecord:
        return self._state.read(lambda document: days.load_day(document, day))

    def save_day(self, day: DateLike, values: Mapping[str, object]) -> MutationResult:
        snapshot = dict(values)
        return self._state.mutate(
            lambda document: days.save_day(document, day, snapshot),
            should_persist=persist_when_applied,
        )

    def load_week(self, week_start: DateLike) -> dict[str, DayRecord]:
        return self._state.read(lambda document: days.load_week(document, week_start))

    # Reports

    def get_weekly_report(self, week_start: DateLike) -> reports.WeeklyReport:
        return self._state.read(lambda document: reports.weekly_report(document, week_start))

    def get_monthly_report(self, year: int, month: int) -> reports.MonthlyReport:
        return self._state.read(lambda document: reports.monthly_report(document, year, month))

    def get_yearly_report(self, year: int) -> reports.YearlyReport:
        return self._state.read(lambda document: reports.yearly_report(document, year))

    def get_streaks(self, today: date | None = None) -> reports.StreakSummary:
        reference_day = today or self.today()
        return self._state.read(lambda document: reports.streak_summary(document, reference_day))

    # Export bookkeeping

    def is_week_exported(self, week_start: DateLike) -> bool:
        return self._state.read(lambda document: exports.is_week_exported(document, week_start))

    def mark_week_exported(self, week_start: DateLike) -> MutationResult:
        today = self.today()
        return self._state.mutate(lambda document: exports.mark_week_exported(document, week_start, today=today))

    def set_export_directory(self, path: str | Path | None) -> MutationResult:
        return self._state.mutate(lambda document: exports.set_export_directory(document, path))

    def get_export_directory(self) -> str:
        return self._state.read(exports.get_export_directory)

    def save_export(self, filename: str, content: str) -> Path:
        export_path = self.get_export_directory() or None
        return exports.save_export(filename, content, export_path=export_path, env=self._env)

    def pending_export_weeks(self, weeks_back: int = EXPORT_HISTORY_WEEKS) -> list[str]:
        today = self.today()
        return self._state.read(
            functools.partial(exports.pending_export_weeks, today=today, weeks_back=weeks_back)
        )


__all__ = ["Planner"]

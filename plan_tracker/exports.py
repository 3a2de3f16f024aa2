from __future__ import annotations

import logging
import os
from datetime import date, timedelta
from pathlib import Path
from typing import Mapping

from plan_tracker.constants import (
    DEFAULT_EXPORT_ROOT_NAME,
    EXPORT_DIR_ENV,
    EXPORT_FOLDER_NAME,
    EXPORT_HISTORY_WEEKS,
    WEEKLY_EXPORT_FILENAME,
)
from plan_tracker.dates import DateLike, date_key, parse_date, week_start
from plan_tracker.models import MutationResult, PlannerDocument
from plan_tracker.reports import weekly_report
from plan_tracker.storage import atomic_write_text

LOGGER = logging.getLogger(__name__)


def _week_key(week: DateLike) -> str:
    parsed = parse_date(week)
    if parsed is None:
        return str(week)
    return date_key(parsed)


def is_week_exported(document: PlannerDocument, week: DateLike) -> bool:
    return _week_key(week) in document.export_history


def mark_week_exported(document: PlannerDocument, week: DateLike, *, today: date) -> MutationResult:
    document.export_history[_week_key(week)] = date_key(today)
    return MutationResult.applied_to()


def set_export_directory(document: PlannerDocument, path: str | Path | None) -> MutationResult:
    value = str(path).strip() if path is not None else ""
    document.export_path = value or None
    return MutationResult.applied_to()


def get_export_directory(document: PlannerDocument) -> str:
    return document.export_path or ""


def resolve_export_directory(export_path: str | None = None, *, env: Mapping[str, str] | None = None) -> Path:
    """Folder that receives exported reports: ``<root>/PLAN_Exports``.

    The root is the configured export path, else ``PLAN_EXPORT_DIR``, else the
    user's Downloads folder.
    """

    if export_path:
        root = Path(export_path).expanduser()
    else:
        env_map: Mapping[str, str] = env if env is not None else os.environ
        raw_value = env_map.get(EXPORT_DIR_ENV)
        if raw_value and raw_value.strip():
            root = Path(raw_value.strip()).expanduser()
        else:
            root = Path.home() / DEFAULT_EXPORT_ROOT_NAME
    return root / EXPORT_FOLDER_NAME


def weekly_export_filename(week: DateLike) -> str:
    return WEEKLY_EXPORT_FILENAME.format(week_start=_week_key(week))


def save_export(
    filename: str,
    content: str,
    *,
    export_path: str | None = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    """Write an already rendered report into the export folder and return its path."""

    safe_name = Path(filename).name
    if not safe_name:
        raise ValueError("Export filename must not be empty")

    target = resolve_export_directory(export_path, env=env) / safe_name
    atomic_write_text(target, content)
    LOGGER.info("Exported report to %s", target)
    return target


def pending_export_weeks(
    document: PlannerDocument,
    *,
    today: date,
    weeks_back: int = EXPORT_HISTORY_WEEKS,
) -> list[str]:
    """Past week starts, newest first, that have progress but were never exported."""

    pending: list[str] = []
    for offset in range(1, weeks_back + 1):
        if today - date.min < timedelta(weeks=offset):
            break
        start = week_start(today - timedelta(weeks=offset))
        key = date_key(start)
        if key in document.export_history:
            continue
        if weekly_report(document, start).has_progress:
            pending.append(key)
    return pending


__all__ = [
    "get_export_directory",
    "is_week_exported",
    "mark_week_exported",
    "pending_export_weeks",
    "resolve_export_directory",
    "save_export",
    "set_export_directory",
    "weekly_export_filename",
]

"""Schema detection and migration of persisted planner data.

Loading is a small pipeline: :func:`detect_format` looks at the structural
shape of the raw mapping, a converter registered in ``CONVERTERS`` turns it
into a :class:`PlannerDocument`, and :func:`ensure_default_templates` fills in
defaults. New schema versions get a new ``DocumentFormat`` member and a new
converter without touching the existing paths.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Any, Callable, Mapping, Union
from uuid import uuid4

from pydantic import ValidationError

from plan_tracker.constants import (
    CURRENT_FORMAT_KEYS,
    DEFAULT_TASK_NAMES,
    DOC_DAYS,
    DOC_EXPORT_HISTORY,
    DOC_EXPORT_HISTORY_ALIAS,
    DOC_EXPORT_PATH,
    DOC_EXPORT_PATH_ALIAS,
    DOC_TEMPLATES,
    LEGACY_TASK_COUNT,
)
from plan_tracker.models import DayRecord, PlannerDocument, TaskKind, TaskTemplate

LOGGER = logging.getLogger(__name__)


class DocumentFormat(StrEnum):
    EMPTY = "empty"
    CURRENT = "current"
    LEGACY = "legacy"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class BoolCell:
    value: bool


@dataclass(frozen=True)
class NumberCell:
    value: int | float


@dataclass(frozen=True)
class OtherCell:
    raw: object


CellValue = Union[BoolCell, NumberCell, OtherCell]


@dataclass
class MigrationOutcome:
    document: PlannerDocument
    source_format: DocumentFormat
    needs_save: bool = False


def classify_cell(raw: object) -> CellValue:
    # bool is a subclass of int, so it has to be checked first.
    if isinstance(raw, bool):
        return BoolCell(raw)
    if isinstance(raw, int) or (isinstance(raw, float) and math.isfinite(raw)):
        return NumberCell(raw)
    return OtherCell(raw)


def normalize_cell(cell: CellValue) -> int | None:
    """Map a loosely typed day value to its stored integer, or ``None`` to drop it."""

    if isinstance(cell, BoolCell):
        return 1 if cell.value else 0
    if isinstance(cell, NumberCell):
        return int(cell.value)
    return None


def normalize_day_record(raw: object) -> DayRecord:
    record: DayRecord = {}
    if not isinstance(raw, Mapping):
        return record
    for task_id, raw_value in raw.items():
        value = normalize_cell(classify_cell(raw_value))
        if value is not None:
            record[str(task_id)] = value
    return record


def _is_legacy_row(value: object) -> bool:
    if value is None:
        return True
    # A null slot reads as "not done", the way the old file format was decoded.
    return isinstance(value, list) and all(item is None or isinstance(item, bool) for item in value)


def detect_format(raw: Mapping[str, Any]) -> DocumentFormat:
    if not raw:
        return DocumentFormat.EMPTY
    if any(key in raw for key in CURRENT_FORMAT_KEYS):
        return DocumentFormat.CURRENT
    if all(_is_legacy_row(value) for value in raw.values()):
        return DocumentFormat.LEGACY
    return DocumentFormat.UNKNOWN


def default_templates(today: date) -> list[TaskTemplate]:
    return [
        TaskTemplate(id=str(uuid4()), name=name, kind=TaskKind.BINARY, order=index, created_at=today)
        for index, name in enumerate(DEFAULT_TASK_NAMES)
    ]


def legacy_templates(today: date) -> list[TaskTemplate]:
    return [
        TaskTemplate(
            id=f"task-{index + 1}",
            name=f"Task {index + 1}",
            kind=TaskKind.BINARY,
            order=index,
            created_at=today,
        )
        for index in range(LEGACY_TASK_COUNT)
    ]


def _coerce_templates(raw_templates: object) -> list[TaskTemplate]:
    templates: list[TaskTemplate] = []
    if not isinstance(raw_templates, list):
        return templates
    for raw in raw_templates:
        if not isinstance(raw, Mapping):
            LOGGER.warning("Skipping task template that is not an object: %r", raw)
            continue
        try:
            templates.append(TaskTemplate.model_validate(dict(raw)))
        except ValidationError as exc:
            LOGGER.warning("Skipping invalid task template %r: %s", raw.get("id"), exc)
    return templates


def _coerce_days(raw_days: object) -> dict[str, DayRecord]:
    days: dict[str, DayRecord] = {}
    if not isinstance(raw_days, Mapping):
        return days
    for day, raw_record in raw_days.items():
        if raw_record is not None and not isinstance(raw_record, Mapping):
            LOGGER.warning("Skipping day %s with unsupported record %r", day, raw_record)
            continue
        days[str(day)] = normalize_day_record(raw_record)
    return days


def _coerce_export_history(raw_history: object) -> dict[str, str]:
    if not isinstance(raw_history, Mapping):
        return {}
    return {str(week): value for week, value in raw_history.items() if isinstance(value, str)}


def _first_present(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _from_current(raw: Mapping[str, Any], today: date) -> MigrationOutcome:
    export_path = _first_present(raw, DOC_EXPORT_PATH, DOC_EXPORT_PATH_ALIAS)
    document = PlannerDocument(
        templates=_coerce_templates(raw.get(DOC_TEMPLATES)),
        days=_coerce_days(raw.get(DOC_DAYS)),
        export_path=export_path if isinstance(export_path, str) and export_path else None,
        export_history=_coerce_export_history(_first_present(raw, DOC_EXPORT_HISTORY, DOC_EXPORT_HISTORY_ALIAS)),
    )
    # Alternate key spellings are rewritten under the canonical names.
    needs_save = any(key in raw for key in (DOC_EXPORT_PATH_ALIAS, DOC_EXPORT_HISTORY_ALIAS))
    return MigrationOutcome(document=document, source_format=DocumentFormat.CURRENT, needs_save=needs_save)


def _from_legacy(raw: Mapping[str, Any], today: date) -> MigrationOutcome:
    if not any(raw.values()):
        return MigrationOutcome(document=PlannerDocument(), source_format=DocumentFormat.LEGACY)

    templates = legacy_templates(today)
    days: dict[str, DayRecord] = {}
    for day, flags in raw.items():
        record: DayRecord = {}
        for template, completed in zip(templates, flags or []):
            record[template.id] = 1 if completed else 0
        days[str(day)] = record

    LOGGER.info("Migrated %d legacy day(s) to the template format", len(days))
    document = PlannerDocument(templates=templates, days=days)
    return MigrationOutcome(document=document, source_format=DocumentFormat.LEGACY, needs_save=True)


def _from_empty(raw: Mapping[str, Any], today: date) -> MigrationOutcome:
    return MigrationOutcome(document=PlannerDocument(), source_format=DocumentFormat.EMPTY)


def _from_unknown(raw: Mapping[str, Any], today: date) -> MigrationOutcome:
    LOGGER.warning("Unrecognized planner data layout; starting with an empty planner")
    return MigrationOutcome(document=PlannerDocument(), source_format=DocumentFormat.UNKNOWN)


CONVERTERS: dict[DocumentFormat, Callable[[Mapping[str, Any], date], MigrationOutcome]] = {
    DocumentFormat.EMPTY: _from_empty,
    DocumentFormat.CURRENT: _from_current,
    DocumentFormat.LEGACY: _from_legacy,
    DocumentFormat.UNKNOWN: _from_unknown,
}


def ensure_default_templates(document: PlannerDocument, *, today: date) -> bool:
    """Seed the default tasks when the registry is empty; returns whether anything changed."""

    if document.templates:
        return False
    document.templates = default_templates(today)
    LOGGER.info("Created %d default task templates", len(document.templates))
    return True


def migrate_document(raw: Mapping[str, Any], *, today: date) -> MigrationOutcome:
    source_format = detect_format(raw)
    outcome = CONVERTERS[source_format](raw, today)
    if ensure_default_templates(outcome.document, today=today):
        outcome.needs_save = True
    return outcome


__all__ = [
    "BoolCell",
    "CONVERTERS",
    "CellValue",
    "DocumentFormat",
    "MigrationOutcome",
    "NumberCell",
    "OtherCell",
    "classify_cell",
    "default_templates",
    "detect_format",
    "ensure_default_templates",
    "legacy_templates",
    "migrate_document",
    "normalize_cell",
    "normalize_day_record",
]

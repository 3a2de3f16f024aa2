from __future__ import annotations

import logging
from datetime import date
from typing import Sequence
from uuid import uuid4

from plan_tracker.dates import DateLike, parse_date
from plan_tracker.models import MutationResult, PlannerDocument, TaskKind, TaskTemplate

LOGGER = logging.getLogger(__name__)


def _sorted_by_order(templates: Sequence[TaskTemplate]) -> list[TaskTemplate]:
    return sorted(templates, key=lambda template: template.order)


def _template_index(document: PlannerDocument, task_id: str) -> int | None:
    for index, template in enumerate(document.templates):
        if template.id == task_id:
            return index
    return None


def _clean_unit(kind: TaskKind, unit: str | None) -> str | None:
    if kind is not TaskKind.COUNT or unit is None:
        return None
    cleaned = unit.strip()
    return cleaned or None


def add_task(
    document: PlannerDocument,
    name: str,
    kind: TaskKind | str | None = None,
    unit: str | None = None,
    *,
    today: date,
) -> TaskTemplate:
    task_kind = TaskKind.coerce(kind)
    template = TaskTemplate(
        id=str(uuid4()),
        name=name,
        kind=task_kind,
        unit=_clean_unit(task_kind, unit),
        order=document.max_order() + 1,
        created_at=today,
    )
    document.templates.append(template)
    LOGGER.info("Added task %s (%s) at order %d", template.id, template.kind.value, template.order)
    return template.model_copy()


def update_task(document: PlannerDocument, task_id: str, name: str) -> MutationResult:
    index = _template_index(document, task_id)
    if index is None:
        return MutationResult.not_found(task_id)
    document.templates[index] = document.templates[index].model_copy(update={"name": name})
    return MutationResult.applied_to(task_id)


def set_task_kind(document: PlannerDocument, task_id: str, kind: TaskKind | str | None) -> MutationResult:
    task_kind = TaskKind.parse(kind)
    if task_kind is None:
        LOGGER.debug("Ignoring unknown task kind %r for %s", kind, task_id)
        return MutationResult.ignored(task_id)

    index = _template_index(document, task_id)
    if index is None:
        return MutationResult.not_found(task_id)
    document.templates[index] = document.templates[index].model_copy(update={"kind": task_kind})
    return MutationResult.applied_to(task_id)


def delete_task(document: PlannerDocument, task_id: str, *, today: date) -> MutationResult:
    """Soft-delete: the task disappears from today on, past days keep it."""

    index = _template_index(document, task_id)
    if index is None:
        return MutationResult.not_found(task_id)

    template = document.templates[index]
    if template.is_deleted:
        return MutationResult.ignored(task_id)
    document.templates[index] = template.model_copy(update={"deleted_at": today})
    LOGGER.info("Deleted task %s as of %s", task_id, today.isoformat())
    return MutationResult.applied_to(task_id)


def reorder_tasks(document: PlannerDocument, task_ids: Sequence[str]) -> MutationResult:
    positions = {task_id: position for position, task_id in enumerate(task_ids)}
    for index, template in enumerate(document.templates):
        position = positions.get(template.id)
        if position is not None:
            document.templates[index] = template.model_copy(update={"order": position})
    return MutationResult.applied_to()


def get_task_templates(document: PlannerDocument) -> list[TaskTemplate]:
    active = [template.model_copy() for template in document.templates if not template.is_deleted]
    return _sorted_by_order(active)


def tasks_valid_on(document: PlannerDocument, day: date) -> list[TaskTemplate]:
    return _sorted_by_order([template for template in document.templates if template.is_valid_on(day)])


def get_tasks_for_date(document: PlannerDocument, day: DateLike) -> list[TaskTemplate]:
    """Tasks that existed on ``day``, including ones deleted since."""

    target_day = parse_date(day)
    if target_day is None:
        return []
    return [template.model_copy() for template in tasks_valid_on(document, target_day)]


__all__ = [
    "add_task",
    "delete_task",
    "get_task_templates",
    "get_tasks_for_date",
    "reorder_tasks",
    "set_task_kind",
    "tasks_valid_on",
    "update_task",
]

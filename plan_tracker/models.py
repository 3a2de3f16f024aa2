from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from plan_tracker.constants import DOC_EXPORT_HISTORY, DOC_EXPORT_PATH
from plan_tracker.dates import parse_date

DayRecord = Dict[str, int]


class TaskKind(StrEnum):
    """How completion of a task is recorded for a day."""

    BINARY = "binary"
    COUNT = "count"

    @property
    def label(self) -> str:
        if self is TaskKind.COUNT:
            return "Count"
        return "Done / not done"

    @classmethod
    def parse(cls, raw: object) -> Optional["TaskKind"]:
        """Return the matching kind, ``BINARY`` for empty input and ``None`` for unknown values."""

        if isinstance(raw, TaskKind):
            return raw
        if raw is None:
            return cls.BINARY
        value = str(raw).strip().lower()
        if not value:
            return cls.BINARY
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def coerce(cls, raw: object) -> "TaskKind":
        return cls.parse(raw) or cls.BINARY


def _lenient_date(value: Any) -> date | None:
    """``None`` for blanks, the date when it parses and ``date.min`` otherwise."""

    if value is None or value == "":
        return None
    parsed = parse_date(value if isinstance(value, date) else str(value))
    return parsed if parsed is not None else date.min


class TaskTemplate(BaseModel):
    """Named daily task with a validity window; stored with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = ""
    kind: TaskKind = Field(default=TaskKind.BINARY, alias="type")
    unit: Optional[str] = None
    order: int = 0
    created_at: date = Field(default=date.min, alias="createdAt")
    deleted_at: Optional[date] = Field(default=None, alias="deletedAt")

    @field_validator("kind", mode="before")
    @classmethod
    def _coerce_kind(cls, value: Any) -> TaskKind:
        return TaskKind.coerce(value)

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _lenient_created_at(cls, value: Any) -> date:
        # Unreadable creation dates keep the task valid for every day.
        return _lenient_date(value) or date.min

    @field_validator("deleted_at", mode="before")
    @classmethod
    def _lenient_deleted_at(cls, value: Any) -> date | None:
        return _lenient_date(value)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def is_valid_on(self, day: date) -> bool:
        """A template counts for ``day`` from its creation date until (excluding) its deletion date."""

        if self.created_at > day:
            return False
        return self.deleted_at is None or self.deleted_at > day


class PlannerDocument(BaseModel):
    """Root aggregate persisted as a single JSON document."""

    model_config = ConfigDict(populate_by_name=True)

    templates: List[TaskTemplate] = Field(default_factory=list)
    days: Dict[str, DayRecord] = Field(default_factory=dict)
    export_path: Optional[str] = Field(default=None, alias="exportPath")
    export_history: Dict[str, str] = Field(default_factory=dict, alias="exportHistory")

    def find_template(self, task_id: str) -> TaskTemplate | None:
        for template in self.templates:
            if template.id == task_id:
                return template
        return None

    def max_order(self) -> int:
        return max((template.order for template in self.templates), default=-1)

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if not payload.get(DOC_EXPORT_PATH):
            payload.pop(DOC_EXPORT_PATH, None)
        if not payload.get(DOC_EXPORT_HISTORY):
            payload.pop(DOC_EXPORT_HISTORY, None)
        return payload


class MutationStatus(StrEnum):
    APPLIED = "applied"
    NOT_FOUND = "not_found"
    IGNORED = "ignored"


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a write operation; ``NOT_FOUND`` and ``IGNORED`` are successful no-ops."""

    status: MutationStatus
    task_id: str | None = None

    @property
    def applied(self) -> bool:
        return self.status is MutationStatus.APPLIED

    @classmethod
    def applied_to(cls, task_id: str | None = None) -> "MutationResult":
        return cls(MutationStatus.APPLIED, task_id)

    @classmethod
    def not_found(cls, task_id: str) -> "MutationResult":
        return cls(MutationStatus.NOT_FOUND, task_id)

    @classmethod
    def ignored(cls, task_id: str | None = None) -> "MutationResult":
        return cls(MutationStatus.IGNORED, task_id)


__all__ = [
    "DayRecord",
    "MutationResult",
    "MutationStatus",
    "PlannerDocument",
    "TaskKind",
    "TaskTemplate",
]

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Mapping, TypeVar

from plan_tracker.locking import ReadWriteLock
from plan_tracker.migrations import MigrationOutcome, migrate_document
from plan_tracker.models import MutationResult, PlannerDocument
from plan_tracker.storage import PersistenceError, StorageBackend

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
Clock = Callable[[], date]


def _always(_: object) -> bool:
    return True


def persist_when_applied(result: MutationResult) -> bool:
    return result.applied


class PlannerState:
    """Owns the planner document and serializes access to it.

    Reads share a lock; every mutation holds the exclusive lock until the
    document has been written by the storage backend, so a returned result
    means the change is on disk.
    """

    def __init__(
        self,
        backend: StorageBackend | None = None,
        *,
        clock: Clock | None = None,
        document: PlannerDocument | None = None,
    ) -> None:
        self._backend = backend
        self._clock: Clock = clock or date.today
        self._document = document if document is not None else PlannerDocument()
        self._lock = ReadWriteLock()

    @property
    def backend(self) -> StorageBackend | None:
        return self._backend

    def today(self) -> date:
        return self._clock()

    def load(self) -> MigrationOutcome:
        """Hydrate the document from the backend, migrating legacy layouts and seeding defaults."""

        with self._lock.write_locked():
            raw = self._load_raw()
            outcome = migrate_document(raw, today=self.today())
            self._document = outcome.document
            if outcome.needs_save:
                try:
                    self._persist_locked()
                except PersistenceError as exc:
                    LOGGER.warning("Failed to persist migrated planner data: %s", exc)
        return outcome

    def _load_raw(self) -> Mapping[str, object]:
        if self._backend is None:
            return {}
        try:
            persisted = self._backend.load_state()
        except Exception as exc:  # pragma: no cover - backend failure
            LOGGER.warning("Failed to load persisted state: %s", exc)
            return {}
        if not isinstance(persisted, Mapping):
            return {}
        return persisted

    def _persist_locked(self) -> None:
        if self._backend is None:
            return
        try:
            self._backend.save_state(self._document.to_payload())
        except PersistenceError as exc:
            LOGGER.warning("Failed to persist state: %s", exc)
            raise

    def read(self, query: Callable[[PlannerDocument], T]) -> T:
        with self._lock.read_locked():
            return query(self._document)

    def mutate(
        self,
        operation: Callable[[PlannerDocument], T],
        *,
        should_persist: Callable[[T], bool] = _always,
    ) -> T:
        with self._lock.write_locked():
            result = operation(self._document)
            if should_persist(result):
                self._persist_locked()
            return result

    def snapshot(self) -> PlannerDocument:
        return self.read(lambda document: document.model_copy(deep=True))


__all__ = ["Clock", "PlannerState", "persist_when_applied"]

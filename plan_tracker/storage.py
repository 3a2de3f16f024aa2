from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Mapping, Protocol

from pydantic_core import to_jsonable_python

from plan_tracker.constants import DATA_DIR_ENV, DATA_FOLDER_NAME, DEFAULT_STATE_FILENAME, TEMP_FILE_PREFIX

LOGGER = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Raised when the planner document could not be written durably."""


class StorageBackend(Protocol):
    """Abstraction for persisting and restoring state."""

    def load_state(self) -> Mapping[str, object]:
        """Return a mapping representing the stored state."""

    def save_state(self, state: Mapping[str, object]) -> None:
        """Persist the provided state mapping."""


def resolve_data_directory(*, env: Mapping[str, str] | None = None) -> Path:
    """Resolve the per-user data directory, honouring ``PLAN_DATA_DIR`` when set."""

    env_map: Mapping[str, str] = env if env is not None else os.environ
    raw_value = env_map.get(DATA_DIR_ENV)
    if raw_value and raw_value.strip():
        return Path(raw_value.strip()).expanduser()
    return Path.home() / DATA_FOLDER_NAME


def resolve_state_file_path(path: str | Path | None = None, *, env: Mapping[str, str] | None = None) -> Path:
    """Resolve the data file path; an explicit directory gets the default file name appended."""

    if path is not None:
        explicit_path = Path(path).expanduser()
        if explicit_path.is_dir():
            return explicit_path / DEFAULT_STATE_FILENAME
        return explicit_path

    return resolve_data_directory(env=env) / DEFAULT_STATE_FILENAME


def _replace_file(source: Path, target: Path) -> None:
    try:
        os.replace(source, target)
        return
    except OSError as exc:
        original_error = exc

    # Some platforms refuse to rename onto an existing file.
    if target.exists():
        try:
            target.unlink()
            os.rename(source, target)
            return
        except OSError as exc:
            LOGGER.debug("Remove-and-rename fallback for %s failed: %s", target, exc)

    raise original_error


def atomic_write_text(path: str | Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write ``content`` to ``path`` so readers see either the old or the new file, never a partial one."""

    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        file_descriptor, temp_name = tempfile.mkstemp(prefix=TEMP_FILE_PREFIX, suffix=target.suffix, dir=target.parent)
    except OSError as exc:
        raise PersistenceError(f"Could not write {target}: {exc}") from exc

    temp_path = Path(temp_name)
    try:
        with os.fdopen(file_descriptor, "w", encoding=encoding) as file_handle:
            file_handle.write(content)
            file_handle.flush()
            os.fsync(file_handle.fileno())
        _replace_file(temp_path, target)
    except OSError as exc:
        temp_path.unlink(missing_ok=True)
        raise PersistenceError(f"Could not write {target}: {exc}") from exc


class FileStorageBackend:
    """Persist state to a JSON file on disk."""

    def __init__(self, path: str | Path | None = None, *, env: Mapping[str, str] | None = None) -> None:
        self.path = resolve_state_file_path(path, env=env)
        self._last_fingerprint: str | None = None

    def load_state(self) -> Mapping[str, object]:
        if not self.path.exists():
            return {}

        try:
            with self.path.open("r", encoding="utf-8") as file_handle:
                loaded = json.load(file_handle)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            LOGGER.warning("Failed to load planner data from %s: %s", self.path, exc)
            return {}

        if not isinstance(loaded, dict):
            LOGGER.warning("Ignoring planner data in %s: top level is %s", self.path, type(loaded).__name__)
            return {}

        self._last_fingerprint = None
        return loaded

    def save_state(self, state: Mapping[str, object]) -> None:
        serialized = json.dumps(state, default=to_jsonable_python, ensure_ascii=False, indent=2)
        if serialized == self._last_fingerprint and self.path.exists():
            return

        atomic_write_text(self.path, serialized)
        LOGGER.debug("Saved planner data to %s (%d bytes)", self.path, len(serialized))
        self._last_fingerprint = serialized


__all__ = [
    "StorageBackend",
    "FileStorageBackend",
    "PersistenceError",
    "atomic_write_text",
    "resolve_data_directory",
    "resolve_state_file_path",
]

from __future__ import annotations

import copy
import sys
from datetime import date
from pathlib import Path
from typing import Callable, Mapping

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

FIXED_TODAY = date(2024, 3, 14)


class MemoryBackend:
    """Storage backend keeping the last saved payload in memory and counting saves."""

    def __init__(self, initial: Mapping[str, object] | None = None) -> None:
        self.state: dict[str, object] = copy.deepcopy(dict(initial or {}))
        self.saves: list[dict[str, object]] = []

    def load_state(self) -> Mapping[str, object]:
        return copy.deepcopy(self.state)

    def save_state(self, state: Mapping[str, object]) -> None:
        snapshot = copy.deepcopy(dict(state))
        self.saves.append(snapshot)
        self.state = snapshot


@pytest.fixture()
def today() -> date:
    return FIXED_TODAY


@pytest.fixture()
def clock(today: date) -> Callable[[], date]:
    return lambda: today


@pytest.fixture()
def memory_backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture()
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "plan" / "data.json"


@pytest.fixture()
def export_root(tmp_path: Path) -> Path:
    return tmp_path / "exports"


@pytest.fixture()
def planner(data_file: Path, clock: Callable[[], date], export_root: Path):
    from plan_tracker.planner import Planner

    return Planner.open(data_file, clock=clock, env={"PLAN_EXPORT_DIR": str(export_root)})

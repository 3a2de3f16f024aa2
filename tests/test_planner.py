from __future__ import annotations

import json
import tempfile
from datetime import date

import pytest

from conftest import MemoryBackend
from plan_tracker.constants import DEFAULT_TASK_NAMES, EXPORT_FOLDER_NAME
from plan_tracker.migrations import DocumentFormat
from plan_tracker.models import MutationStatus, TaskKind
from plan_tracker.planner import Planner
from plan_tracker.storage import FileStorageBackend, PersistenceError


def test_first_start_seeds_default_tasks(planner: Planner, data_file, today: date) -> None:
    templates = planner.get_task_templates()

    assert [template.name for template in templates] == list(DEFAULT_TASK_NAMES)
    assert [template.order for template in templates] == [0, 1, 2, 3]
    assert all(template.created_at == today for template in templates)

    stored = json.loads(data_file.read_text(encoding="utf-8"))
    assert [template["name"] for template in stored["templates"]] == list(DEFAULT_TASK_NAMES)
    assert stored["days"] == {}


def test_legacy_file_is_migrated_once(data_file, clock) -> None:
    data_file.parent.mkdir(parents=True)
    data_file.write_text(json.dumps({"2024-01-01": [True, False, True]}), encoding="utf-8")

    planner = Planner.open(data_file, clock=clock)
    migrated_bytes = data_file.read_bytes()

    assert planner.load_day("2024-01-01") == {"task-1": 1, "task-2": 0, "task-3": 1}
    assert [template.id for template in planner.get_task_templates()] == ["task-1", "task-2", "task-3", "task-4"]

    outcome = Planner(FileStorageBackend(data_file), clock=clock).startup()

    assert outcome.source_format is DocumentFormat.CURRENT
    assert not outcome.needs_save
    assert data_file.read_bytes() == migrated_bytes


def test_changes_survive_a_restart(planner: Planner, data_file, clock) -> None:
    created = planner.add_task("Pages", "count", "pages")
    planner.save_day("2024-03-14", {created.id: 12})
    planner.mark_week_exported("2024-03-04")
    planner.set_export_directory("/data/reports")

    reopened = Planner.open(data_file, clock=clock)
    stored = {template.id: template for template in reopened.get_task_templates()}

    assert created.order == 4
    assert stored[created.id].kind is TaskKind.COUNT
    assert stored[created.id].unit == "pages"
    assert reopened.load_day("2024-03-14") == {created.id: 12}
    assert reopened.is_week_exported("2024-03-04")
    assert reopened.get_export_directory() == "/data/reports"


def test_no_op_changes_are_not_saved(memory_backend: MemoryBackend, clock) -> None:
    planner = Planner(memory_backend, clock=clock)
    planner.startup()
    task_id = planner.get_task_templates()[0].id
    saves_after_startup = len(memory_backend.saves)

    assert planner.update_task("missing", "X").status is MutationStatus.NOT_FOUND
    assert planner.set_task_kind(task_id, "weekly").status is MutationStatus.IGNORED
    assert planner.save_day("someday", {task_id: 1}).status is MutationStatus.IGNORED
    assert len(memory_backend.saves) == saves_after_startup

    assert planner.delete_task(task_id).applied
    assert planner.delete_task(task_id).status is MutationStatus.IGNORED
    assert len(memory_backend.saves) == saves_after_startup + 1


def test_save_failure_raises_and_keeps_change_in_memory(planner: Planner, monkeypatch) -> None:
    def refuse(*_args, **_kwargs):
        raise PermissionError("read-only volume")

    monkeypatch.setattr(tempfile, "mkstemp", refuse)

    with pytest.raises(PersistenceError):
        planner.add_task("Unsaved")

    assert "Unsaved" in [template.name for template in planner.get_task_templates()]


def test_corrupt_file_starts_with_defaults(data_file, clock) -> None:
    data_file.parent.mkdir(parents=True)
    data_file.write_text("{broken", encoding="utf-8")

    planner = Planner.open(data_file, clock=clock)

    assert len(planner.get_task_templates()) == len(DEFAULT_TASK_NAMES)
    assert "templates" in json.loads(data_file.read_text(encoding="utf-8"))


def test_reports_through_the_planner(clock) -> None:
    backend = MemoryBackend(
        {
            "templates": [{"id": "a", "name": "Walk", "type": "binary", "order": 0, "createdAt": "2024-01-01"}],
            "days": {"2024-03-05": {"a": 1}, "2024-03-13": {"a": 1}, "2024-03-14": {"a": 1}},
        }
    )
    planner = Planner(backend, clock=clock)
    outcome = planner.startup()

    assert not outcome.needs_save
    assert backend.saves == []
    assert planner.get_weekly_report("2024-03-11").daily_percentages[2:4] == [100.0, 100.0]
    assert planner.get_monthly_report(2024, 3).month_name == "March"
    assert planner.get_yearly_report(2024).most_consistent_month == 2
    assert planner.get_streaks().task_streaks == {"a": 2}
    assert planner.pending_export_weeks(weeks_back=4) == ["2024-03-04"]


def test_save_export_uses_configured_directory(planner: Planner, export_root, tmp_path) -> None:
    first = planner.save_export("PLAN-Weekly-2024-03-04.html", "<html></html>")
    assert first == export_root / EXPORT_FOLDER_NAME / "PLAN-Weekly-2024-03-04.html"

    planner.set_export_directory(str(tmp_path / "chosen"))
    second = planner.save_export("PLAN-Weekly-2024-03-04.html", "<html></html>")

    assert second == tmp_path / "chosen" / EXPORT_FOLDER_NAME / "PLAN-Weekly-2024-03-04.html"
    assert second.exists()


def test_template_with_loose_created_at_survives_a_save(data_file, clock) -> None:
    data_file.parent.mkdir(parents=True)
    data_file.write_text(
        json.dumps(
            {
                "templates": [{"id": "x", "name": "Keep", "createdAt": "2024-1-5"}],
                "days": {"2024-01-06": {"x": 1}},
            }
        ),
        encoding="utf-8",
    )

    planner = Planner.open(data_file, clock=clock)
    planner.save_day("2024-01-07", {"x": 1})

    stored = json.loads(data_file.read_text(encoding="utf-8"))
    assert [template["name"] for template in stored["templates"]] == ["Keep"]
    assert stored["days"] == {"2024-01-06": {"x": 1}, "2024-01-07": {"x": 1}}
    assert [template.id for template in planner.get_tasks_for_date("2024-01-06")] == ["x"]


def test_legacy_file_with_null_slots_is_migrated(data_file, clock) -> None:
    data_file.parent.mkdir(parents=True)
    data_file.write_text(json.dumps({"2024-01-01": [True, None, True]}), encoding="utf-8")

    planner = Planner.open(data_file, clock=clock)

    assert planner.load_day("2024-01-01") == {"task-1": 1, "task-2": 0, "task-3": 1}
    stored = json.loads(data_file.read_text(encoding="utf-8"))
    assert [template["id"] for template in stored["templates"]] == ["task-1", "task-2", "task-3", "task-4"]


def test_weeks_at_the_end_of_the_calendar_do_not_raise(planner: Planner) -> None:
    report = planner.get_weekly_report("9999-12-30")

    assert report.daily_percentages == []
    assert report.weekly_average == 0.0
    assert planner.load_week("9999-12-30") == {}

from __future__ import annotations

from datetime import date

from plan_tracker.models import MutationResult, MutationStatus, PlannerDocument, TaskKind, TaskTemplate


def test_task_kind_coercion() -> None:
    assert TaskKind.coerce("count") is TaskKind.COUNT
    assert TaskKind.coerce(" COUNT ") is TaskKind.COUNT
    assert TaskKind.coerce("") is TaskKind.BINARY
    assert TaskKind.coerce(None) is TaskKind.BINARY
    assert TaskKind.coerce("weekly") is TaskKind.BINARY
    assert TaskKind.parse("weekly") is None


def test_template_validity_window() -> None:
    template = TaskTemplate(
        id="a",
        name="Walk",
        created_at=date(2024, 1, 10),
        deleted_at=date(2024, 1, 20),
    )

    assert not template.is_valid_on(date(2024, 1, 9))
    assert template.is_valid_on(date(2024, 1, 10))
    assert template.is_valid_on(date(2024, 1, 19))
    assert not template.is_valid_on(date(2024, 1, 20))


def test_template_reads_camel_case_and_defaults_type() -> None:
    template = TaskTemplate.model_validate({"id": "x", "name": "Read", "order": 2, "createdAt": "2024-01-01"})

    assert template.kind is TaskKind.BINARY
    assert template.order == 2
    assert template.created_at == date(2024, 1, 1)
    assert template.deleted_at is None
    assert template.unit is None


def test_template_with_unknown_type_becomes_binary() -> None:
    template = TaskTemplate.model_validate({"id": "x", "name": "Read", "type": "habit", "createdAt": "2024-01-01"})

    assert template.kind is TaskKind.BINARY


def test_document_payload_uses_stored_key_names() -> None:
    document = PlannerDocument(
        templates=[
            TaskTemplate(
                id="t1",
                name="Pages",
                kind=TaskKind.COUNT,
                unit="pages",
                order=0,
                created_at=date(2024, 1, 1),
            )
        ],
        days={"2024-01-01": {"t1": 12}},
    )

    assert document.to_payload() == {
        "templates": [
            {
                "id": "t1",
                "name": "Pages",
                "type": "count",
                "unit": "pages",
                "order": 0,
                "createdAt": "2024-01-01",
            }
        ],
        "days": {"2024-01-01": {"t1": 12}},
    }


def test_document_payload_keeps_export_fields() -> None:
    document = PlannerDocument(export_path="/tmp/out", export_history={"2024-01-01": "2024-01-08"})

    payload = document.to_payload()

    assert payload["templates"] == []
    assert payload["days"] == {}
    assert payload["exportPath"] == "/tmp/out"
    assert payload["exportHistory"] == {"2024-01-01": "2024-01-08"}


def test_mutation_result_flags() -> None:
    assert MutationResult.applied_to("a").applied
    assert not MutationResult.not_found("a").applied
    assert MutationResult.not_found("a").task_id == "a"
    assert MutationResult.ignored().status is MutationStatus.IGNORED


def test_template_with_unreadable_dates_is_kept() -> None:
    template = TaskTemplate.model_validate({"id": "x", "createdAt": "2024-1-5", "deletedAt": "someday"})

    assert template.name == ""
    assert template.created_at == date.min
    assert template.deleted_at == date.min
    assert template.is_deleted

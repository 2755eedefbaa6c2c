"""
Unit tests for validating task/event records at the CRUD boundary.
"""
from __future__ import annotations

from datetime import date

import pytest

from gantt.constants import STATUS_COLORS, STATUS_UNKNOWN
from gantt.domain.common.errors import ValidationError
from gantt.domain.tasks.models import Status, Task, status_bucket, status_color
from gantt.domain.tasks.parsing import parse_event, parse_task, parse_tasks


def _record(**overrides):
    record = {
        "id": "t1",
        "name": "API",
        "category": "Dev",
        "sub_category": "BE",
        "start_date": "2024-01-03",
        "end_date": "2024-01-05T00:00:00.000Z",
        "assignee": None,
        "status": "InProgress",
        "display_order": "2",
        "note": None,
        "events": [{"id": "e1", "name": "Review", "due_date": "2024-01-04"}],
    }
    record.update(overrides)
    return record


def test_parse_task_full_record():
    task = parse_task(_record())

    assert task.start_date == date(2024, 1, 3)
    assert task.end_date == date(2024, 1, 5)
    assert task.display_order == 2
    assert task.status == "InProgress"
    assert task.events[0].task_id == "t1"
    assert task.events[0].due_date == date(2024, 1, 4)


def test_missing_dates_and_status_default():
    task = parse_task(_record(start_date=None, end_date="", status=None, events=None))
    assert task.start_date is None
    assert task.end_date is None
    assert task.status == Status.TODO.value
    assert task.events == ()


@pytest.mark.parametrize(
    "overrides",
    [
        {"id": None},
        {"name": "  "},
        {"category": None},
        {"start_date": "03/01/2024"},
        {"display_order": "first"},
        {"events": "nope"},
        {"note": "x" * 1001},
    ],
)
def test_invalid_records_raise(overrides):
    with pytest.raises(ValidationError):
        parse_task(_record(**overrides))


def test_bad_event_is_skipped_not_its_task():
    task = parse_task(
        _record(
            events=[
                {"id": "e1", "name": "Review", "due_date": "2024-01-04"},
                {"id": "e2", "name": "Demo", "due_date": "soon"},
                "not an object",
            ]
        )
    )
    assert task.id == "t1"
    assert [e.id for e in task.events] == ["e1"]


def test_parse_event_needs_parent():
    with pytest.raises(ValidationError):
        parse_event({"id": "e1", "name": "Review"})
    assert parse_event({"id": "e1", "name": "Review"}, task_id="t1").task_id == "t1"


def test_parse_tasks_skips_bad_records():
    tasks = parse_tasks([_record(), _record(id="t2", name=None), "junk", _record(id="t3")])
    assert [t.id for t in tasks] == ["t1", "t3"]


def test_unknown_status_is_kept_but_rendered_as_unknown():
    task = parse_task(_record(status="Blocked"))
    assert task.status == "Blocked"
    assert status_bucket(task.status) == STATUS_UNKNOWN
    assert status_color(task.status) == STATUS_COLORS[STATUS_UNKNOWN]
    assert status_bucket("Done") is Status.DONE
    assert status_color("Done") == STATUS_COLORS["Done"]


def test_effective_dates_fall_back_to_events():
    task = parse_task(
        _record(
            start_date=None,
            end_date=None,
            events=[
                {"id": "e1", "name": "a", "due_date": "2024-01-09"},
                {"id": "e2", "name": "b", "due_date": "2024-01-02"},
                {"id": "e3", "name": "c", "due_date": None},
            ],
        )
    )
    assert task.effective_start() == date(2024, 1, 2)
    assert task.effective_end() == date(2024, 1, 9)
    assert Task(id="x", name="x", category="c", sub_category="s").effective_end() is None

"""
Validating deserialization of task/event records coming from the CRUD side.

Record shapes:
  task:  {id, name, category, sub_category, start_date|null, end_date|null,
          assignee|null, status, display_order, note|null, events: [...]}
  event: {id, name, task_id, due_date|null, assignee|null, status, note|null}
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from gantt.constants import NOTE_MAX_LEN
from gantt.domain.common.errors import ValidationError
from gantt.domain.common.time import parse_date
from gantt.domain.tasks.models import Event, Status, Task

logger = logging.getLogger(__name__)


def _required_str(record: Mapping[str, Any], name: str) -> str:
    value = record.get(name)
    if value is None:
        raise ValidationError(f"'{name}' is required")
    if not isinstance(value, (str, int)):
        raise ValidationError(f"'{name}' must be a string")
    text = str(value)
    if not text.strip():
        raise ValidationError(f"'{name}' must not be empty")
    return text


def _optional_str(record: Mapping[str, Any], name: str) -> Optional[str]:
    value = record.get(name)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{name}' must be a string or null")
    return value


def _date_field(record: Mapping[str, Any], name: str):
    try:
        return parse_date(record.get(name))
    except ValueError:
        raise ValidationError(f"'{name}' is not a valid date: {record.get(name)!r}")


def _note(record: Mapping[str, Any]) -> Optional[str]:
    note = _optional_str(record, "note")
    if note is not None and len(note) > NOTE_MAX_LEN:
        raise ValidationError(f"note is too long (max {NOTE_MAX_LEN} chars)")
    return note


def _status(record: Mapping[str, Any]) -> str:
    # unknown values are kept as-is; rendering puts them in the "unknown" bucket
    value = record.get("status")
    if value is None or value == "":
        return Status.TODO.value
    return str(value)


def parse_event(record: Mapping[str, Any], task_id: Optional[str] = None) -> Event:
    if not isinstance(record, Mapping):
        raise ValidationError("event record must be an object")
    parent = record.get("task_id") or task_id
    if not parent:
        raise ValidationError("'task_id' is required")
    return Event(
        id=_required_str(record, "id"),
        name=_required_str(record, "name"),
        task_id=str(parent),
        due_date=_date_field(record, "due_date"),
        assignee=_optional_str(record, "assignee"),
        status=_status(record),
        note=_note(record),
    )


def _parse_events(raw_events: Iterable[Any], task_id: str) -> Tuple[Event, ...]:
    events: List[Event] = []
    for raw in raw_events:
        try:
            events.append(parse_event(raw, task_id))
        except ValidationError as e:
            rid = raw.get("id") if isinstance(raw, Mapping) else None
            logger.warning("Skipping invalid event record id=%s of task %s: %s", rid, task_id, e)
    return tuple(events)


def parse_task(record: Mapping[str, Any]) -> Task:
    if not isinstance(record, Mapping):
        raise ValidationError("task record must be an object")

    task_id = _required_str(record, "id")

    raw_order = record.get("display_order", 0)
    try:
        display_order = int(raw_order if raw_order is not None else 0)
    except (TypeError, ValueError):
        raise ValidationError(f"'display_order' must be an integer: {raw_order!r}")

    raw_events = record.get("events") or []
    if not isinstance(raw_events, (list, tuple)):
        raise ValidationError("'events' must be a list")

    return Task(
        id=task_id,
        name=_required_str(record, "name"),
        category=_required_str(record, "category"),
        sub_category=_required_str(record, "sub_category"),
        start_date=_date_field(record, "start_date"),
        end_date=_date_field(record, "end_date"),
        assignee=_optional_str(record, "assignee"),
        status=_status(record),
        display_order=display_order,
        note=_note(record),
        events=_parse_events(raw_events, task_id),
    )


def parse_tasks(records: Iterable[Mapping[str, Any]]) -> List[Task]:
    """Parse a task list, skipping (and logging) records that fail validation."""
    tasks: List[Task] = []
    for record in records:
        try:
            tasks.append(parse_task(record))
        except ValidationError as e:
            rid = record.get("id") if isinstance(record, Mapping) else None
            logger.warning("Skipping invalid task record id=%s: %s", rid, e)
    return tasks

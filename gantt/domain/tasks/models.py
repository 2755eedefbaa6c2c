from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Tuple, Union

from gantt.constants import STATUS_COLORS, STATUS_UNKNOWN


class Status(str, Enum):
    TODO = "ToDo"
    IN_PROGRESS = "InProgress"
    CONFIRMED = "Confirmed"
    ICEBOX = "IceBox"
    DONE = "Done"


StatusBucket = Union[Status, str]


def status_bucket(raw: Optional[str]) -> StatusBucket:
    """Known statuses map to Status; anything else renders as "unknown"."""
    try:
        return Status(raw)
    except ValueError:
        return STATUS_UNKNOWN


def status_color(raw: Optional[str]) -> str:
    bucket = status_bucket(raw)
    key = bucket.value if isinstance(bucket, Status) else bucket
    return STATUS_COLORS.get(key, STATUS_COLORS[STATUS_UNKNOWN])


@dataclass(frozen=True)
class Event:
    id: str
    name: str
    task_id: str
    due_date: Optional[date]
    assignee: Optional[str] = None
    status: str = Status.TODO.value
    note: Optional[str] = None


@dataclass(frozen=True)
class Task:
    id: str
    name: str
    category: str
    sub_category: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    assignee: Optional[str] = None
    status: str = Status.TODO.value
    display_order: int = 0
    note: Optional[str] = None
    events: Tuple[Event, ...] = field(default_factory=tuple)

    def effective_start(self) -> Optional[date]:
        """start_date, or the earliest event due date when the task has none."""
        if self.start_date is not None:
            return self.start_date
        dues = [e.due_date for e in self.events if e.due_date is not None]
        return min(dues) if dues else None

    def effective_end(self) -> Optional[date]:
        if self.end_date is not None:
            return self.end_date
        dues = [e.due_date for e in self.events if e.due_date is not None]
        return max(dues) if dues else None

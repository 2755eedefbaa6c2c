from __future__ import annotations

from datetime import date
from typing import Optional

from gantt.constants import GROUP_NAME_MAX_LEN, NAME_MAX_LEN, NOTE_MAX_LEN
from gantt.domain.common.errors import ValidationError
from gantt.domain.tasks.models import Status


def validate_name(name: str) -> None:
    if not name or not name.strip():
        raise ValidationError("Name is required.")
    if len(name.strip()) > NAME_MAX_LEN:
        raise ValidationError(f"Name is too long (max {NAME_MAX_LEN} chars).")


def validate_group(label: str, value: str) -> None:
    if not value or not value.strip():
        raise ValidationError(f"{label} is required.")
    if len(value.strip()) > GROUP_NAME_MAX_LEN:
        raise ValidationError(f"{label} is too long (max {GROUP_NAME_MAX_LEN} chars).")


def validate_note(note: Optional[str]) -> None:
    if note is not None and len(note) > NOTE_MAX_LEN:
        raise ValidationError(f"Note is too long (max {NOTE_MAX_LEN} chars).")


def validate_status(status: str) -> None:
    try:
        Status(status)
    except ValueError:
        allowed = ", ".join(s.value for s in Status)
        raise ValidationError(f"Unknown status {status!r} (allowed: {allowed}).")


def validate_range(start: Optional[date], end: Optional[date]) -> None:
    if start is not None and end is not None and end < start:
        raise ValidationError("End date must not be before start date.")

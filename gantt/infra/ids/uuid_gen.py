from __future__ import annotations

import uuid

from gantt.domain.tasks.ports import IdGenerator


class UuidGenerator(IdGenerator):
    # dashless: task ids travel inside 64-byte callback_data
    def new_id(self) -> str:
        return uuid.uuid4().hex

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional, Sequence

from gantt.domain.tasks.models import Event, Task


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime: ...

    def today(self) -> date:
        return self.now().date()


class IdGenerator(ABC):
    @abstractmethod
    def new_id(self) -> str: ...


class TaskRepository(ABC):
    """The task/event CRUD collaborator. Returns validated records only."""

    @abstractmethod
    async def list_tasks(self) -> Sequence[Task]: ...

    @abstractmethod
    async def get_task(self, task_id: str) -> Optional[Task]: ...

    @abstractmethod
    async def create_task(
        self,
        name: str,
        category: str,
        sub_category: str,
        start_date: Optional[date],
        end_date: Optional[date],
        assignee: Optional[str],
        status: str,
        note: Optional[str],
    ) -> Task: ...

    @abstractmethod
    async def delete_task(self, task_id: str) -> None: ...

    @abstractmethod
    async def create_event(
        self,
        task_id: str,
        name: str,
        due_date: Optional[date],
        assignee: Optional[str],
        status: str,
        note: Optional[str],
    ) -> Event: ...

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from gantt.domain.common.errors import NotFoundError
from gantt.domain.common.time import to_iso_date
from gantt.domain.tasks.models import Event, Task
from gantt.domain.tasks.parsing import parse_event, parse_task, parse_tasks
from gantt.domain.tasks.ports import Clock, IdGenerator, TaskRepository
from gantt.domain.tasks.rules import (
    validate_group,
    validate_name,
    validate_note,
    validate_range,
    validate_status,
)
from gantt.infra.db.connection import Database


class TaskSqliteRepo(TaskRepository):
    def __init__(self, db: Database, clock: Clock, ids: IdGenerator) -> None:
        self._db = db
        self._clock = clock
        self._ids = ids

    def _now_iso(self) -> str:
        return self._clock.now().isoformat()

    async def fetch_task_records(self) -> List[Dict[str, Any]]:
        """Raw task records with nested events, in the CRUD API's JSON shape."""
        task_rows = await self._db.fetchall(
            """
            SELECT id, name, category, sub_category, start_date, end_date,
                   assignee, status, display_order, note
            FROM task
            ORDER BY category, sub_category, display_order, created_at;
            """
        )
        event_rows = await self._db.fetchall(
            """
            SELECT id, name, task_id, due_date, assignee, status, note
            FROM event
            ORDER BY due_date, created_at;
            """
        )

        events_by_task: Dict[str, List[Dict[str, Any]]] = {}
        for r in event_rows:
            events_by_task.setdefault(r["task_id"], []).append(dict(r))

        records = []
        for r in task_rows:
            record = dict(r)
            record["events"] = events_by_task.get(r["id"], [])
            records.append(record)
        return records

    async def list_tasks(self) -> Sequence[Task]:
        return parse_tasks(await self.fetch_task_records())

    async def get_task(self, task_id: str) -> Optional[Task]:
        row = await self._db.fetchone(
            """
            SELECT id, name, category, sub_category, start_date, end_date,
                   assignee, status, display_order, note
            FROM task WHERE id = ?;
            """,
            (task_id,),
        )
        if not row:
            return None
        events = await self._db.fetchall(
            "SELECT id, name, task_id, due_date, assignee, status, note FROM event WHERE task_id = ? ORDER BY due_date;",
            (task_id,),
        )
        record = dict(row)
        record["events"] = [dict(e) for e in events]
        return parse_task(record)

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
    ) -> Task:
        validate_name(name)
        validate_group("Category", category)
        validate_group("Subcategory", sub_category)
        validate_range(start_date, end_date)
        validate_status(status)
        validate_note(note)

        row = await self._db.fetchone(
            "SELECT COALESCE(MAX(display_order) + 1, 0) AS next_order FROM task WHERE category = ? AND sub_category = ?;",
            (category.strip(), sub_category.strip()),
        )
        display_order = int(row["next_order"]) if row else 0

        task_id = self._ids.new_id()
        now = self._now_iso()
        await self._db.execute(
            """
            INSERT INTO task(
              id, name, category, sub_category, start_date, end_date,
              assignee, status, display_order, note, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                task_id,
                name.strip(),
                category.strip(),
                sub_category.strip(),
                to_iso_date(start_date),
                to_iso_date(end_date),
                assignee,
                status,
                display_order,
                note,
                now,
                now,
            ),
        )
        return Task(
            id=task_id,
            name=name.strip(),
            category=category.strip(),
            sub_category=sub_category.strip(),
            start_date=start_date,
            end_date=end_date,
            assignee=assignee,
            status=status,
            display_order=display_order,
            note=note,
        )

    async def delete_task(self, task_id: str) -> None:
        deleted = await self._db.execute("DELETE FROM task WHERE id = ?;", (task_id,))
        if not deleted:
            raise NotFoundError("Task not found.")

    async def create_event(
        self,
        task_id: str,
        name: str,
        due_date: Optional[date],
        assignee: Optional[str],
        status: str,
        note: Optional[str],
    ) -> Event:
        validate_name(name)
        validate_status(status)
        validate_note(note)

        parent = await self._db.fetchone("SELECT id FROM task WHERE id = ?;", (task_id,))
        if not parent:
            raise NotFoundError("Task not found.")

        event_id = self._ids.new_id()
        now = self._now_iso()
        await self._db.execute(
            """
            INSERT INTO event(id, name, task_id, due_date, assignee, status, note, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (event_id, name.strip(), task_id, to_iso_date(due_date), assignee, status, note, now, now),
        )
        return parse_event(
            {
                "id": event_id,
                "name": name.strip(),
                "task_id": task_id,
                "due_date": due_date,
                "assignee": assignee,
                "status": status,
                "note": note,
            }
        )

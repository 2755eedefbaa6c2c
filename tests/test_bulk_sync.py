"""
Tests for the "save order" bulk sync against a real temporary SQLite database.

Run with: python -m pytest tests/test_bulk_sync.py -v
"""
from __future__ import annotations

import asyncio
import os
import tempfile
from datetime import date, datetime, timezone

from gantt.domain.ordering.models import OrderSnapshot, SaveStats
from gantt.domain.ordering.ports import OrderPersistence
from gantt.domain.ordering.store import OrderingStore
from gantt.domain.ordering.sync import BulkSync
from gantt.domain.tasks.ports import Clock, IdGenerator
from gantt.infra.db.connection import Database
from gantt.infra.db.repo.order_sqlite import OrderSqliteRepo
from gantt.infra.db.repo.tasks_sqlite import TaskSqliteRepo
from gantt.infra.db.schema_version import apply_migrations
from gantt.infra.storage.memory import MemoryStorage


class FixedClock(Clock):
    def now(self) -> datetime:
        return datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


class CountingIds(IdGenerator):
    def __init__(self) -> None:
        self._n = 0

    def new_id(self) -> str:
        self._n += 1
        return f"id-{self._n}"


class FailingEndpoint(OrderPersistence):
    async def save_all(self, snapshot: OrderSnapshot) -> SaveStats:
        raise ConnectionError("backend down")


class SlowEndpoint(OrderPersistence):
    def __init__(self) -> None:
        self.calls = 0
        self.release = asyncio.Event()

    async def save_all(self, snapshot: OrderSnapshot) -> SaveStats:
        self.calls += 1
        await self.release.wait()
        return SaveStats(0, 0, 0, 0, 0)


async def _seeded_db(path: str):
    db = Database(path)
    clock = FixedClock()
    await apply_migrations(db, now_iso=clock.now().isoformat())
    tasks = TaskSqliteRepo(db, clock, CountingIds())
    await tasks.create_task("API", "Dev", "BE", date(2024, 1, 3), date(2024, 1, 5), None, "ToDo", None)
    await tasks.create_task("DB", "Dev", "BE", None, None, None, "InProgress", None)
    await tasks.create_task("UI", "Dev", "FE", None, None, None, "ToDo", None)
    await tasks.create_task("Deploy", "Ops", "Infra", None, None, None, "Done", None)
    return db, clock, tasks


def _tmp_db():
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    return path


def _cleanup(path: str) -> None:
    for p in (path, path + "-wal", path + "-shm"):
        if os.path.exists(p):
            os.unlink(p)


def test_submit_twice_leaves_same_state():
    """Same payload submitted twice -> same stored state as after one submit, no error."""
    path = _tmp_db()
    try:
        async def run():
            db, clock, tasks = await _seeded_db(path)
            orders = OrderSqliteRepo(db, clock)

            store = OrderingStore(MemoryStorage())
            store.initialize_if_absent(list(await tasks.list_tasks()))
            store.save_category_order(["Ops", "Dev"])
            store.set_subcategories("Dev", ["FE", "BE"])
            store.set_task_bucket("Dev::BE", ["id-2", "id-1"])
            store.toggle_category("Dev")
            store.toggle_subcategory("Dev::FE")

            sync = BulkSync(store, orders)
            first = await sync.submit()
            after_first = await orders.load_all()
            second = await sync.submit()
            after_second = await orders.load_all()
            return first, second, after_first, after_second

        first, second, after_first, after_second = asyncio.run(run())

        assert first.success and second.success
        assert first.stats == second.stats
        assert first.stats.as_dict() == {
            "categories": 2,
            "subcategories": 3,
            "tasks": 4,
            "expandedCategories": 1,
            "expandedSubcategories": 1,
        }
        assert after_first == after_second
        assert after_first == {
            "categories": ["Ops", "Dev"],
            "subcategories": {"Dev": ["FE", "BE"], "Ops": ["Infra"]},
            "tasks": {"Dev::BE": ["id-2", "id-1"], "Dev::FE": ["id-3"], "Ops::Infra": ["id-4"]},
            "expandedCategories": ["Dev"],
            "expandedSubcategories": ["Dev::FE"],
        }
    finally:
        _cleanup(path)


def test_collapse_is_saved_as_not_expanded():
    path = _tmp_db()
    try:
        async def run():
            db, clock, tasks = await _seeded_db(path)
            orders = OrderSqliteRepo(db, clock)
            store = OrderingStore(MemoryStorage())
            store.initialize_if_absent(list(await tasks.list_tasks()))
            sync = BulkSync(store, orders)

            store.toggle_category("Ops")
            await sync.submit()
            expanded = await orders.load_all()
            store.toggle_category("Ops")
            await sync.submit()
            collapsed = await orders.load_all()
            return expanded, collapsed

        expanded, collapsed = asyncio.run(run())
        assert expanded["expandedCategories"] == ["Ops"]
        assert collapsed["expandedCategories"] == []
    finally:
        _cleanup(path)


def test_failed_submit_keeps_local_state():
    store = OrderingStore(MemoryStorage())
    store.save_category_order(["Dev"])
    sync = BulkSync(store, FailingEndpoint())

    result = asyncio.run(sync.submit())

    assert result.success is False
    assert "backend down" in result.message
    assert sync.busy is False
    assert store.load_category_order() == ["Dev"]


def test_second_submit_while_busy_is_refused():
    async def run():
        endpoint = SlowEndpoint()
        sync = BulkSync(OrderingStore(MemoryStorage()), endpoint)

        first = asyncio.create_task(sync.submit())
        await asyncio.sleep(0)
        assert sync.busy is True
        refused = await sync.submit()
        endpoint.release.set()
        done = await first
        return endpoint.calls, refused, done, sync.busy

    calls, refused, done, busy = asyncio.run(run())
    assert calls == 1
    assert refused.success is False
    assert done.success is True
    assert busy is False

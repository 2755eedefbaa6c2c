from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

from gantt.constants import DEFAULT_EVENT_SPACING
from gantt.domain.ordering.keys import subcategory_key
from gantt.domain.ordering.models import ExpansionState
from gantt.domain.ordering.ports import KeyValueStorage, OrderPersistence
from gantt.domain.ordering.reorder import (
    Direction,
    DragReorderCoordinator,
    move_category,
    move_subcategory,
)
from gantt.domain.ordering.resolver import ResolvedTree, resolve
from gantt.domain.ordering.store import OrderingStore
from gantt.domain.ordering.sync import BulkSync, SyncResult
from gantt.domain.tasks.models import Event, Status, Task
from gantt.domain.tasks.ports import TaskRepository
from gantt.domain.timeline.chart import Chart, build_chart
from gantt.domain.timeline.layout import TimelineWindow

logger = logging.getLogger(__name__)

StorageFactory = Callable[[int], Optional[KeyValueStorage]]


@dataclass(frozen=True)
class Board:
    tasks: Tuple[Task, ...]
    tree: ResolvedTree
    expansion: ExpansionState

    def chart(
        self,
        window: TimelineWindow,
        today: Optional[date] = None,
        event_spacing: float = DEFAULT_EVENT_SPACING,
    ) -> Chart:
        return build_chart(self.tree, self.expansion, window, today=today, event_spacing=event_spacing)

    def task(self, task_id: str) -> Optional[Task]:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None


class BoardService:
    """
    Board use cases for the bot. No aiogram here.

    Each user gets an OrderingStore over their own client-local storage and
    one BulkSync (so the busy flag is per user).
    """

    def __init__(
        self,
        tasks: TaskRepository,
        orders: OrderPersistence,
        storage_factory: StorageFactory,
    ) -> None:
        self._tasks = tasks
        self._orders = orders
        self._storage_factory = storage_factory
        self._stores: Dict[int, OrderingStore] = {}
        self._syncs: Dict[int, BulkSync] = {}

    def store(self, user_id: int) -> OrderingStore:
        store = self._stores.get(user_id)
        if store is None:
            try:
                storage = self._storage_factory(user_id)
            except OSError as e:
                logger.warning(f"Preference storage unavailable for user_id={user_id}: {e}")
                storage = None
            store = OrderingStore(storage)
            self._stores[user_id] = store
        return store

    def sync(self, user_id: int) -> BulkSync:
        sync = self._syncs.get(user_id)
        if sync is None:
            sync = BulkSync(self.store(user_id), self._orders)
            self._syncs[user_id] = sync
        return sync

    async def load(self, user_id: int) -> Board:
        tasks: List[Task] = list(await self._tasks.list_tasks())
        store = self.store(user_id)
        if tasks:
            store.initialize_if_absent(tasks)
        store.reconcile(tasks)
        return Board(
            tasks=tuple(tasks),
            tree=resolve(tasks, store.order_state()),
            expansion=store.expansion_state(),
        )

    async def save_order(self, user_id: int) -> SyncResult:
        return await self.sync(user_id).submit()

    # ----- expand / reorder -----

    def toggle_category(self, user_id: int, category: str) -> bool:
        return self.store(user_id).toggle_category(category)

    def toggle_subcategory(self, user_id: int, key: str) -> bool:
        return self.store(user_id).toggle_subcategory(key)

    def move_category(self, user_id: int, board: Board, category: str, direction: Direction) -> bool:
        return move_category(self.store(user_id), board.tree.category_names(), category, direction) is not None

    def move_subcategory(
        self, user_id: int, board: Board, category: str, sub_category: str, direction: Direction
    ) -> bool:
        displayed = board.tree.subcategory_names(category)
        return move_subcategory(self.store(user_id), category, displayed, sub_category, direction) is not None

    def drag(self, user_id: int, board: Board) -> DragReorderCoordinator:
        return DragReorderCoordinator(self.store(user_id), board.tree.flat_tasks())

    # ----- task / event edits (delegated to the CRUD side) -----

    async def create_task(
        self,
        user_id: int,
        name: str,
        category: str,
        sub_category: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        assignee: Optional[str] = None,
        status: str = Status.TODO.value,
        note: Optional[str] = None,
    ) -> Task:
        task = await self._tasks.create_task(
            name=name,
            category=category,
            sub_category=sub_category,
            start_date=start_date,
            end_date=end_date,
            assignee=assignee,
            status=status,
            note=note,
        )
        # new rows take part in ordering right away, at the end of their group
        store = self.store(user_id)
        store.append_category_if_missing(task.category)
        store.append_subcategory_if_missing(task.category, task.sub_category)
        store.append_if_missing(subcategory_key(task.category, task.sub_category), task.id)
        return task

    async def delete_task(self, user_id: int, task_id: str) -> None:
        await self._tasks.delete_task(task_id)
        self.store(user_id).remove_task(task_id)

    async def add_event(
        self,
        task_id: str,
        name: str,
        due_date: Optional[date],
        assignee: Optional[str] = None,
        status: str = Status.TODO.value,
        note: Optional[str] = None,
    ) -> Event:
        return await self._tasks.create_event(
            task_id=task_id,
            name=name,
            due_date=due_date,
            assignee=assignee,
            status=status,
            note=note,
        )

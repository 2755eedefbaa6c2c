"""
Reordering: drag-and-drop of tasks inside a subcategory, and up/down
buttons on category and subcategory headers.

Both paths write to the OrderingStore only; nothing here talks to the
backing store or refetches tasks.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Literal, Optional, Sequence, Tuple, TypeVar

from gantt.domain.ordering.keys import subcategory_key
from gantt.domain.ordering.store import OrderingStore
from gantt.domain.tasks.models import Task

logger = logging.getLogger(__name__)

T = TypeVar("T")

Direction = Literal["up", "down"]


def array_move(items: Sequence[T], old_index: int, new_index: int) -> List[T]:
    """Remove the item at old_index and reinsert it at new_index."""
    moved = list(items)
    item = moved.pop(old_index)
    moved.insert(new_index, item)
    return moved


class DragPhase(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    DROPPED = "dropped"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class DropResult:
    accepted: bool
    phase: DragPhase
    bucket_key: Optional[str] = None
    order: Tuple[str, ...] = ()
    reason: str = ""


class DragReorderCoordinator:
    """
    One drag gesture at a time: idle -> dragging -> (dropped | cancelled) -> idle.

    `tasks` is the in-memory render list (flat, display order). A legal drop
    moves the dragged task within its subcategory bucket, writes the bucket's
    new id order to the store and updates the render list in place.
    """

    def __init__(self, store: OrderingStore, tasks: Sequence[Task]) -> None:
        self._store = store
        self._tasks: List[Task] = list(tasks)
        self._phase = DragPhase.IDLE
        self._dragged: Optional[Task] = None

    @property
    def phase(self) -> DragPhase:
        return self._phase

    @property
    def dragged_id(self) -> Optional[str]:
        return self._dragged.id if self._dragged else None

    @property
    def tasks(self) -> List[Task]:
        return list(self._tasks)

    def _find(self, task_id: str) -> Optional[Task]:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def begin(self, task_id: str) -> bool:
        task = self._find(task_id)
        if task is None:
            return False
        self._dragged = task
        self._phase = DragPhase.DRAGGING
        return True

    def cancel(self) -> DropResult:
        self._reset()
        return DropResult(accepted=False, phase=DragPhase.CANCELLED, reason="cancelled")

    def _reset(self) -> None:
        self._dragged = None
        self._phase = DragPhase.IDLE

    def _reject(self, reason: str) -> DropResult:
        logger.debug("Drop rejected: %s", reason)
        self._reset()
        return DropResult(accepted=False, phase=DragPhase.CANCELLED, reason=reason)

    def drop(self, target_id: Optional[str]) -> DropResult:
        if self._phase is not DragPhase.DRAGGING or self._dragged is None:
            return DropResult(accepted=False, phase=DragPhase.IDLE, reason="not dragging")

        active = self._dragged
        target = self._find(target_id) if target_id else None
        if target is None:
            return self._reject("no drop target")
        if active.category != target.category or active.sub_category != target.sub_category:
            return self._reject("different subcategory")

        key = subcategory_key(active.category, active.sub_category)
        positions = [
            i for i, t in enumerate(self._tasks)
            if t.category == active.category and t.sub_category == active.sub_category
        ]
        bucket = [self._tasks[i] for i in positions]
        old_index = next(i for i, t in enumerate(bucket) if t.id == active.id)
        new_index = next(i for i, t in enumerate(bucket) if t.id == target.id)

        self._reset()
        if old_index == new_index:
            return DropResult(
                accepted=True,
                phase=DragPhase.DROPPED,
                bucket_key=key,
                order=tuple(t.id for t in bucket),
            )

        reordered = array_move(bucket, old_index, new_index)
        new_ids = [t.id for t in reordered]
        self._store.set_task_bucket(key, new_ids)

        # bucket members keep their slots in the render list, in the new order
        for slot, task in zip(positions, reordered):
            self._tasks[slot] = task

        return DropResult(accepted=True, phase=DragPhase.DROPPED, bucket_key=key, order=tuple(new_ids))


def _swap_adjacent(items: Sequence[str], name: str, direction: str) -> Optional[List[str]]:
    if name not in items:
        return None
    index = list(items).index(name)
    if direction == "up":
        other = index - 1
    elif direction == "down":
        other = index + 1
    else:
        return None
    if other < 0 or other >= len(items):
        return None
    swapped = list(items)
    swapped[index], swapped[other] = swapped[other], swapped[index]
    return swapped


def move_category(
    store: OrderingStore,
    displayed: Sequence[str],
    category: str,
    direction: Direction,
) -> Optional[List[str]]:
    """
    Swap a category with its neighbour in the displayed order and persist it.
    Returns the new order, or None when the move is not possible (first up / last down).
    """
    new_order = _swap_adjacent(displayed, category, direction)
    if new_order is None:
        return None
    store.save_category_order(new_order)
    return new_order


def move_subcategory(
    store: OrderingStore,
    category: str,
    displayed: Sequence[str],
    sub_category: str,
    direction: Direction,
) -> Optional[List[str]]:
    new_order = _swap_adjacent(displayed, sub_category, direction)
    if new_order is None:
        return None
    store.set_subcategories(category, new_order)
    return new_order

"""
OrderingStore: client-local display order and expand/collapse state.

Five independent JSON values live in a KeyValueStorage:
  - category order      ["Dev", "Ops", ...]
  - subcategory order   {"Dev": ["BE", "FE"], ...}
  - task order          {"Dev::BE": ["task-id", ...], ...}
  - expanded categories ["Dev", ...]
  - expanded subcategory keys ["Dev::BE", ...]

Reads never raise: missing, unreadable or malformed values come back as an
empty structure. Without a storage backend every read is empty and every
write is skipped.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set

from gantt.constants import (
    CATEGORY_ORDER_KEY,
    EXPANDED_CATEGORIES_KEY,
    EXPANDED_SUBCATEGORIES_KEY,
    SUBCATEGORY_ORDER_KEY,
    TASK_ORDER_KEY,
)
from gantt.domain.ordering.keys import subcategory_key
from gantt.domain.ordering.models import ExpansionState, OrderSnapshot, OrderState
from gantt.domain.ordering.ports import KeyValueStorage
from gantt.domain.tasks.models import Task

logger = logging.getLogger(__name__)


def _as_str_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [v for v in value if isinstance(v, str)]


def _as_buckets(value: Any) -> Optional[Dict[str, List[str]]]:
    if not isinstance(value, dict):
        return None
    buckets: Dict[str, List[str]] = {}
    for key, ids in value.items():
        cleaned = _as_str_list(ids)
        if cleaned is not None:
            buckets[str(key)] = cleaned
    return buckets


def _sorted_by_first_order(pairs: Dict[str, int]) -> List[str]:
    # sorted() is stable: equal display_order keeps first-seen order
    return [name for name, _ in sorted(pairs.items(), key=lambda item: item[1])]


class OrderingStore:
    def __init__(self, storage: Optional[KeyValueStorage]) -> None:
        self._storage = storage

    @property
    def available(self) -> bool:
        return self._storage is not None

    # ----- raw access -----

    def _load(self, key: str, coerce: Callable[[Any], Any], default: Callable[[], Any]) -> Any:
        if self._storage is None:
            return default()
        try:
            raw = self._storage.get(key)
        except (OSError, ValueError) as e:
            logger.warning("Ordering storage read failed for %s: %s", key, e)
            return default()
        if not raw:
            return default()
        try:
            parsed = json.loads(raw)
        except ValueError as e:
            logger.warning("Discarding unparsable ordering value for %s: %s", key, e)
            return default()
        value = coerce(parsed)
        if value is None:
            logger.warning("Discarding ordering value with unexpected shape for %s", key)
            return default()
        return value

    def _save(self, key: str, value: Any) -> None:
        if self._storage is None:
            return
        try:
            self._storage.set(key, json.dumps(value, ensure_ascii=False))
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Ordering storage write failed for %s: %s", key, e)

    # ----- typed load/save -----

    def load_category_order(self) -> List[str]:
        return self._load(CATEGORY_ORDER_KEY, _as_str_list, list)

    def save_category_order(self, categories: Sequence[str]) -> None:
        self._save(CATEGORY_ORDER_KEY, list(categories))

    def load_subcategory_order(self) -> Dict[str, List[str]]:
        return self._load(SUBCATEGORY_ORDER_KEY, _as_buckets, dict)

    def save_subcategory_order(self, order: Dict[str, Sequence[str]]) -> None:
        self._save(SUBCATEGORY_ORDER_KEY, {k: list(v) for k, v in order.items()})

    def load_task_order(self) -> Dict[str, List[str]]:
        return self._load(TASK_ORDER_KEY, _as_buckets, dict)

    def save_task_order(self, order: Dict[str, Sequence[str]]) -> None:
        self._save(TASK_ORDER_KEY, {k: list(v) for k, v in order.items()})

    def load_expanded_categories(self) -> Set[str]:
        return set(self._load(EXPANDED_CATEGORIES_KEY, _as_str_list, list))

    def save_expanded_categories(self, categories: Iterable[str]) -> None:
        self._save(EXPANDED_CATEGORIES_KEY, sorted(set(categories)))

    def load_expanded_subcategories(self) -> Set[str]:
        return set(self._load(EXPANDED_SUBCATEGORIES_KEY, _as_str_list, list))

    def save_expanded_subcategories(self, keys: Iterable[str]) -> None:
        self._save(EXPANDED_SUBCATEGORIES_KEY, sorted(set(keys)))

    # ----- initialization from display_order -----

    def initialize_category_order(self, tasks: Sequence[Task]) -> List[str]:
        existing = self.load_category_order()
        if existing:
            return existing

        first_order: Dict[str, int] = {}
        for task in tasks:
            first_order.setdefault(task.category, task.display_order)

        categories = _sorted_by_first_order(first_order)
        if categories:
            self.save_category_order(categories)
        return categories

    def initialize_subcategory_order(self, tasks: Sequence[Task]) -> Dict[str, List[str]]:
        existing = self.load_subcategory_order()
        if existing:
            return existing

        per_category: Dict[str, Dict[str, int]] = {}
        for task in tasks:
            per_category.setdefault(task.category, {}).setdefault(task.sub_category, task.display_order)

        order = {category: _sorted_by_first_order(subs) for category, subs in per_category.items()}
        if order:
            self.save_subcategory_order(order)
        return order

    def initialize_task_order(self, tasks: Sequence[Task]) -> Dict[str, List[str]]:
        existing = self.load_task_order()
        if existing:
            return existing

        buckets: Dict[str, List[Task]] = {}
        for task in tasks:
            buckets.setdefault(subcategory_key(task.category, task.sub_category), []).append(task)

        order = {
            key: [t.id for t in sorted(members, key=lambda t: t.display_order)]
            for key, members in buckets.items()
        }
        if order:
            self.save_task_order(order)
        return order

    def initialize_if_absent(self, tasks: Sequence[Task]) -> OrderState:
        """Seed each empty order structure from display_order; populated ones are left alone."""
        return OrderState(
            categories=self.initialize_category_order(tasks),
            subcategories=self.initialize_subcategory_order(tasks),
            tasks=self.initialize_task_order(tasks),
        )

    # ----- incremental maintenance -----

    def prune_missing(self, existing_task_ids: Iterable[str]) -> bool:
        """Drop task ids not in existing_task_ids from every bucket. Returns True if anything changed."""
        keep = set(existing_task_ids)
        order = self.load_task_order()
        changed = False
        for key, ids in order.items():
            kept = [tid for tid in ids if tid in keep]
            if len(kept) != len(ids):
                order[key] = kept
                changed = True
        if changed:
            self.save_task_order(order)
        return changed

    def reconcile(self, tasks: Sequence[Task]) -> bool:
        """
        Bring the stored structures in line with the live task list.

        Every live task id ends up in exactly one bucket, its own: stale ids,
        duplicates and ids left behind after a category/subcategory change are
        removed, and missing ids are appended. Categories and subcategories
        that appeared since the last load are appended to their order lists;
        ones no task uses any more are dropped, along with their task buckets
        and expand flags. Returns True if anything changed.
        """
        own = {t.id: subcategory_key(t.category, t.sub_category) for t in tasks}
        changed = self._reconcile_groups(tasks)

        order = self.load_task_order()
        live_keys = set(own.values())
        task_changed = False

        for key in [k for k in order if k not in live_keys]:
            del order[key]
            task_changed = True

        placed: Set[str] = set()
        for key, ids in order.items():
            kept: List[str] = []
            for tid in ids:
                if own.get(tid) == key and tid not in placed:
                    kept.append(tid)
                    placed.add(tid)
            if kept != ids:
                order[key] = kept
                task_changed = True

        for task in tasks:
            if task.id not in placed:
                order.setdefault(own[task.id], []).append(task.id)
                placed.add(task.id)
                task_changed = True

        if task_changed:
            self.save_task_order(order)
        return changed or task_changed

    def _reconcile_groups(self, tasks: Sequence[Task]) -> bool:
        first_category: Dict[str, int] = {}
        first_sub: Dict[str, Dict[str, int]] = {}
        for task in tasks:
            first_category.setdefault(task.category, task.display_order)
            first_sub.setdefault(task.category, {}).setdefault(task.sub_category, task.display_order)
        changed = False

        stored = self.load_category_order()
        categories = [c for c in stored if c in first_category]
        categories += [c for c in _sorted_by_first_order(first_category) if c not in categories]
        if categories != stored:
            self.save_category_order(categories)
            changed = True

        stored_subs = self.load_subcategory_order()
        subcategories: Dict[str, List[str]] = {}
        for category, live in first_sub.items():
            subs = [s for s in stored_subs.get(category, []) if s in live]
            subs += [s for s in _sorted_by_first_order(live) if s not in subs]
            subcategories[category] = subs
        if subcategories != stored_subs:
            self.save_subcategory_order(subcategories)
            changed = True

        live_categories = set(first_category)
        live_keys = {subcategory_key(c, s) for c, subs in first_sub.items() for s in subs}
        expanded = self.load_expanded_categories()
        if not expanded <= live_categories:
            self.save_expanded_categories(expanded & live_categories)
            changed = True
        expanded_subs = self.load_expanded_subcategories()
        if not expanded_subs <= live_keys:
            self.save_expanded_subcategories(expanded_subs & live_keys)
            changed = True

        return changed

    def append_if_missing(self, bucket_key: str, task_id: str) -> bool:
        order = self.load_task_order()
        bucket = order.setdefault(bucket_key, [])
        if task_id in bucket:
            return False
        bucket.append(task_id)
        self.save_task_order(order)
        return True

    def append_category_if_missing(self, category: str) -> bool:
        order = self.load_category_order()
        if category in order:
            return False
        order.append(category)
        self.save_category_order(order)
        return True

    def append_subcategory_if_missing(self, category: str, sub_category: str) -> bool:
        order = self.load_subcategory_order()
        subs = order.setdefault(category, [])
        if sub_category in subs:
            return False
        subs.append(sub_category)
        self.save_subcategory_order(order)
        return True

    def remove_task(self, task_id: str) -> bool:
        order = self.load_task_order()
        changed = False
        for key, ids in order.items():
            if task_id in ids:
                order[key] = [tid for tid in ids if tid != task_id]
                changed = True
        if changed:
            self.save_task_order(order)
        return changed

    def set_task_bucket(self, bucket_key: str, task_ids: Sequence[str]) -> None:
        order = self.load_task_order()
        order[bucket_key] = list(task_ids)
        self.save_task_order(order)

    def set_subcategories(self, category: str, sub_categories: Sequence[str]) -> None:
        order = self.load_subcategory_order()
        order[category] = list(sub_categories)
        self.save_subcategory_order(order)

    # ----- expand / collapse -----

    def toggle_category(self, category: str) -> bool:
        """Flip a category's expanded flag; returns the new state."""
        expanded = self.load_expanded_categories()
        now_expanded = category not in expanded
        if now_expanded:
            expanded.add(category)
        else:
            expanded.discard(category)
        self.save_expanded_categories(expanded)
        return now_expanded

    def toggle_subcategory(self, key: str) -> bool:
        expanded = self.load_expanded_subcategories()
        now_expanded = key not in expanded
        if now_expanded:
            expanded.add(key)
        else:
            expanded.discard(key)
        self.save_expanded_subcategories(expanded)
        return now_expanded

    # ----- snapshots -----

    def order_state(self) -> OrderState:
        return OrderState(
            categories=self.load_category_order(),
            subcategories=self.load_subcategory_order(),
            tasks=self.load_task_order(),
        )

    def expansion_state(self) -> ExpansionState:
        return ExpansionState(
            categories=frozenset(self.load_expanded_categories()),
            subcategories=frozenset(self.load_expanded_subcategories()),
        )

    def snapshot(self) -> OrderSnapshot:
        return OrderSnapshot(order=self.order_state(), expansion=self.expansion_state())

"""
Group a flat task list into category -> subcategory -> tasks, in stored order.

Pure: the result depends only on the tasks and the OrderState passed in.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from gantt.domain.ordering.keys import subcategory_key
from gantt.domain.ordering.models import OrderState
from gantt.domain.tasks.models import Task


@dataclass(frozen=True)
class SubcategoryGroup:
    category: str
    name: str
    tasks: Tuple[Task, ...]

    @property
    def key(self) -> str:
        return subcategory_key(self.category, self.name)


@dataclass(frozen=True)
class CategoryGroup:
    name: str
    subcategories: Tuple[SubcategoryGroup, ...]

    @property
    def tasks(self) -> Tuple[Task, ...]:
        return tuple(t for sub in self.subcategories for t in sub.tasks)


@dataclass(frozen=True)
class ResolvedTree:
    categories: Tuple[CategoryGroup, ...]

    def category_names(self) -> List[str]:
        return [c.name for c in self.categories]

    def subcategory_names(self, category: str) -> List[str]:
        for c in self.categories:
            if c.name == category:
                return [s.name for s in c.subcategories]
        return []

    def find_subcategory(self, key: str) -> Optional[SubcategoryGroup]:
        for c in self.categories:
            for s in c.subcategories:
                if s.key == key:
                    return s
        return None

    def iter_tasks(self) -> Iterator[Task]:
        for c in self.categories:
            for s in c.subcategories:
                yield from s.tasks

    def flat_tasks(self) -> List[Task]:
        """All tasks in display order."""
        return list(self.iter_tasks())


def order_bucket(tasks: Sequence[Task], stored_ids: Sequence[str]) -> List[Task]:
    """Tasks listed in stored_ids come first in that order; the rest follow in encounter order."""
    by_id = {t.id: t for t in tasks}
    ordered: List[Task] = []
    emitted = set()
    for tid in stored_ids:
        task = by_id.get(tid)
        if task is not None and tid not in emitted:
            ordered.append(task)
            emitted.add(tid)
    ordered.extend(t for t in tasks if t.id not in emitted)
    return ordered


def order_names(names: Sequence[str], stored: Sequence[str]) -> List[str]:
    """Stable sort by position in stored; names absent from stored sort last."""
    rank = {}
    for i, name in enumerate(stored):
        rank.setdefault(name, i)
    missing = len(stored)
    return sorted(names, key=lambda n: rank.get(n, missing))


def resolve(tasks: Sequence[Task], order: OrderState) -> ResolvedTree:
    # insertion-ordered partition: category -> subcategory -> tasks as encountered
    partition: Dict[str, Dict[str, List[Task]]] = {}
    for task in tasks:
        partition.setdefault(task.category, {}).setdefault(task.sub_category, []).append(task)

    categories: List[CategoryGroup] = []
    for category in order_names(list(partition), order.categories):
        subs = partition[category]
        stored_subs = order.subcategories.get(category, ())
        groups = []
        for sub in order_names(list(subs), stored_subs):
            stored_ids = order.tasks.get(subcategory_key(category, sub), ())
            groups.append(
                SubcategoryGroup(
                    category=category,
                    name=sub,
                    tasks=tuple(order_bucket(subs[sub], stored_ids)),
                )
            )
        categories.append(CategoryGroup(name=category, subcategories=tuple(groups)))

    return ResolvedTree(categories=tuple(categories))

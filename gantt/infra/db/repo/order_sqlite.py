from __future__ import annotations

import logging
from typing import Any, Dict, List

from gantt.domain.ordering.keys import split_subcategory_key, subcategory_key
from gantt.domain.ordering.models import OrderSnapshot, SaveStats
from gantt.domain.ordering.ports import OrderPersistence
from gantt.domain.tasks.ports import Clock
from gantt.infra.db.connection import Database

logger = logging.getLogger(__name__)


class OrderSqliteRepo(OrderPersistence):
    """Bulk-save endpoint over the category/subcategory order, task.display_order and expand-state tables."""

    def __init__(self, db: Database, clock: Clock) -> None:
        self._db = db
        self._clock = clock

    async def save_all(self, snapshot: OrderSnapshot) -> SaveStats:
        """
        Replace the stored category/subcategory order with the snapshot's and
        upsert task display_order and expand state.

        Expand rows cover every ordered group plus any expanded group the order
        lists do not name, so no toggled flag is dropped.
        """
        order = snapshot.order
        expansion = snapshot.expansion
        now_iso = self._clock.now().isoformat()

        category_rows = [(category, i) for i, category in enumerate(order.categories)]

        subcategory_rows = [
            (category, sub, i)
            for category, subs in order.subcategories.items()
            for i, sub in enumerate(subs)
        ]

        task_rows = [
            (i, task_id)
            for ids in order.tasks.values()
            for i, task_id in enumerate(ids)
        ]

        expand_categories = list(order.categories)
        expand_categories += sorted(c for c in expansion.categories if c not in expand_categories)
        category_expand_rows = [
            (category, int(category in expansion.categories), now_iso)
            for category in expand_categories
        ]

        expand_pairs = [(category, sub) for category, subs in order.subcategories.items() for sub in subs]
        for key in sorted(expansion.subcategories):
            try:
                pair = split_subcategory_key(key)
            except ValueError:
                logger.warning("Skipping malformed expanded subcategory key %r", key)
                continue
            if pair not in expand_pairs:
                expand_pairs.append(pair)
        subcategory_expand_rows = [
            (category, sub, int(subcategory_key(category, sub) in expansion.subcategories), now_iso)
            for category, sub in expand_pairs
        ]

        logger.debug(
            "Saving order: %d categories, %d subcategories, %d task groups",
            len(category_rows),
            len(subcategory_rows),
            len(order.tasks),
        )

        await self._db.execute_batch(
            [
                ("DELETE FROM category_order;", [()]),
                (
                    """
                    INSERT INTO category_order(category, display_order) VALUES (?, ?)
                    ON CONFLICT(category) DO UPDATE SET display_order = excluded.display_order;
                    """,
                    category_rows,
                ),
                ("DELETE FROM subcategory_order;", [()]),
                (
                    """
                    INSERT INTO subcategory_order(category, sub_category, display_order) VALUES (?, ?, ?)
                    ON CONFLICT(category, sub_category) DO UPDATE SET display_order = excluded.display_order;
                    """,
                    subcategory_rows,
                ),
                ("UPDATE task SET display_order = ? WHERE id = ?;", task_rows),
                (
                    """
                    INSERT INTO category_expand_state(category, is_expanded, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(category) DO UPDATE SET is_expanded = excluded.is_expanded,
                                                        updated_at = excluded.updated_at;
                    """,
                    category_expand_rows,
                ),
                (
                    """
                    INSERT INTO subcategory_expand_state(category, sub_category, is_expanded, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(category, sub_category) DO UPDATE SET is_expanded = excluded.is_expanded,
                                                                      updated_at = excluded.updated_at;
                    """,
                    subcategory_expand_rows,
                ),
            ]
        )

        return SaveStats(
            categories=len(category_rows),
            subcategories=len(subcategory_rows),
            tasks=len(task_rows),
            expanded_categories=len(expansion.categories),
            expanded_subcategories=len(expansion.subcategories),
        )

    async def load_all(self) -> Dict[str, Any]:
        """Persisted order + expand state, in the bulk-save payload shape."""
        categories = await self._db.fetchall("SELECT category FROM category_order ORDER BY display_order, category;")
        sub_rows = await self._db.fetchall(
            "SELECT category, sub_category FROM subcategory_order ORDER BY category, display_order, sub_category;"
        )
        task_rows = await self._db.fetchall(
            "SELECT id, category, sub_category FROM task ORDER BY category, sub_category, display_order, created_at;"
        )
        cat_expanded = await self._db.fetchall("SELECT category FROM category_expand_state WHERE is_expanded = 1;")
        sub_expanded = await self._db.fetchall(
            "SELECT category, sub_category FROM subcategory_expand_state WHERE is_expanded = 1;"
        )

        subcategories: Dict[str, List[str]] = {}
        for r in sub_rows:
            subcategories.setdefault(r["category"], []).append(r["sub_category"])

        tasks: Dict[str, List[str]] = {}
        for r in task_rows:
            tasks.setdefault(subcategory_key(r["category"], r["sub_category"]), []).append(r["id"])

        return {
            "categories": [r["category"] for r in categories],
            "subcategories": subcategories,
            "tasks": tasks,
            "expandedCategories": sorted(r["category"] for r in cat_expanded),
            "expandedSubcategories": sorted(subcategory_key(r["category"], r["sub_category"]) for r in sub_expanded),
        }

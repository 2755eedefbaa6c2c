from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping, Sequence


@dataclass(frozen=True)
class OrderState:
    """Stored display order: categories, subcategories per category, task ids per bucket."""
    categories: Sequence[str] = ()
    subcategories: Mapping[str, Sequence[str]] = field(default_factory=dict)
    tasks: Mapping[str, Sequence[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class ExpansionState:
    categories: FrozenSet[str] = frozenset()
    subcategories: FrozenSet[str] = frozenset()

    def is_category_expanded(self, category: str) -> bool:
        return category in self.categories

    def is_subcategory_expanded(self, key: str) -> bool:
        return key in self.subcategories


@dataclass(frozen=True)
class OrderSnapshot:
    order: OrderState
    expansion: ExpansionState

    def to_payload(self) -> Dict[str, Any]:
        """Bulk-save payload; sets are emitted sorted so equal snapshots serialize identically."""
        return {
            "categories": list(self.order.categories),
            "subcategories": {k: list(v) for k, v in self.order.subcategories.items()},
            "tasks": {k: list(v) for k, v in self.order.tasks.items()},
            "expandedCategories": sorted(self.expansion.categories),
            "expandedSubcategories": sorted(self.expansion.subcategories),
        }


@dataclass(frozen=True)
class SaveStats:
    categories: int
    subcategories: int
    tasks: int
    expanded_categories: int
    expanded_subcategories: int

    def as_dict(self) -> Dict[str, int]:
        return {
            "categories": self.categories,
            "subcategories": self.subcategories,
            "tasks": self.tasks,
            "expandedCategories": self.expanded_categories,
            "expandedSubcategories": self.expanded_subcategories,
        }

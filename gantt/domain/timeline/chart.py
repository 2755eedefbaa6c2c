from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple

from gantt.constants import DEFAULT_EVENT_SPACING
from gantt.domain.ordering.models import ExpansionState
from gantt.domain.ordering.resolver import ResolvedTree
from gantt.domain.tasks.models import Task
from gantt.domain.timeline.layout import (
    BarRect,
    Marker,
    TimelineWindow,
    event_markers,
    group_rect,
    task_rect,
    today_index,
    unit_labels,
)

ROW_CATEGORY = "category"
ROW_SUBCATEGORY = "subcategory"
ROW_TASK = "task"


@dataclass(frozen=True)
class ChartRow:
    kind: str
    label: str
    depth: int
    key: str
    expanded: bool = False
    bar: Optional[BarRect] = None
    task: Optional[Task] = None
    markers: Tuple[Marker, ...] = ()


@dataclass(frozen=True)
class Chart:
    window: TimelineWindow
    rows: Tuple[ChartRow, ...]
    today_index: Optional[int] = None
    labels: Tuple[str, ...] = field(default_factory=tuple)


def build_chart(
    tree: ResolvedTree,
    expansion: ExpansionState,
    window: TimelineWindow,
    today: Optional[date] = None,
    event_spacing: float = DEFAULT_EVENT_SPACING,
) -> Chart:
    """Visible rows top to bottom; collapsed groups hide their children."""
    rows: List[ChartRow] = []
    for category in tree.categories:
        cat_open = expansion.is_category_expanded(category.name)
        rows.append(
            ChartRow(
                kind=ROW_CATEGORY,
                label=category.name,
                depth=0,
                key=category.name,
                expanded=cat_open,
                bar=group_rect(window, category.tasks),
            )
        )
        if not cat_open:
            continue

        for sub in category.subcategories:
            sub_open = expansion.is_subcategory_expanded(sub.key)
            rows.append(
                ChartRow(
                    kind=ROW_SUBCATEGORY,
                    label=sub.name,
                    depth=1,
                    key=sub.key,
                    expanded=sub_open,
                    bar=group_rect(window, sub.tasks),
                )
            )
            if not sub_open:
                continue

            for task in sub.tasks:
                rows.append(
                    ChartRow(
                        kind=ROW_TASK,
                        label=task.name,
                        depth=2,
                        key=task.id,
                        bar=task_rect(window, task),
                        task=task,
                        markers=tuple(event_markers(window, task.events, event_spacing)),
                    )
                )

    return Chart(
        window=window,
        rows=tuple(rows),
        today_index=today_index(window, today) if today is not None else None,
        labels=tuple(unit_labels(window)),
    )

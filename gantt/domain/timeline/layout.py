"""
Timeline layout: dates -> cells of a fixed-width grid -> pixel offsets.

A row is laid out as one label column followed by `units` cells, each
`cell_width` pixels wide, shifted right by `padding`:

    | label | cell 0 | cell 1 | ... | cell units-1 |
    ^padding

Cell i covers [boundary[i], boundary[i+1]); the last cell ends at
boundary[last] + one unit. Ranges that start before the window get start
index -1 (the label slot) so the bar runs out from the row's left edge while
its right edge stays where an unclipped layout would put it. Ranges that run
past the window end are clamped to the last cell. Point markers outside the
window are dropped.
"""
from __future__ import annotations

import bisect
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from functools import cached_property
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from gantt.constants import (
    DEFAULT_CELL_WIDTH,
    DEFAULT_EVENT_SPACING,
    DEFAULT_TIMELINE_UNITS,
    DEFAULT_WINDOW_PADDING,
)
from gantt.domain.common.time import add_months
from gantt.domain.tasks.models import Event, Task

# start index of a range that begins before the visible window
CLIPPED_BEFORE = -1


class TimeUnit(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @classmethod
    def parse(cls, value: str, default: Optional["TimeUnit"] = None) -> "TimeUnit":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            if default is None:
                raise
            return default


def unit_offset(start: date, unit: TimeUnit, steps: int) -> date:
    if unit is TimeUnit.DAY:
        return start + timedelta(days=steps)
    if unit is TimeUnit.WEEK:
        return start + timedelta(weeks=steps)
    return add_months(start, steps)


@dataclass(frozen=True)
class TimelineWindow:
    start: date
    units: int = DEFAULT_TIMELINE_UNITS
    unit: TimeUnit = TimeUnit.DAY
    cell_width: int = DEFAULT_CELL_WIDTH
    padding: int = DEFAULT_WINDOW_PADDING

    def __post_init__(self) -> None:
        if self.units < 1:
            raise ValueError("timeline needs at least one unit")
        if self.cell_width < 1:
            raise ValueError("cell width must be positive")

    @cached_property
    def boundaries(self) -> Tuple[date, ...]:
        return tuple(unit_offset(self.start, self.unit, i) for i in range(self.units))

    @cached_property
    def end(self) -> date:
        """Exclusive upper bound of the last cell."""
        return unit_offset(self.start, self.unit, self.units)

    @property
    def last_index(self) -> int:
        return self.units - 1

    @property
    def grid_left(self) -> int:
        """x of cell 0's left edge."""
        return self.cell_width + self.padding

    @property
    def total_width(self) -> int:
        return (self.units + 1) * self.cell_width + self.padding

    def cell_index(self, d: date) -> Optional[int]:
        if d < self.start or d >= self.end:
            return None
        return bisect.bisect_right(self.boundaries, d) - 1

    def cell_left(self, index: int) -> int:
        return (index + 1) * self.cell_width + self.padding

    def cell_center(self, index: int) -> float:
        return self.cell_left(index) + self.cell_width / 2


def shift(window: TimelineWindow, steps: int) -> TimelineWindow:
    """Same window moved by whole units."""
    return TimelineWindow(
        start=unit_offset(window.start, window.unit, steps),
        units=window.units,
        unit=window.unit,
        cell_width=window.cell_width,
        padding=window.padding,
    )


def unit_labels(window: TimelineWindow) -> List[str]:
    if window.unit is TimeUnit.MONTH:
        return [f"{d.year}/{d.month:02d}" for d in window.boundaries]
    return [f"{d.month}/{d.day}" for d in window.boundaries]


# ----- ranges -----


@dataclass(frozen=True)
class CellSpan:
    start_index: int
    end_index: int
    clipped_start: bool
    clipped_end: bool


@dataclass(frozen=True)
class BarRect:
    left: float
    width: float
    span: CellSpan

    @property
    def right(self) -> float:
        return self.left + self.width


def resolve_span(window: TimelineWindow, start: Optional[date], end: Optional[date]) -> Optional[CellSpan]:
    """Cell indices for [start, end], or None when nothing of it is visible."""
    if start is None or end is None:
        return None
    if end < start:
        start, end = end, start
    if end < window.start or start >= window.end:
        return None

    start_index = window.cell_index(start)
    clipped_start = start_index is None
    if clipped_start:
        start_index = CLIPPED_BEFORE

    end_index = window.cell_index(end)
    clipped_end = end_index is None
    if clipped_end:
        end_index = window.last_index

    return CellSpan(start_index, end_index, clipped_start, clipped_end)


def span_rect(window: TimelineWindow, span: CellSpan) -> BarRect:
    cw = window.cell_width
    left = window.cell_left(span.start_index)
    width = max((span.end_index - span.start_index + 1) * cw, cw)
    if left < 0:
        # keep the right edge, give up the part left of 0
        width += left
        left = 0
    return BarRect(left=left, width=max(width, 0), span=span)


def range_rect(window: TimelineWindow, start: Optional[date], end: Optional[date]) -> Optional[BarRect]:
    span = resolve_span(window, start, end)
    return span_rect(window, span) if span is not None else None


def task_range(task: Task) -> Optional[Tuple[date, date]]:
    start, end = task.effective_start(), task.effective_end()
    if start is None or end is None:
        return None
    return start, end


def group_range(tasks: Iterable[Task]) -> Optional[Tuple[date, date]]:
    """min start .. max end over member tasks (event due dates stand in for missing dates)."""
    dates: List[date] = []
    for task in tasks:
        start, end = task.effective_start(), task.effective_end()
        if start is not None:
            dates.append(start)
        if end is not None:
            dates.append(end)
    if not dates:
        return None
    return min(dates), max(dates)


def task_rect(window: TimelineWindow, task: Task) -> Optional[BarRect]:
    rng = task_range(task)
    return range_rect(window, *rng) if rng else None


def group_rect(window: TimelineWindow, tasks: Iterable[Task]) -> Optional[BarRect]:
    rng = group_range(tasks)
    return range_rect(window, *rng) if rng else None


# ----- points -----


@dataclass(frozen=True)
class Marker:
    event: Event
    index: int
    x: float
    dy: float


def stack_offsets(count: int, spacing: float = DEFAULT_EVENT_SPACING) -> List[float]:
    """Vertical offsets for `count` markers, symmetric around 0."""
    middle = (count - 1) / 2
    return [(k - middle) * spacing for k in range(count)]


def event_markers(
    window: TimelineWindow,
    events: Sequence[Event],
    spacing: float = DEFAULT_EVENT_SPACING,
) -> List[Marker]:
    """Markers for events inside the window; same-date events are stacked vertically."""
    by_date: Dict[date, List[Tuple[Event, int]]] = {}
    for event in events:
        if event.due_date is None:
            continue
        index = window.cell_index(event.due_date)
        if index is None:
            continue
        by_date.setdefault(event.due_date, []).append((event, index))

    markers: List[Marker] = []
    for group in by_date.values():
        for (event, index), dy in zip(group, stack_offsets(len(group), spacing)):
            markers.append(Marker(event=event, index=index, x=window.cell_center(index), dy=dy))
    return markers


def today_index(window: TimelineWindow, today: date) -> Optional[int]:
    return window.cell_index(today)


def today_x(window: TimelineWindow, today: date) -> Optional[float]:
    index = window.cell_index(today)
    return window.cell_center(index) if index is not None else None


def window_start_for(today: date, unit: TimeUnit, lookback_days: int = 0) -> date:
    """Default window start: `lookback_days` before today, aligned to the unit (Monday / 1st of month)."""
    start = today - timedelta(days=lookback_days)
    if unit is TimeUnit.WEEK:
        return start - timedelta(days=start.weekday())
    if unit is TimeUnit.MONTH:
        return start.replace(day=1)
    return start

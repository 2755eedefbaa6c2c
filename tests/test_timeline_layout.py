"""
Unit tests for the timeline layout: cell indices, bar offsets, clipping and event markers.

Run with: python -m pytest tests/test_timeline_layout.py -v
"""
from __future__ import annotations

from datetime import date

import pytest

from gantt.domain.tasks.models import Event, Task
from gantt.domain.timeline.layout import (
    CLIPPED_BEFORE,
    TimelineWindow,
    TimeUnit,
    event_markers,
    group_range,
    group_rect,
    range_rect,
    resolve_span,
    shift,
    stack_offsets,
    task_range,
    task_rect,
    today_index,
    today_x,
    unit_labels,
    window_start_for,
)

JAN1 = date(2024, 1, 1)


def _window(**kwargs):
    return TimelineWindow(start=JAN1, **kwargs)


def _task(start=None, end=None, events=()):
    return Task(id="t", name="T", category="Dev", sub_category="BE", start_date=start, end_date=end, events=tuple(events))


def _event(event_id, due):
    return Event(id=event_id, name=event_id, task_id="t", due_date=due)


# ----- window -----


def test_window_validates_units_and_cell_width():
    with pytest.raises(ValueError):
        TimelineWindow(start=JAN1, units=0)
    with pytest.raises(ValueError):
        TimelineWindow(start=JAN1, cell_width=0)


def test_day_cell_index_and_bounds():
    w = _window(units=10)
    assert w.cell_index(JAN1) == 0
    assert w.cell_index(date(2024, 1, 10)) == 9
    assert w.cell_index(date(2024, 1, 11)) is None
    assert w.cell_index(date(2023, 12, 31)) is None
    assert w.end == date(2024, 1, 11)


def test_week_unit():
    w = _window(units=4, unit=TimeUnit.WEEK)
    assert w.cell_index(date(2024, 1, 7)) == 0
    assert w.cell_index(date(2024, 1, 8)) == 1
    assert w.cell_index(date(2024, 1, 28)) == 3
    assert w.cell_index(date(2024, 1, 29)) is None


def test_month_unit():
    w = _window(units=12, unit=TimeUnit.MONTH)
    assert w.cell_index(date(2024, 3, 15)) == 2
    assert w.cell_index(date(2024, 12, 31)) == 11
    assert w.end == date(2025, 1, 1)
    assert unit_labels(w)[:2] == ["2024/01", "2024/02"]


def test_time_unit_parse():
    assert TimeUnit.parse(" Week ") is TimeUnit.WEEK
    assert TimeUnit.parse("fortnight", default=TimeUnit.DAY) is TimeUnit.DAY
    with pytest.raises(ValueError):
        TimeUnit.parse("fortnight")


def test_total_width_includes_label_column_and_padding():
    assert _window(units=10, cell_width=30, padding=5).total_width == 11 * 30 + 5


def test_shift_moves_by_whole_units():
    w = _window(units=10)
    assert shift(w, 7).start == date(2024, 1, 8)
    assert shift(w, -1).start == date(2023, 12, 31)
    assert shift(w, 7).units == 10


def test_window_start_for_aligns_to_unit():
    today = date(2024, 1, 10)
    assert window_start_for(today, TimeUnit.DAY, 7) == date(2024, 1, 3)
    assert window_start_for(today, TimeUnit.WEEK, 7) == date(2024, 1, 1)
    assert window_start_for(today, TimeUnit.MONTH, 7) == date(2024, 1, 1)
    assert window_start_for(today, TimeUnit.DAY) == today


# ----- bars -----


def test_bar_inside_window():
    """Jan 3..Jan 5 on a day grid of 30px -> cells 2..4, left (2+1)*30, width 3*30."""
    rect = task_rect(_window(cell_width=30), _task(date(2024, 1, 3), date(2024, 1, 5)))
    assert (rect.span.start_index, rect.span.end_index) == (2, 4)
    assert rect.left == (2 + 1) * 30
    assert rect.width == 3 * 30


def test_bar_left_includes_padding():
    rect = task_rect(_window(cell_width=30, padding=12), _task(date(2024, 1, 3), date(2024, 1, 5)))
    assert rect.left == (2 + 1) * 30 + 12
    assert rect.width == 90


def test_single_day_bar_is_one_cell_wide():
    rect = range_rect(_window(cell_width=30), date(2024, 1, 3), date(2024, 1, 3))
    assert rect.width == 30


def test_reversed_range_is_swapped():
    assert range_rect(_window(), date(2024, 1, 5), date(2024, 1, 3)) == range_rect(
        _window(), date(2024, 1, 3), date(2024, 1, 5)
    )


def test_range_starting_before_window_keeps_right_edge():
    w = _window(cell_width=30, padding=10)
    rect = range_rect(w, date(2023, 12, 20), date(2024, 1, 2))

    assert rect.span.start_index == CLIPPED_BEFORE
    assert rect.span.clipped_start is True
    assert rect.left == 10
    assert rect.right == w.cell_left(1) + 30


def test_range_ending_after_window_is_clamped():
    w = _window(units=10, cell_width=30)
    span = resolve_span(w, date(2024, 1, 5), date(2024, 2, 1))
    assert (span.start_index, span.end_index, span.clipped_end) == (4, 9, True)
    rect = range_rect(w, date(2024, 1, 5), date(2024, 2, 1))
    assert rect.left == 150
    assert rect.width == 180


def test_range_outside_window_is_not_drawn():
    w = _window(units=10)
    assert range_rect(w, date(2023, 12, 1), date(2023, 12, 31)) is None
    assert range_rect(w, date(2024, 1, 11), date(2024, 1, 20)) is None


def test_range_covering_whole_window():
    w = _window(units=10, cell_width=30)
    rect = range_rect(w, date(2023, 12, 1), date(2024, 3, 1))
    assert rect.left == 0
    assert rect.right == w.total_width


def test_task_without_end_has_no_bar():
    assert task_range(_task(start=date(2024, 1, 3))) is None
    assert task_rect(_window(), _task(start=date(2024, 1, 3))) is None


def test_task_range_falls_back_to_event_dates():
    task = _task(events=[_event("e1", date(2024, 1, 6)), _event("e2", date(2024, 1, 4))])
    assert task_range(task) == (date(2024, 1, 4), date(2024, 1, 6))
    rect = task_rect(_window(), task)
    assert (rect.span.start_index, rect.span.end_index) == (3, 5)


def test_group_range_spans_members():
    tasks = [
        _task(date(2024, 1, 3), date(2024, 1, 5)),
        _task(date(2024, 1, 10), date(2024, 1, 12)),
        _task(),
        _task(start=date(2024, 1, 20)),
    ]
    assert group_range(tasks) == (date(2024, 1, 3), date(2024, 1, 20))
    assert group_range([_task()]) is None
    assert group_rect(_window(), [_task()]) is None


# ----- markers / today -----


def test_stack_offsets_are_symmetric():
    assert stack_offsets(1, 24) == [0]
    assert stack_offsets(2, 24) == [-12, 12]
    assert stack_offsets(3, 24) == [-24, 0, 24]


def test_same_day_events_are_stacked():
    w = _window(cell_width=30)
    markers = event_markers(w, [_event("e1", date(2024, 1, 3)), _event("e2", date(2024, 1, 3))], spacing=24)

    assert [m.dy for m in markers] == [-12, 12]
    assert all(m.index == 2 for m in markers)
    assert all(m.x == w.cell_center(2) == 105 for m in markers)


def test_markers_outside_window_or_undated_are_omitted():
    w = _window(units=10)
    markers = event_markers(
        w,
        [_event("in", date(2024, 1, 5)), _event("out", date(2024, 2, 5)), _event("none", None)],
    )
    assert [m.event.id for m in markers] == ["in"]
    assert markers[0].dy == 0


def test_today_index_and_x():
    w = _window(units=10, cell_width=30)
    assert today_index(w, date(2024, 1, 10)) == 9
    assert today_x(w, date(2024, 1, 10)) == 315
    assert today_index(w, date(2024, 2, 1)) is None
    assert today_x(w, date(2023, 1, 1)) is None

from __future__ import annotations

from typing import Sequence

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from gantt.domain.tasks.models import Task
from gantt.domain.timeline.chart import ROW_TASK, Chart
from gantt.domain.timeline.layout import TimeUnit

BUTTON_LABEL_MAX = 28

_NEXT_UNIT = {
    TimeUnit.DAY: TimeUnit.WEEK,
    TimeUnit.WEEK: TimeUnit.MONTH,
    TimeUnit.MONTH: TimeUnit.DAY,
}


def next_unit(unit: TimeUnit) -> TimeUnit:
    return _NEXT_UNIT[unit]


def _short(text: str) -> str:
    if len(text) <= BUTTON_LABEL_MAX:
        return text
    return text[: BUTTON_LABEL_MAX - 1] + "…"


def gantt_kb(chart: Chart, unit: TimeUnit) -> InlineKeyboardMarkup:
    """
    One line per visible group row: [toggle] [up] [down], then window and action rows.

    callback_data:
      g:tg:<row>  g:up:<row>  g:dn:<row>   (row = index in chart.rows)
      g:nav:prev|today|next  g:unit:<unit>  g:move  g:save
    """
    kb = InlineKeyboardBuilder()
    sizes = []

    for i, row in enumerate(chart.rows):
        if row.kind == ROW_TASK:
            continue
        arrow = "▼" if row.expanded else "▶"
        indent = "  " * row.depth
        kb.button(text=_short(f"{indent}{arrow} {row.label}"), callback_data=f"g:tg:{i}")
        kb.button(text="↑", callback_data=f"g:up:{i}")
        kb.button(text="↓", callback_data=f"g:dn:{i}")
        sizes.append(3)

    kb.button(text="◀", callback_data="g:nav:prev")
    kb.button(text="Today", callback_data="g:nav:today")
    kb.button(text="▶", callback_data="g:nav:next")
    kb.button(text=f"Unit: {unit.value}", callback_data=f"g:unit:{next_unit(unit).value}")
    sizes.append(4)

    kb.button(text="Move task", callback_data="g:move")
    kb.button(text="Save order", callback_data="g:save")
    sizes.append(2)

    kb.adjust(*sizes)
    return kb.as_markup()


def task_picker_kb(tasks: Sequence[Task], prefix: str, cancel_data: str = "cancel") -> InlineKeyboardMarkup:
    """
    One button per task, callback_data f"{prefix}:{task.id}".
    """
    kb = InlineKeyboardBuilder()
    for task in tasks:
        label = f"{task.sub_category} / {task.name}"
        kb.button(text=_short(label), callback_data=f"{prefix}:{task.id}")
    kb.button(text="Cancel", callback_data=cancel_data)
    kb.adjust(1)
    return kb.as_markup()


def cancel_kb(data: str = "cancel") -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Cancel", callback_data=data)
    kb.adjust(1)
    return kb.as_markup()

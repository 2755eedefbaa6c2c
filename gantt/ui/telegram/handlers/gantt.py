from __future__ import annotations

import html
import logging
from datetime import date
from typing import Optional, Tuple

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import BufferedInputFile, CallbackQuery, InlineKeyboardMarkup, Message

from gantt.config import TimelineSettings
from gantt.domain.board.service import Board, BoardService
from gantt.domain.common.time import parse_date, to_iso_date
from gantt.domain.ordering.keys import split_subcategory_key
from gantt.domain.tasks.ports import Clock
from gantt.domain.timeline.chart import ROW_CATEGORY, ROW_SUBCATEGORY, Chart, ChartRow
from gantt.domain.timeline.layout import TimelineWindow, TimeUnit, shift, window_start_for
from gantt.render.svg import render_svg
from gantt.render.text import render_text
from gantt.ui.telegram.keyboards.gantt import gantt_kb, task_picker_kb
from gantt.ui.telegram.keyboards.mainmenu import BTN_EXPORT, BTN_GANTT
from gantt.ui.telegram.states.gantt import GanttFlow
from gantt.ui.telegram.texts import gantt as texts

logger = logging.getLogger(__name__)

router = Router()


# ----- view state (window start + unit live in FSM data) -----


async def _view(state: FSMContext, clock: Clock, timeline: TimelineSettings) -> Tuple[date, TimeUnit]:
    data = await state.get_data()
    unit = TimeUnit.parse(data.get("view_unit", ""), default=timeline.unit)
    start: Optional[date] = None
    try:
        start = parse_date(data.get("view_start"))
    except ValueError:
        logger.warning(f"Dropping bad view_start in FSM data: {data.get('view_start')!r}")
    if start is None:
        start = window_start_for(clock.today(), unit, timeline.lookback_days)
    return start, unit


async def _set_view(state: FSMContext, start: Optional[date], unit: TimeUnit) -> None:
    await state.update_data(view_start=to_iso_date(start), view_unit=unit.value)


def _text_window(start: date, unit: TimeUnit, timeline: TimelineSettings) -> TimelineWindow:
    # one character per cell
    return TimelineWindow(start=start, units=timeline.text_units, unit=unit, cell_width=1, padding=0)


def _pixel_window(start: date, unit: TimeUnit, timeline: TimelineSettings) -> TimelineWindow:
    return TimelineWindow(
        start=start,
        units=timeline.units,
        unit=unit,
        cell_width=timeline.cell_width,
        padding=timeline.padding,
    )


async def _chart(
    board: BoardService,
    user_id: int,
    state: FSMContext,
    clock: Clock,
    timeline: TimelineSettings,
) -> Tuple[Board, Chart, TimeUnit]:
    loaded = await board.load(user_id)
    start, unit = await _view(state, clock, timeline)
    window = _text_window(start, unit, timeline)
    chart = loaded.chart(window, today=clock.today(), event_spacing=timeline.event_spacing)
    return loaded, chart, unit


def _gantt_text(board: BoardService, user_id: int, loaded: Board, chart: Chart, unit: TimeUnit) -> str:
    if not loaded.tasks:
        return texts.NO_TASKS
    lines = [f"<b>Gantt</b>: {unit.value}s from {to_iso_date(chart.window.start)}", render_text(chart)]
    if not board.store(user_id).available:
        lines.append(texts.STORAGE_UNAVAILABLE)
    return "\n".join(lines)


async def _render(
    board: BoardService,
    user_id: int,
    state: FSMContext,
    clock: Clock,
    timeline: TimelineSettings,
) -> Tuple[str, Optional[InlineKeyboardMarkup]]:
    loaded, chart, unit = await _chart(board, user_id, state, clock, timeline)
    if not loaded.tasks:
        return texts.NO_TASKS, None
    return _gantt_text(board, user_id, loaded, chart, unit), gantt_kb(chart, unit)


async def send_gantt(
    message: Message,
    user_id: int,
    board: BoardService,
    state: FSMContext,
    clock: Clock,
    timeline: TimelineSettings,
) -> None:
    text, kb = await _render(board, user_id, state, clock, timeline)
    await message.answer(text, reply_markup=kb)


async def _refresh(
    cb: CallbackQuery,
    board: BoardService,
    state: FSMContext,
    clock: Clock,
    timeline: TimelineSettings,
) -> None:
    text, kb = await _render(board, cb.from_user.id, state, clock, timeline)
    try:
        await cb.message.edit_text(text, reply_markup=kb)
    except TelegramBadRequest as e:
        # "message is not modified" when the view did not change
        logger.debug(f"Gantt message not edited: {e}")


async def _row_at(
    cb: CallbackQuery,
    board: BoardService,
    state: FSMContext,
    clock: Clock,
    timeline: TimelineSettings,
) -> Tuple[Optional[Board], Optional[ChartRow]]:
    try:
        index = int((cb.data or "").rsplit(":", 1)[1])
    except (IndexError, ValueError):
        return None, None
    loaded, chart, _ = await _chart(board, cb.from_user.id, state, clock, timeline)
    if index < 0 or index >= len(chart.rows):
        return loaded, None
    return loaded, chart.rows[index]


# ----- commands -----


@router.message(Command("gantt"))
@router.message(F.text == BTN_GANTT)
async def gantt_cmd(
    message: Message,
    state: FSMContext,
    board: BoardService,
    clock: Clock,
    timeline: TimelineSettings,
):
    await state.set_state(None)
    await send_gantt(message, message.from_user.id, board, state, clock, timeline)


@router.message(Command("export"))
@router.message(F.text == BTN_EXPORT)
async def export_cmd(
    message: Message,
    state: FSMContext,
    board: BoardService,
    clock: Clock,
    timeline: TimelineSettings,
):
    loaded = await board.load(message.from_user.id)
    if not loaded.tasks:
        await message.answer(texts.NO_TASKS)
        return

    start, unit = await _view(state, clock, timeline)
    window = _pixel_window(start, unit, timeline)
    chart = loaded.chart(window, today=clock.today(), event_spacing=timeline.event_spacing)
    svg = render_svg(chart)

    filename = f"gantt-{to_iso_date(start)}-{unit.value}.svg"
    await message.answer_document(
        BufferedInputFile(svg.encode("utf-8"), filename=filename),
        caption=f"{len(chart.rows)} rows, {window.units} {unit.value}s from {to_iso_date(start)}",
    )


# ----- expand / collapse / up / down -----


@router.callback_query(F.data.startswith("g:tg:"))
async def gantt_toggle(cb: CallbackQuery, state: FSMContext, board: BoardService, clock: Clock, timeline: TimelineSettings):
    _, row = await _row_at(cb, board, state, clock, timeline)
    if row is None:
        await cb.answer("Stale button, showing a fresh view.")
        await _refresh(cb, board, state, clock, timeline)
        return

    if row.kind == ROW_CATEGORY:
        board.toggle_category(cb.from_user.id, row.key)
    elif row.kind == ROW_SUBCATEGORY:
        board.toggle_subcategory(cb.from_user.id, row.key)
    await cb.answer()
    await _refresh(cb, board, state, clock, timeline)


@router.callback_query(F.data.startswith("g:up:") | F.data.startswith("g:dn:"))
async def gantt_move_group(cb: CallbackQuery, state: FSMContext, board: BoardService, clock: Clock, timeline: TimelineSettings):
    direction = "up" if (cb.data or "").startswith("g:up:") else "down"
    loaded, row = await _row_at(cb, board, state, clock, timeline)
    if loaded is None or row is None:
        await cb.answer("Stale button, showing a fresh view.")
        await _refresh(cb, board, state, clock, timeline)
        return

    moved = False
    if row.kind == ROW_CATEGORY:
        moved = board.move_category(cb.from_user.id, loaded, row.key, direction)
    elif row.kind == ROW_SUBCATEGORY:
        category, sub_category = split_subcategory_key(row.key)
        moved = board.move_subcategory(cb.from_user.id, loaded, category, sub_category, direction)

    if not moved:
        await cb.answer(texts.MOVE_BLOCKED)
        return
    await cb.answer()
    await _refresh(cb, board, state, clock, timeline)


# ----- window -----


@router.callback_query(F.data.startswith("g:nav:"))
async def gantt_nav(cb: CallbackQuery, state: FSMContext, board: BoardService, clock: Clock, timeline: TimelineSettings):
    choice = (cb.data or "").split(":")[-1]
    start, unit = await _view(state, clock, timeline)

    if choice == "today":
        await _set_view(state, None, unit)
    else:
        window = _text_window(start, unit, timeline)
        steps = window.units // 2 or 1
        moved = shift(window, -steps if choice == "prev" else steps)
        await _set_view(state, moved.start, unit)

    await cb.answer()
    await _refresh(cb, board, state, clock, timeline)


@router.callback_query(F.data.startswith("g:unit:"))
async def gantt_unit(cb: CallbackQuery, state: FSMContext, board: BoardService, clock: Clock, timeline: TimelineSettings):
    unit = TimeUnit.parse((cb.data or "").split(":")[-1], default=timeline.unit)
    # new unit restarts from the default window around today
    await _set_view(state, None, unit)
    await cb.answer(f"Unit: {unit.value}")
    await _refresh(cb, board, state, clock, timeline)


# ----- save -----


@router.callback_query(F.data == "g:save")
async def gantt_save(cb: CallbackQuery, board: BoardService):
    result = await board.save_order(cb.from_user.id)
    await cb.answer(result.message, show_alert=not result.success)
    if result.success and result.stats is not None:
        s = result.stats
        await cb.message.answer(
            f"{result.message}\n"
            f"categories: {s.categories}, subcategories: {s.subcategories}, tasks: {s.tasks}\n"
            f"expanded: {s.expanded_categories} categories, {s.expanded_subcategories} subcategories"
        )


# ----- move task (drag begin / drop) -----


@router.callback_query(F.data == "g:move")
async def gantt_move_start(cb: CallbackQuery, board: BoardService):
    loaded = await board.load(cb.from_user.id)
    await cb.answer()
    if not loaded.tasks:
        await cb.message.answer(texts.NO_TASKS)
        return
    await cb.message.answer(
        texts.DRAG_PICK,
        reply_markup=task_picker_kb(loaded.tree.flat_tasks(), "g:drag", cancel_data="g:drag_cancel"),
    )


@router.callback_query(F.data.startswith("g:drag:"))
async def gantt_drag_begin(cb: CallbackQuery, state: FSMContext, board: BoardService):
    task_id = (cb.data or "").split(":", 2)[-1]
    loaded = await board.load(cb.from_user.id)
    drag = board.drag(cb.from_user.id, loaded)
    if not drag.begin(task_id):
        await cb.answer(texts.TASK_GONE, show_alert=True)
        return

    task = loaded.task(task_id)
    await state.set_state(GanttFlow.drag_target)
    await state.update_data(dragged_id=task_id)
    await cb.answer()
    await cb.message.edit_text(
        texts.DRAG_TARGET.format(name=html.escape(task.name if task else task_id)),
        reply_markup=task_picker_kb(loaded.tree.flat_tasks(), "g:drop", cancel_data="g:drag_cancel"),
    )


@router.callback_query(GanttFlow.drag_target, F.data.startswith("g:drop:"))
async def gantt_drop(cb: CallbackQuery, state: FSMContext, board: BoardService, clock: Clock, timeline: TimelineSettings):
    target_id = (cb.data or "").split(":", 2)[-1]
    data = await state.get_data()
    dragged_id = data.get("dragged_id")
    await state.set_state(None)
    await state.update_data(dragged_id=None)

    loaded = await board.load(cb.from_user.id)
    drag = board.drag(cb.from_user.id, loaded)
    if not dragged_id or not drag.begin(dragged_id):
        await cb.answer(texts.TASK_GONE, show_alert=True)
        return

    result = drag.drop(target_id)
    if not result.accepted:
        if result.reason == "different subcategory":
            await cb.answer(texts.DRAG_NOT_ALLOWED, show_alert=True)
        else:
            await cb.answer(texts.TASK_GONE, show_alert=True)
        await cb.message.edit_text(texts.CANCELLED)
        return

    await cb.answer(texts.DRAG_NOOP if target_id == dragged_id else texts.DRAG_DONE)
    await cb.message.edit_text(texts.DRAG_NOOP if target_id == dragged_id else texts.DRAG_DONE)
    await send_gantt(cb.message, cb.from_user.id, board, state, clock, timeline)


@router.callback_query(F.data.startswith("g:drop:"))
async def gantt_drop_stale(cb: CallbackQuery):
    await cb.answer("Pick the task to move first.", show_alert=True)


@router.callback_query(F.data == "g:drag_cancel")
async def gantt_drag_cancel(cb: CallbackQuery, state: FSMContext):
    await state.set_state(None)
    await state.update_data(dragged_id=None)
    await cb.answer()
    await cb.message.edit_text(texts.CANCELLED)

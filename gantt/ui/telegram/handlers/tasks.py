from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from gantt.domain.board.service import BoardService
from gantt.domain.common.errors import NotFoundError, ValidationError
from gantt.domain.common.time import parse_date, to_iso_date
from gantt.ui.telegram.keyboards.gantt import cancel_kb, task_picker_kb
from gantt.ui.telegram.keyboards.mainmenu import BTN_ADD_EVENT, BTN_ADD_TASK, BTN_DELETE_TASK, main_menu_kb
from gantt.ui.telegram.states.gantt import TaskFlow
from gantt.ui.telegram.texts import gantt as texts
from gantt.ui.telegram.utils.navigation import command_args

logger = logging.getLogger(__name__)

router = Router()


@dataclass(frozen=True)
class TaskLine:
    name: str
    category: str
    sub_category: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class EventLine:
    name: str
    due_date: date


def _parts(line: str):
    return [p.strip() for p in (line or "").split(";")]


def _date_part(parts, index: int, label: str) -> Optional[date]:
    if index >= len(parts):
        return None
    try:
        return parse_date(parts[index])
    except ValueError:
        raise ValidationError(f"{label} is not a date (YYYY-MM-DD): {parts[index]!r}")


def parse_task_line(line: str) -> TaskLine:
    """
    "name; category; subcategory; start; end" -> TaskLine.
    Start and end may be missing or empty.
    """
    parts = _parts(line)
    if len(parts) < 3 or not all(parts[:3]):
        raise ValidationError("Need at least name; category; subcategory.")
    if len(parts) > 5:
        raise ValidationError("Too many fields.")
    return TaskLine(
        name=parts[0],
        category=parts[1],
        sub_category=parts[2],
        start_date=_date_part(parts, 3, "Start"),
        end_date=_date_part(parts, 4, "End"),
    )


def parse_event_line(line: str) -> EventLine:
    parts = _parts(line)
    if len(parts) != 2 or not parts[0]:
        raise ValidationError("Need name; due date.")
    due = _date_part(parts, 1, "Due date")
    if due is None:
        raise ValidationError("Due date is required.")
    return EventLine(name=parts[0], due_date=due)


# ----- add task -----


async def _add_task(message: Message, state: FSMContext, board: BoardService, line: str) -> None:
    try:
        parsed = parse_task_line(line)
        task = await board.create_task(
            message.from_user.id,
            name=parsed.name,
            category=parsed.category,
            sub_category=parsed.sub_category,
            start_date=parsed.start_date,
            end_date=parsed.end_date,
        )
    except ValidationError as e:
        await message.answer(f"{html.escape(str(e))}\n\n{texts.ADD_TASK_FORMAT}", reply_markup=cancel_kb())
        return

    await state.set_state(None)
    await message.answer(
        texts.TASK_ADDED.format(
            name=html.escape(task.name),
            category=html.escape(task.category),
            sub_category=html.escape(task.sub_category),
        ),
        reply_markup=main_menu_kb(),
    )


@router.message(Command("add_task"))
@router.message(F.text == BTN_ADD_TASK)
async def add_task_cmd(message: Message, state: FSMContext, board: BoardService):
    args = command_args(message) if (message.text or "").startswith("/") else ""
    if args:
        await _add_task(message, state, board, args)
        return
    await state.set_state(TaskFlow.add_task_line)
    await message.answer(texts.ADD_TASK_FORMAT, reply_markup=cancel_kb())


@router.message(TaskFlow.add_task_line)
async def add_task_line(message: Message, state: FSMContext, board: BoardService):
    await _add_task(message, state, board, message.text or "")


# ----- add event -----


@router.message(Command("add_event"))
@router.message(F.text == BTN_ADD_EVENT)
async def add_event_cmd(message: Message, state: FSMContext, board: BoardService):
    loaded = await board.load(message.from_user.id)
    if not loaded.tasks:
        await message.answer(texts.NO_TASKS)
        return
    await state.set_state(TaskFlow.add_event_pick)
    await message.answer(texts.ADD_EVENT_PICK, reply_markup=task_picker_kb(loaded.tree.flat_tasks(), "t:ev"))


@router.callback_query(TaskFlow.add_event_pick, F.data.startswith("t:ev:"))
async def add_event_pick(cb: CallbackQuery, state: FSMContext):
    task_id = (cb.data or "").split(":", 2)[-1]
    await state.update_data(event_task_id=task_id)
    await state.set_state(TaskFlow.add_event_line)
    await cb.answer()
    await cb.message.edit_text(texts.ADD_EVENT_FORMAT, reply_markup=cancel_kb())


@router.message(TaskFlow.add_event_line)
async def add_event_line(message: Message, state: FSMContext, board: BoardService):
    data = await state.get_data()
    task_id = data.get("event_task_id")
    try:
        parsed = parse_event_line(message.text or "")
        event = await board.add_event(task_id, name=parsed.name, due_date=parsed.due_date)
    except ValidationError as e:
        await message.answer(f"{html.escape(str(e))}\n\n{texts.ADD_EVENT_FORMAT}", reply_markup=cancel_kb())
        return
    except NotFoundError:
        await state.set_state(None)
        await message.answer(texts.TASK_GONE, reply_markup=main_menu_kb())
        return

    await state.set_state(None)
    await state.update_data(event_task_id=None)
    await message.answer(
        texts.EVENT_ADDED.format(name=html.escape(event.name), due=to_iso_date(event.due_date)),
        reply_markup=main_menu_kb(),
    )


# ----- delete task -----


@router.message(Command("delete_task"))
@router.message(F.text == BTN_DELETE_TASK)
async def delete_task_cmd(message: Message, state: FSMContext, board: BoardService):
    loaded = await board.load(message.from_user.id)
    if not loaded.tasks:
        await message.answer(texts.NO_TASKS)
        return
    await state.set_state(TaskFlow.delete_pick)
    await message.answer(texts.DELETE_PICK, reply_markup=task_picker_kb(loaded.tree.flat_tasks(), "t:del"))


@router.callback_query(TaskFlow.delete_pick, F.data.startswith("t:del:"))
async def delete_task_pick(cb: CallbackQuery, state: FSMContext, board: BoardService):
    task_id = (cb.data or "").split(":", 2)[-1]
    await state.set_state(None)
    try:
        await board.delete_task(cb.from_user.id, task_id)
    except NotFoundError:
        await cb.answer(texts.TASK_GONE, show_alert=True)
        await cb.message.edit_text(texts.TASK_GONE)
        return

    logger.info(f"Task deleted: task_id={task_id}")
    await cb.answer()
    await cb.message.edit_text(texts.TASK_DELETED)

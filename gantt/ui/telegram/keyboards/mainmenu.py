from __future__ import annotations

from aiogram.types import ReplyKeyboardMarkup
from aiogram.utils.keyboard import ReplyKeyboardBuilder

BTN_GANTT = "Gantt"
BTN_EXPORT = "Export"
BTN_ADD_TASK = "Add task"
BTN_ADD_EVENT = "Add event"
BTN_DELETE_TASK = "Delete task"


def main_menu_kb() -> ReplyKeyboardMarkup:
    kb = ReplyKeyboardBuilder()

    kb.button(text=BTN_GANTT)
    kb.button(text=BTN_EXPORT)
    kb.button(text=BTN_ADD_TASK)
    kb.button(text=BTN_ADD_EVENT)
    kb.button(text=BTN_DELETE_TASK)

    kb.adjust(2, 3)

    return kb.as_markup(resize_keyboard=True, one_time_keyboard=False)

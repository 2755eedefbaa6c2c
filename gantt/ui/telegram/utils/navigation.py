from typing import Optional

from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from gantt.ui.telegram.keyboards.mainmenu import main_menu_kb
from gantt.ui.telegram.texts import gantt as texts


async def go_to_main_menu(
    message: Message,
    state: Optional[FSMContext] = None,
    text: str = texts.MAIN_MENU,
) -> None:
    """
    Clears FSM state (if provided) and returns user to the main menu.
    Safe to call from anywhere.
    """
    if state is not None:
        await state.clear()

    await message.answer(text, reply_markup=main_menu_kb())


def command_args(message: Message) -> str:
    text = (message.text or "").strip()
    if not text:
        return ""
    parts = text.split(maxsplit=1)
    if len(parts) < 2:
        return ""
    return parts[1].strip()

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from gantt.config import TimelineSettings
from gantt.domain.board.service import BoardService
from gantt.domain.tasks.ports import Clock


class DIMiddleware(BaseMiddleware):
    """
    Inject dependencies to handlers via `data` dict.

    Handlers can request args by name, e.g.
      async def handler(message: Message, board: BoardService, timeline: TimelineSettings, clock: Clock): ...
    """

    def __init__(self, board: BoardService, timeline: TimelineSettings, clock: Clock) -> None:
        self._board = board
        self._timeline = timeline
        self._clock = clock

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        # keep names stable across the project
        data["board"] = self._board
        data["timeline"] = self._timeline
        data["clock"] = self._clock

        return await handler(event, data)

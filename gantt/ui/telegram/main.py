from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import ExceptionTypeFilter
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import ErrorEvent

from gantt.config import load_settings
from gantt.domain.board.service import BoardService
from gantt.infra.clock.system_clock import SystemClock
from gantt.infra.db.connection import Database
from gantt.infra.db.repo.order_sqlite import OrderSqliteRepo
from gantt.infra.db.repo.tasks_sqlite import TaskSqliteRepo
from gantt.infra.db.schema_version import apply_migrations
from gantt.infra.ids.uuid_gen import UuidGenerator
from gantt.infra.storage.json_file import user_storage_factory

from gantt.ui.telegram.handlers.cancel import router as cancel_router
from gantt.ui.telegram.handlers.gantt import router as gantt_router
from gantt.ui.telegram.handlers.start import router as start_router
from gantt.ui.telegram.handlers.tasks import router as tasks_router
from gantt.ui.telegram.middlewares.auth import OwnerOnlyMiddleware
from gantt.ui.telegram.middlewares.di import DIMiddleware

logger = logging.getLogger(__name__)


def _anchor(path: Path, root: Path) -> Path:
    return path if path.is_absolute() else root / path


async def main() -> None:
    """
    Entry point for the Gantt bot.

    Only run ONE instance per token; a second poller gets TelegramConflictError.
    """
    settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - [PID:%(process)d] - %(message)s'
    )
    logger.info(f"Bot starting - PID: {os.getpid()}")

    repo_root = Path(__file__).resolve().parents[3]  # .../gantt/ui/telegram/main.py -> repo root

    # --- paths: always absolute, ensure dirs exist ---
    db_path = _anchor(settings.db_path, repo_root)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    prefs_dir = _anchor(settings.prefs_dir, repo_root)
    prefs_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"DB_PATH: {db_path}")
    logger.info(f"PREFS_DIR: {prefs_dir}")

    db = Database(str(db_path))
    clock = SystemClock(settings.timezone)
    ids = UuidGenerator()

    # --- migrations ---
    await apply_migrations(db=db, now_iso=clock.now().isoformat())

    # --- services ---
    board = BoardService(
        tasks=TaskSqliteRepo(db, clock, ids),
        orders=OrderSqliteRepo(db, clock),
        storage_factory=user_storage_factory(prefs_dir),
    )

    # --- bot/dispatcher ---
    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dp = Dispatcher(storage=MemoryStorage())

    # --- middlewares ---
    dp.message.middleware(OwnerOnlyMiddleware(settings.owner_telegram_id))
    dp.callback_query.middleware(OwnerOnlyMiddleware(settings.owner_telegram_id))

    dp.message.middleware(DIMiddleware(board, settings.timeline, clock))
    dp.callback_query.middleware(DIMiddleware(board, settings.timeline, clock))

    # --- routers (cancel first so it wins inside any flow) ---
    dp.include_router(start_router)
    dp.include_router(cancel_router)
    dp.include_router(gantt_router)
    dp.include_router(tasks_router)

    @dp.error(ExceptionTypeFilter(TelegramBadRequest))
    async def handle_old_callback_query(event: ErrorEvent) -> None:
        """Ignore TelegramBadRequest for old/invalid callback queries (e.g. after bot restart)."""
        msg = str(event.exception).lower()
        if "query is too old" in msg or "query id is invalid" in msg or "response timeout expired" in msg:
            logger.debug("Ignoring old/invalid callback query: %s", event.exception)
            return
        raise event.exception

    logger.info("Starting polling...")
    try:
        await dp.start_polling(bot)
    except Exception:
        logger.error("Bot crashed", exc_info=True)
        raise
    finally:
        await bot.session.close()
        logger.info("Bot shutdown complete")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()

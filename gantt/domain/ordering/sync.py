from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from gantt.domain.ordering.models import SaveStats
from gantt.domain.ordering.ports import OrderPersistence
from gantt.domain.ordering.store import OrderingStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    success: bool
    message: str
    stats: Optional[SaveStats] = None


class BulkSync:
    """
    User-triggered "save order": snapshot the OrderingStore and submit it in one batch.

    No retries. A second submit while one is in flight is refused. Local state
    is never modified, so a failed save can simply be retried.
    """

    def __init__(self, store: OrderingStore, endpoint: OrderPersistence) -> None:
        self._store = store
        self._endpoint = endpoint
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def submit(self) -> SyncResult:
        if self._busy:
            return SyncResult(success=False, message="A save is already in progress.")

        self._busy = True
        try:
            snapshot = self._store.snapshot()
            stats = await self._endpoint.save_all(snapshot)
        except Exception as e:
            logger.error(f"Bulk order save failed: {e}", exc_info=True)
            return SyncResult(success=False, message=f"Saving the order failed: {e}")
        finally:
            self._busy = False

        logger.info(
            "Bulk order saved: categories=%d subcategories=%d tasks=%d",
            stats.categories,
            stats.subcategories,
            stats.tasks,
        )
        return SyncResult(success=True, message="Order and expand state saved.", stats=stats)

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from gantt.domain.ordering.models import OrderSnapshot, SaveStats


class KeyValueStorage(ABC):
    """Client-local string store (the localStorage role). May raise OSError."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...


class OrderPersistence(ABC):
    """Bulk-save endpoint: overwrites stored order + expand state for every key in the snapshot."""

    @abstractmethod
    async def save_all(self, snapshot: OrderSnapshot) -> SaveStats: ...

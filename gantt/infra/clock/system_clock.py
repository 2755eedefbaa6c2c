from __future__ import annotations

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from gantt.domain.tasks.ports import Clock

logger = logging.getLogger(__name__)


class SystemClock(Clock):
    """Wall clock in the owner's timezone; "today" on the chart follows it."""

    def __init__(self, tz_name: str) -> None:
        try:
            self._tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {tz_name!r}, using UTC")
            self._tz = timezone.utc

    def now(self) -> datetime:
        return datetime.now(self._tz)

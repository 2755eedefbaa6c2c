from dataclasses import dataclass, field
import logging
import os
from pathlib import Path

try:
    from dotenv import load_dotenv
    load_dotenv()
except Exception:
    pass

from gantt.constants import (
    DEFAULT_CELL_WIDTH,
    DEFAULT_EVENT_SPACING,
    DEFAULT_LOOKBACK_DAYS,
    DEFAULT_TEXT_UNITS,
    DEFAULT_TIMELINE_UNIT,
    DEFAULT_TIMELINE_UNITS,
    DEFAULT_WINDOW_PADDING,
)
from gantt.domain.timeline.layout import TimeUnit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimelineSettings:
    units: int = DEFAULT_TIMELINE_UNITS
    unit: TimeUnit = TimeUnit(DEFAULT_TIMELINE_UNIT)
    cell_width: int = DEFAULT_CELL_WIDTH
    padding: int = DEFAULT_WINDOW_PADDING
    event_spacing: int = DEFAULT_EVENT_SPACING
    text_units: int = DEFAULT_TEXT_UNITS
    lookback_days: int = DEFAULT_LOOKBACK_DAYS


@dataclass(frozen=True)
class Settings:
    bot_token: str
    owner_telegram_id: int
    timezone: str
    db_path: Path
    prefs_dir: Path
    log_level: str
    timeline: TimelineSettings = field(default_factory=TimelineSettings)


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer, using %d", name, raw, default)
        return default
    if value < minimum:
        logger.warning("%s=%d is below %d, using %d", name, value, minimum, default)
        return default
    return value


def load_timeline_settings() -> TimelineSettings:
    unit_raw = os.getenv("TIMELINE_UNIT", DEFAULT_TIMELINE_UNIT)
    unit = TimeUnit.parse(unit_raw, default=TimeUnit(DEFAULT_TIMELINE_UNIT))
    if unit.value != (unit_raw or "").strip().lower():
        logger.warning("TIMELINE_UNIT=%r is not day/week/month, using %s", unit_raw, unit.value)

    return TimelineSettings(
        units=_env_int("TIMELINE_UNITS", DEFAULT_TIMELINE_UNITS, minimum=1),
        unit=unit,
        cell_width=_env_int("CELL_WIDTH", DEFAULT_CELL_WIDTH, minimum=1),
        padding=_env_int("WINDOW_PADDING", DEFAULT_WINDOW_PADDING),
        event_spacing=_env_int("EVENT_SPACING", DEFAULT_EVENT_SPACING),
        text_units=_env_int("TEXT_UNITS", DEFAULT_TEXT_UNITS, minimum=1),
        lookback_days=_env_int("LOOKBACK_DAYS", DEFAULT_LOOKBACK_DAYS),
    )


def load_settings() -> Settings:
    bot_token = os.getenv("BOT_TOKEN", "").strip()
    owner_raw = os.getenv("OWNER_TELEGRAM_ID", "0").strip()
    tz = os.getenv("TZ", "Europe/Helsinki").strip()
    db_raw = os.getenv("DB_PATH", "data/gantt.db").strip()
    prefs_raw = os.getenv("PREFS_DIR", "data/prefs").strip()
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()

    if not bot_token:
        raise RuntimeError("BOT_TOKEN missing in .env")
    try:
        owner_id = int(owner_raw)
    except ValueError:
        owner_id = 0
    if owner_id <= 0:
        raise RuntimeError("OWNER_TELEGRAM_ID missing/invalid in .env")

    # paths stay relative here; the entry point anchors them
    return Settings(
        bot_token=bot_token,
        owner_telegram_id=owner_id,
        timezone=tz,
        db_path=Path(db_raw),
        prefs_dir=Path(prefs_raw),
        log_level=log_level,
        timeline=load_timeline_settings(),
    )

"""
Tests for environment-driven settings.
"""
from __future__ import annotations

import pytest

from gantt.config import load_settings, load_timeline_settings
from gantt.domain.timeline.layout import TimeUnit


def test_timeline_defaults(monkeypatch):
    for name in ("TIMELINE_UNITS", "TIMELINE_UNIT", "CELL_WIDTH", "WINDOW_PADDING", "EVENT_SPACING", "TEXT_UNITS", "LOOKBACK_DAYS"):
        monkeypatch.delenv(name, raising=False)

    t = load_timeline_settings()

    assert (t.units, t.unit, t.cell_width, t.padding) == (120, TimeUnit.DAY, 30, 0)
    assert (t.event_spacing, t.text_units, t.lookback_days) == (24, 14, 7)


def test_timeline_bad_values_fall_back(monkeypatch):
    monkeypatch.setenv("TIMELINE_UNITS", "lots")
    monkeypatch.setenv("CELL_WIDTH", "0")
    monkeypatch.setenv("TIMELINE_UNIT", "decade")
    monkeypatch.setenv("WINDOW_PADDING", "8")

    t = load_timeline_settings()

    assert t.units == 120
    assert t.cell_width == 30
    assert t.unit is TimeUnit.DAY
    assert t.padding == 8


def test_timeline_week_unit(monkeypatch):
    monkeypatch.setenv("TIMELINE_UNIT", "Week")
    assert load_timeline_settings().unit is TimeUnit.WEEK


def test_settings_require_token_and_owner(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "")
    with pytest.raises(RuntimeError):
        load_settings()

    monkeypatch.setenv("BOT_TOKEN", "123:abc")
    monkeypatch.setenv("OWNER_TELEGRAM_ID", "nope")
    with pytest.raises(RuntimeError):
        load_settings()

    monkeypatch.setenv("OWNER_TELEGRAM_ID", "77")
    monkeypatch.setenv("DB_PATH", "x/y.db")
    s = load_settings()
    assert s.owner_telegram_id == 77
    assert str(s.db_path) == "x/y.db"

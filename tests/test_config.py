import io
import json
import logging
from datetime import date

import pytest
import structlog
from pydantic import ValidationError

from src.timetable.config import TimetableSettings, get_config, reset_config
from src.timetable.datekeys import today_key
from src.timetable.logging import get_logger, setup_logging_from_config


def test_defaults() -> None:
    settings = TimetableSettings()

    assert settings.merge_gap_minutes == 15
    assert settings.full_day_minutes == 720
    assert (settings.fallback_start_minutes, settings.fallback_end_minutes) == (420, 1020)
    assert settings.exam_keywords == ["klassenarbeit", "klausur", "arbeit"]
    assert settings.debug_date is None
    assert settings.anchor_key() == today_key()


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("TIMETABLE_MERGE_GAP_MINUTES", "5")
    monkeypatch.setenv("TIMETABLE_DEBUG_DATE", "2026-01-15")
    monkeypatch.setenv("TIMETABLE_EXAM_KEYWORDS", '["Quiz", " Test "]')

    settings = TimetableSettings()

    assert settings.merge_gap_minutes == 5
    assert settings.debug_date == date(2026, 1, 15)
    assert settings.anchor_key() == 20260115
    assert settings.exam_keywords == ["quiz", "test"]


def test_blank_debug_date_means_wall_clock(monkeypatch) -> None:
    monkeypatch.setenv("TIMETABLE_DEBUG_DATE", "")

    assert TimetableSettings().debug_date is None


def test_get_config_is_a_singleton(monkeypatch) -> None:
    first = get_config()
    assert get_config() is first

    monkeypatch.setenv("TIMETABLE_GRID_NEXT_DAYS", "6")
    assert get_config().grid_next_days == first.grid_next_days

    reset_config()
    assert get_config().grid_next_days == 6


def test_setup_logging_from_config(monkeypatch) -> None:
    monkeypatch.setenv("TIMETABLE_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("TIMETABLE_LOG_JSON", "true")
    root_handlers = logging.getLogger().handlers[:]
    root_level = logging.getLogger().level
    stream = io.StringIO()
    try:
        setup_logging_from_config(stream)
        log = get_logger("tests.config")
        log.info("below_threshold")
        log.warning("logging_configured", student_id="anna")
    finally:
        structlog.reset_defaults()
        logging.getLogger().handlers = root_handlers
        logging.getLogger().setLevel(root_level)

    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    entry = json.loads(lines[0])
    assert entry["event"] == "logging_configured"
    assert entry["level"] == "warning"
    assert entry["student_id"] == "anna"
    assert "timestamp" in entry


def test_inverted_fallback_window_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("TIMETABLE_FALLBACK_START_MINUTES", "600")
    monkeypatch.setenv("TIMETABLE_FALLBACK_END_MINUTES", "600")

    with pytest.raises(ValidationError):
        TimetableSettings()

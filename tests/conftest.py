import pytest
import structlog

from src.timetable.config import reset_config
from src.timetable.models import NamedPeriod, RawLessonSlot

ANCHOR = 20260115


@pytest.fixture
def make_slot():
    """Factory for lesson slots on the anchor day with Math / Mr X defaults."""

    def _make(start, end, subject="Math", teacher="Mr X", date_key=ANCHOR, **fields) -> RawLessonSlot:
        fields.setdefault("subject_long", subject)
        return RawLessonSlot(
            date_key=date_key,
            start_time=start,
            end_time=end,
            subject_short=subject,
            teacher_initial=teacher,
            **fields,
        )

    return _make


@pytest.fixture
def school_periods() -> list[NamedPeriod]:
    """Four 45-minute periods: 08:00-08:45, 08:50-09:35, 09:50-10:35, 10:35-11:20."""
    return [
        NamedPeriod(start_time="08:00", end_time="08:45", label="1"),
        NamedPeriod(start_time="08:50", end_time="09:35", label="2"),
        NamedPeriod(start_time="09:50", end_time="10:35", label="3"),
        NamedPeriod(start_time="10:35", end_time="11:20", label="4"),
    ]


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    for name in (
        "TIMETABLE_DEBUG_DATE",
        "TIMETABLE_MERGE_GAP_MINUTES",
        "TIMETABLE_GRID_NEXT_DAYS",
        "TIMETABLE_EXAM_KEYWORDS",
        "TIMETABLE_LOG_LEVEL",
        "TIMETABLE_LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def captured_logs():
    """Structlog events emitted while the test runs."""
    with structlog.testing.capture_logs() as logs:
        yield logs

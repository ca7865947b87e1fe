from src.timetable.filtering import filter_by_range, group_by_day, holiday_map
from src.timetable.models import Holiday, RawLessonSlot


def _dated(*keys) -> list[RawLessonSlot]:
    return [RawLessonSlot(date_key=key, start_time="08:00", end_time="08:45") for key in keys]


def test_filter_by_range_window_bounds() -> None:
    records = _dated(20260113, 20260114, 20260115, 20260117, 20260118)

    kept = filter_by_range(records, 20260115, past_days=1, future_days=2)

    assert [r.date_key for r in kept] == [20260114, 20260115, 20260117]


def test_filter_by_range_crosses_month_boundary() -> None:
    records = _dated(20260130, 20260131, 20260201, 20260202, 20260203)

    kept = filter_by_range(records, 20260131, past_days=0, future_days=2)

    assert [r.date_key for r in kept] == [20260131, 20260201, 20260202]


def test_filter_by_range_inactive_bounds() -> None:
    records = _dated(20250101, 20260115, 20270101)

    # future_days of 0 leaves the upper bound open; negative past_days the lower one
    assert len(filter_by_range(records, 20260115, past_days=0, future_days=0)) == 2
    assert filter_by_range(records, 20260115, past_days=-1, future_days=None) == records
    assert filter_by_range(records, 20260115, past_days=float("nan"), future_days=None) == records


def test_filter_by_range_excludes_undated_records() -> None:
    records = [RawLessonSlot(date_key="not a date", start_time="08:00"), *_dated(20260115)]

    kept = filter_by_range(records, 20260115, past_days=0, future_days=1)

    assert [r.date_key for r in kept] == [20260115]


def test_group_by_day_sorts_by_start() -> None:
    records = [
        RawLessonSlot(date_key=20260115, start_time="10:00", subject_short="B"),
        RawLessonSlot(date_key=20260116, start_time=800, subject_short="C"),
        RawLessonSlot(date_key=20260115, start_time=800, subject_short="A"),
        RawLessonSlot(date_key=20260115, start_time="10:00", subject_short="D"),
        RawLessonSlot(date_key=None, start_time=800, subject_short="X"),
    ]

    grouped = group_by_day(records)

    assert sorted(grouped) == [20260115, 20260116]
    assert [r.subject_short for r in grouped[20260115]] == ["A", "B", "D"]
    assert [r.subject_short for r in grouped[20260116]] == ["C"]


def test_holiday_map_covers_inclusive_span() -> None:
    winter = Holiday(name="WF", long_name="Winter break", start_key="2026-02-02", end_key=20260206)

    mapped = holiday_map([winter], [20260201, 20260202, 20260206, 20260207])

    assert list(mapped) == [20260202, 20260206]
    assert mapped[20260202].display_name == "Winter break"


def test_filter_by_range_bound_beyond_calendar_is_open() -> None:
    records = _dated(20260114, 20260115, 99991231)

    kept = filter_by_range(records, 20260115, past_days=0, future_days=3_000_000)

    assert [r.date_key for r in kept] == [20260115, 99991231]

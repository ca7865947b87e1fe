"""Chronological lesson list (list mode).

No merging happens here: every slot in the window becomes one row, labelled
with the period it starts in. Rows are emphasized for exams, cancellations
and substitutions.
"""

from collections.abc import Iterable, Sequence

from src.timetable.annotate import is_exam_lesson
from src.timetable.config import DEFAULT_EXAM_KEYWORDS, TimetableSettings
from src.timetable.filtering import filter_by_range, group_by_day, holiday_map
from src.timetable.logging import get_logger
from src.timetable.models import (
    DayWindow,
    Emphasis,
    Holiday,
    LessonListEntry,
    NamedPeriod,
    RawLessonSlot,
)
from src.timetable.timeconv import format_time, raw_time_number

log = get_logger(__name__)


def list_window(settings: TimetableSettings) -> DayWindow:
    """List-mode day window from settings (list_past_days / list_next_days)."""
    return DayWindow(
        anchor_key=settings.anchor_key(),
        past_days=settings.list_past_days,
        next_days=settings.list_next_days,
    )


def _list_order(slot: RawLessonSlot) -> tuple[int, int]:
    return (raw_time_number(slot.start_time), 0 if slot.status_code == "cancelled" else 1)


def period_labels(
    slot: RawLessonSlot, periods: Sequence[NamedPeriod]
) -> tuple[str, str]:
    """Start and end labels for a list row.

    The start label is the name of the period starting at the slot's start,
    falling back to "HH:MM". The end label names the last period that starts
    strictly inside the slot, or is empty when the slot covers one period.
    """
    start = slot.start_minutes
    by_start = {p.start_minutes: p.label for p in periods if p.start_minutes is not None}
    label = by_start.get(start) if start is not None else None
    if label is None:
        return format_time(slot.start_time), ""

    end = slot.end_minutes
    if end is None:
        return label, ""
    inner = [minute for minute in by_start if start < minute < end]
    if not inner:
        return label, ""
    end_label = by_start[max(inner)]
    return label, "" if end_label == label else end_label


def lesson_emphasis(slot: RawLessonSlot, keywords: Iterable[str] = DEFAULT_EXAM_KEYWORDS) -> Emphasis:
    """Highlight class for a list row: exam beats cancelled beats substitution."""
    if is_exam_lesson(slot, keywords):
        return "exam"
    if slot.status_code == "cancelled":
        return "cancelled"
    if slot.status_code == "irregular" or slot.substitution_text.strip():
        return "substitution"
    return ""


def is_regular(slot: RawLessonSlot) -> bool:
    return slot.status_code not in ("irregular", "cancelled")


def _holiday_entry(date_key: int, holiday: Holiday) -> LessonListEntry:
    return LessonListEntry(kind="holiday", date_key=date_key, holiday=holiday)


def build_lesson_list(
    slots: Sequence[RawLessonSlot],
    periods: Sequence[NamedPeriod],
    window: DayWindow,
    now_minutes: int | None = None,
    show_regular: bool = True,
    holidays: Iterable[Holiday] = (),
    exam_keywords: Iterable[str] = DEFAULT_EXAM_KEYWORDS,
) -> list[LessonListEntry]:
    """Build the rows of the lesson list for one student.

    Args:
        slots: Raw lesson slots, any order.
        periods: Named periods used to label start/end.
        window: Days to list around the anchor ("today").
        now_minutes: Current minute of the anchor day; lessons on the anchor
            day starting before it count as past. None treats the whole
            anchor day as upcoming.
        show_regular: Include lessons that are neither cancelled nor
            irregular.
        holidays: Holidays shown on days without lessons.
        exam_keywords: Free-text keywords that mark a lesson as an exam.

    Returns:
        Rows in display order. Past lessons are skipped unless cancelled. A
        day left without rows gets a holiday row when a holiday covers it.
    """
    keywords = [k.lower() for k in exam_keywords]
    anchor = window.anchor_key
    date_keys = window.date_keys()

    in_range = filter_by_range(slots, anchor, window.past_days, window.next_days)
    by_day = group_by_day(in_range)
    holidays_by_day = holiday_map(holidays, date_keys)

    entries: list[LessonListEntry] = []
    for key in date_keys:
        rendered = 0
        for slot in sorted(by_day.get(key, []), key=_list_order):
            start = slot.start_minutes
            is_past = key < anchor or (
                key == anchor
                and now_minutes is not None
                and start is not None
                and start < now_minutes
            )
            if is_past and slot.status_code != "cancelled":
                continue
            if not show_regular and is_regular(slot):
                continue

            start_label, end_label = period_labels(slot, periods)
            entries.append(
                LessonListEntry(
                    date_key=key,
                    start_minutes=start,
                    start_label=start_label,
                    end_label=end_label,
                    subject_short=slot.subject_short,
                    subject_long=slot.subject_long,
                    teacher_initial=slot.teacher_initial,
                    teacher_full=slot.teacher_full,
                    status_code=slot.status_code,
                    substitution_text=slot.substitution_text,
                    free_text=slot.free_text,
                    emphasis=lesson_emphasis(slot, keywords),
                    is_past=is_past,
                )
            )
            rendered += 1

        if rendered == 0 and key in holidays_by_day:
            entries.append(_holiday_entry(key, holidays_by_day[key]))

    log.debug("lesson_list_built", rows=len(entries), days=len(date_keys))
    return entries

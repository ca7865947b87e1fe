"""Homework / exam / absence indicators on lesson blocks.

Records are matched to blocks by lesson identity first. When that fails the
subject name is compared (short or long form, exact and case-sensitive), so
homework entered without a lesson reference still shows up. Subject
matching is limited to the record's own day when the record is dated.
"""

from collections.abc import Iterable, Sequence

from src.timetable.config import DEFAULT_EXAM_KEYWORDS
from src.timetable.models import (
    AbsenceRecord,
    DayColumn,
    ExamRecord,
    HomeworkRecord,
    MergedLessonBlock,
    RawLessonSlot,
)

AuxRecord = HomeworkRecord | ExamRecord | AbsenceRecord


def record_matches(block: MergedLessonBlock, record: AuxRecord) -> bool:
    """Whether an auxiliary record belongs to a block."""
    if record.lesson_identity and record.lesson_identity in block.member_identities:
        return True
    if record.date_key is not None and record.date_key != block.date_key:
        return False
    names = {name for name in (record.subject_short, record.subject_long) if name}
    return bool(names & block.subject_names())


def is_exam_lesson(
    lesson: RawLessonSlot | MergedLessonBlock, keywords: Iterable[str] = DEFAULT_EXAM_KEYWORDS
) -> bool:
    """Whether the lesson itself is flagged as an exam upstream.

    True for lesson type EXAM or when the free text mentions an exam keyword.
    """
    if lesson.lesson_type and lesson.lesson_type.upper() == "EXAM":
        return True
    text = lesson.free_text.lower()
    return any(keyword in text for keyword in keywords)


def annotate_columns(
    columns: Sequence[DayColumn],
    homework: Iterable[HomeworkRecord] = (),
    exams: Iterable[ExamRecord] = (),
    absences: Iterable[AbsenceRecord] = (),
    exam_keywords: Iterable[str] = DEFAULT_EXAM_KEYWORDS,
) -> Sequence[DayColumn]:
    """Set has_homework / has_exam / has_absence on every block in place.

    Timing and merging are left untouched.

    Returns:
        The same columns, for chaining.
    """
    homework = list(homework)
    exams = list(exams)
    absences = list(absences)
    keywords = [k.lower() for k in exam_keywords]

    for column in columns:
        for block in column.blocks:
            block.has_homework = any(record_matches(block, hw) for hw in homework)
            block.has_exam = is_exam_lesson(block, keywords) or any(
                record_matches(block, exam) for exam in exams
            )
            block.has_absence = any(record_matches(block, ab) for ab in absences)
    return columns

from src.timetable.annotate import annotate_columns, is_exam_lesson, record_matches
from src.timetable.models import (
    AbsenceRecord,
    DayColumn,
    ExamRecord,
    HomeworkRecord,
    MergedLessonBlock,
)

ANCHOR = 20260115


def _block(subject="Biology", long_name="Biologie", identities=(), **fields) -> MergedLessonBlock:
    return MergedLessonBlock(
        date_key=fields.pop("date_key", ANCHOR),
        start_minutes=480,
        end_minutes=525,
        subject_short=subject,
        subject_long=long_name,
        member_identities=list(identities),
        **fields,
    )


def test_subject_fallback_sets_homework() -> None:
    column = DayColumn(date_key=ANCHOR, blocks=[_block(), _block(subject="Math", long_name="Mathe")])

    annotate_columns([column], homework=[HomeworkRecord(date_key=ANCHOR, subject_short="Biology")])

    assert column.blocks[0].has_homework
    assert not column.blocks[1].has_homework


def test_identity_match_wins_over_subject() -> None:
    block = _block(subject="Math", identities=["11", "12"])

    assert record_matches(block, HomeworkRecord(lesson_identity=12, subject_short="Art"))
    assert not record_matches(block, HomeworkRecord(lesson_identity=99, subject_short="Art"))


def test_long_name_matches() -> None:
    assert record_matches(_block(), ExamRecord(date_key=ANCHOR, subject_long="Biologie"))


def test_subject_match_limited_to_the_record_date() -> None:
    block = _block()

    assert not record_matches(block, HomeworkRecord(date_key=20260116, subject_short="Biology"))
    assert record_matches(block, HomeworkRecord(subject_short="Biology"))


def test_subject_comparison_is_case_sensitive() -> None:
    assert not record_matches(_block(), HomeworkRecord(subject_short="biology"))


def test_exam_and_absence_flags() -> None:
    column = DayColumn(
        date_key=ANCHOR,
        blocks=[
            _block(),
            _block(subject="Math", long_name="Mathe", free_text="Klausur Kapitel 3"),
            _block(subject="Art", long_name="Kunst", lesson_type="exam"),
            _block(subject="PE", long_name="Sport", identities=["40"]),
        ],
    )

    annotate_columns(
        [column],
        exams=[ExamRecord(date_key=ANCHOR, subject_short="Biology", name="Test")],
        absences=[AbsenceRecord(date_key=ANCHOR, lesson_identity="40")],
    )

    assert [b.has_exam for b in column.blocks] == [True, True, True, False]
    assert [b.has_absence for b in column.blocks] == [False, False, False, True]
    assert not any(b.has_homework for b in column.blocks)


def test_annotation_leaves_timing_alone() -> None:
    column = DayColumn(date_key=ANCHOR, blocks=[_block(top_ratio=0.25, height_ratio=0.5)])

    annotate_columns([column], homework=[HomeworkRecord(subject_short="Biology")])

    block = column.blocks[0]
    assert (block.start_minutes, block.end_minutes) == (480, 525)
    assert (block.top_ratio, block.height_ratio) == (0.25, 0.5)


def test_custom_exam_keywords() -> None:
    block = _block(free_text="Quiz on Friday")

    assert not is_exam_lesson(block)
    assert is_exam_lesson(block, ["quiz"])

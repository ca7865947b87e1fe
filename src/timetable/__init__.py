"""Student timetable layout and merge engine.

Turns already-fetched lesson slots and named periods into a positioned,
merged, annotated day grid (build_grid) or a chronological lesson list
(build_lesson_list). Upstream dict payloads go through normalize.py first.
"""

from src.timetable.errors import InvalidRequestError, NormalizationError, TimetableError
from src.timetable.layout import build_grid, layout_grid
from src.timetable.listing import build_lesson_list, list_window
from src.timetable.models import (
    AbsenceRecord,
    DayColumn,
    DayWindow,
    ExamRecord,
    GridModel,
    Holiday,
    HomeworkRecord,
    LessonListEntry,
    MergedLessonBlock,
    NamedPeriod,
    RawLessonSlot,
    TimeAxis,
    TimetableRequest,
)

__all__ = [
    "build_grid",
    "layout_grid",
    "build_lesson_list",
    "list_window",
    "TimetableRequest",
    "DayWindow",
    "RawLessonSlot",
    "NamedPeriod",
    "HomeworkRecord",
    "ExamRecord",
    "AbsenceRecord",
    "Holiday",
    "MergedLessonBlock",
    "TimeAxis",
    "DayColumn",
    "GridModel",
    "LessonListEntry",
    "TimetableError",
    "NormalizationError",
    "InvalidRequestError",
]

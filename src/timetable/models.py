"""Pydantic models for timetable data.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Input records are frozen and arrive already normalized (see normalize.py);
derived entities (blocks, axis, columns, grid) are rebuilt on every layout
request and never cached here.
"""

import hashlib
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from src.timetable.config import DEFAULT_EXAM_KEYWORDS, TimetableSettings
from src.timetable.datekeys import parse_key, shift_key
from src.timetable.errors import InvalidRequestError
from src.timetable.timeconv import to_minutes

StatusCode = Literal["", "regular", "irregular", "cancelled", "info", "error"]
TickKind = Literal["period", "divider", "hour"]
Lane = Literal["left", "right", "both"]
Emphasis = Literal["", "exam", "cancelled", "substitution"]
RawTime = str | int | None


class _Record(BaseModel):
    """Base for upstream records: immutable, dated, optionally tied to a lesson."""

    model_config = ConfigDict(frozen=True)

    date_key: int | None = None
    lesson_identity: str | None = None

    @field_validator("date_key", mode="before")
    @classmethod
    def _coerce_date_key(cls, value: object) -> int | None:
        return parse_key(value)

    @field_validator("lesson_identity", mode="before")
    @classmethod
    def _coerce_identity(cls, value: object) -> str | None:
        if value is None or value == "":
            return None
        return str(value)


class RawLessonSlot(_Record):
    """One scheduled period as reported upstream.

    Owned by the fetch layer; the engine only reads it. date_key is None when
    the upstream date could not be parsed, which excludes the slot from every
    computation.
    """

    start_time: RawTime = None  # "08:00", 800 or "0800"
    end_time: RawTime = None
    subject_short: str = ""
    subject_long: str = ""
    teacher_initial: str = ""
    teacher_full: str = ""
    status_code: StatusCode = ""
    substitution_text: str = ""
    free_text: str = ""
    lesson_type: str | None = None  # upstream activity type, e.g. "EXAM"

    @field_validator("status_code", mode="before")
    @classmethod
    def _lower_status(cls, value: object) -> object:
        if value is None:
            return ""
        return str(value).strip().lower()

    @field_validator(
        "subject_short",
        "subject_long",
        "teacher_initial",
        "teacher_full",
        "substitution_text",
        "free_text",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def start_minutes(self) -> int | None:
        return to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int | None:
        return to_minutes(self.end_time)


class NamedPeriod(BaseModel):
    """A school-defined period ("1.", 08:00-08:45) from the timegrid."""

    model_config = ConfigDict(frozen=True)

    start_time: RawTime = None
    end_time: RawTime = None
    label: str = ""

    @property
    def start_minutes(self) -> int | None:
        return to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int | None:
        return to_minutes(self.end_time)


class HomeworkRecord(_Record):
    """Homework item; date_key is the due date."""

    subject_short: str = ""
    subject_long: str = ""
    text: str = ""
    remark: str = ""
    completed: bool | None = None


class ExamRecord(_Record):
    """Announced exam; date_key is the exam date."""

    start_time: RawTime = None
    end_time: RawTime = None
    name: str = ""
    subject_short: str = ""
    subject_long: str = ""
    teachers: tuple[str, ...] = ()
    text: str = ""


class AbsenceRecord(_Record):
    """Recorded absence; date_key is the day of absence."""

    start_time: RawTime = None
    end_time: RawTime = None
    subject_short: str = ""
    subject_long: str = ""
    reason: str = ""
    excused: bool | None = None


class Holiday(BaseModel):
    """School holiday spanning start_key..end_key inclusive."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    long_name: str = ""
    start_key: int | None = None
    end_key: int | None = None

    @field_validator("start_key", "end_key", mode="before")
    @classmethod
    def _coerce_keys(cls, value: object) -> int | None:
        return parse_key(value)

    def covers(self, date_key: int) -> bool:
        if self.start_key is None or self.end_key is None:
            return False
        return self.start_key <= date_key <= self.end_key

    @property
    def display_name(self) -> str:
        return self.long_name or self.name


class MergedLessonBlock(BaseModel):
    """One or more adjacent equivalent slots merged into a single block.

    Display fields come from the first constituent slot. Text fields are
    newline-joined and de-duplicated by substring containment.
    """

    date_key: int
    start_minutes: int
    end_minutes: int
    start_time: str = ""  # "HH:MM" of the first slot
    end_time: str = ""  # "HH:MM" of the last absorbed slot
    subject_short: str = ""
    subject_long: str = ""
    teacher_initial: str = ""
    teacher_full: str = ""
    status_code: StatusCode = ""
    substitution_text: str = ""
    free_text: str = ""
    lesson_type: str | None = None
    member_identities: list[str] = Field(default_factory=list)
    slot_count: int = 1

    # Set by the annotation pass
    has_homework: bool = False
    has_exam: bool = False
    has_absence: bool = False

    # Set by the layout pass, relative to the positioning axis
    top_ratio: float = 0.0
    height_ratio: float = 0.0

    @model_validator(mode="after")
    def _check_span(self) -> "MergedLessonBlock":
        if self.end_minutes <= self.start_minutes:
            raise ValueError(
                f"block must end after it starts ({self.start_minutes}-{self.end_minutes})"
            )
        return self

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    @property
    def lane(self) -> Lane:
        """Column half the block is drawn in: substitutions left, cancellations right."""
        if self.status_code == "irregular":
            return "left"
        if self.status_code == "cancelled":
            return "right"
        return "both"

    def subject_names(self) -> set[str]:
        return {name for name in (self.subject_short, self.subject_long) if name}


class MergeResult(BaseModel):
    """Outcome of merging one day's slots.

    boundaries lists slots whose missing end time forced a block boundary;
    dropped lists slots discarded because their start could not be converted.
    """

    blocks: list[MergedLessonBlock] = Field(default_factory=list)
    boundaries: list[str] = Field(default_factory=list)
    dropped: list[str] = Field(default_factory=list)


class Tick(BaseModel):
    """A labelled mark on the time axis."""

    minutes: int
    label: str = ""
    kind: TickKind = "hour"


class TimeAxis(BaseModel):
    """Visible minute range shared by every day column."""

    start_minutes: int
    end_minutes: int
    ticks: list[Tick] = Field(default_factory=list)
    is_fallback: bool = False

    @model_validator(mode="after")
    def _check_span(self) -> "TimeAxis":
        if self.end_minutes <= self.start_minutes:
            raise ValueError(
                f"axis must end after it starts ({self.start_minutes}-{self.end_minutes})"
            )
        return self

    @property
    def total_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    def ratio(self, minutes: int) -> float:
        """Fractional offset of a minute value from the top of the axis."""
        return (minutes - self.start_minutes) / self.total_minutes

    def contains(self, minutes: int) -> bool:
        return self.start_minutes <= minutes <= self.end_minutes


class DayColumn(BaseModel):
    """Blocks of one day, clipped to the positioning axis."""

    date_key: int
    blocks: list[MergedLessonBlock] = Field(default_factory=list)
    has_overflow: bool = False
    hidden_count: int = 0
    is_today: bool = False
    holiday: Holiday | None = None

    @property
    def is_empty(self) -> bool:
        """True when the renderer should show a "no lessons" placeholder."""
        return not self.blocks


class GridModel(BaseModel):
    """Positioned, merged, annotated multi-day grid ready for rendering.

    axis is the global window used for the time header; position_axis is the
    window blocks were positioned against, which ends earlier when a per-day
    lesson cap applies.
    """

    axis: TimeAxis
    position_axis: TimeAxis
    days: list[DayColumn] = Field(default_factory=list)

    @property
    def date_keys(self) -> list[int]:
        return [day.date_key for day in self.days]

    def day(self, date_key: int) -> DayColumn | None:
        for column in self.days:
            if column.date_key == date_key:
                return column
        return None


class DayWindow(BaseModel):
    """Requested days: past_days before the anchor, the anchor, next_days after."""

    model_config = ConfigDict(frozen=True)

    anchor_key: int
    past_days: int = Field(default=0, ge=0)
    next_days: int = Field(default=3, ge=0)

    @field_validator("anchor_key", mode="before")
    @classmethod
    def _valid_anchor(cls, value: object) -> int:
        key = parse_key(value)
        if key is None:
            raise ValueError(f"anchor_key {value!r} is not a valid date")
        return key

    @property
    def size(self) -> int:
        return self.past_days + 1 + self.next_days

    def offsets(self) -> list[int]:
        return list(range(-self.past_days, self.next_days + 1))

    @model_validator(mode="after")
    def _check_calendar(self) -> "DayWindow":
        try:
            shift_key(self.anchor_key, -self.past_days)
            shift_key(self.anchor_key, self.next_days)
        except ValueError as e:
            raise ValueError(f"day window around {self.anchor_key} leaves the calendar") from e
        return self

    def date_keys(self) -> list[int]:
        return [shift_key(self.anchor_key, offset) for offset in self.offsets()]


class TimetableRequest(BaseModel):
    """Everything needed to lay out one student's grid.

    Replaces long-lived per-student caches: the caller owns memoization and
    can key it on fingerprint().
    """

    model_config = ConfigDict(frozen=True)

    student_id: str = ""
    window: DayWindow
    periods: tuple[NamedPeriod, ...] = ()
    lessons: tuple[RawLessonSlot, ...] = ()
    homework: tuple[HomeworkRecord, ...] = ()
    exams: tuple[ExamRecord, ...] = ()
    absences: tuple[AbsenceRecord, ...] = ()
    holidays: tuple[Holiday, ...] = ()

    merge_gap_minutes: int = 15
    max_lessons_per_day: int = Field(default=0, ge=0)
    default_lesson_minutes: int = Field(default=45, gt=0)
    full_day_minutes: int = Field(default=12 * 60, gt=0)
    fallback_start_minutes: int = 7 * 60
    fallback_end_minutes: int = 17 * 60
    exam_keywords: tuple[str, ...] = DEFAULT_EXAM_KEYWORDS

    @model_validator(mode="after")
    def _check_fallback(self) -> "TimetableRequest":
        if self.fallback_end_minutes <= self.fallback_start_minutes:
            raise ValueError("fallback_end_minutes must be greater than fallback_start_minutes")
        return self

    @classmethod
    def parse(cls, data: dict) -> "TimetableRequest":
        """Validate a request payload.

        Raises:
            InvalidRequestError: If the payload does not describe a valid request.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidRequestError(str(e)) from e

    @classmethod
    def from_settings(cls, settings: TimetableSettings, **fields) -> "TimetableRequest":
        """Build a request whose window and tuning values come from settings.

        Explicit keyword arguments win over settings values.
        """
        defaults = {
            "window": DayWindow(
                anchor_key=settings.anchor_key(),
                past_days=settings.grid_past_days,
                next_days=settings.grid_next_days,
            ),
            "merge_gap_minutes": settings.merge_gap_minutes,
            "max_lessons_per_day": settings.grid_max_lessons,
            "default_lesson_minutes": settings.default_lesson_minutes,
            "full_day_minutes": settings.full_day_minutes,
            "fallback_start_minutes": settings.fallback_start_minutes,
            "fallback_end_minutes": settings.fallback_end_minutes,
            "exam_keywords": tuple(settings.exam_keywords),
        }
        defaults.update(fields)
        return cls.parse(defaults)

    def fingerprint(self) -> str:
        """Stable SHA-256 hex digest of the request, for caller-side caching."""
        return hashlib.sha256(self.model_dump_json().encode("utf-8")).hexdigest()


class LessonListEntry(BaseModel):
    """One row of the chronological lesson list."""

    kind: Literal["lesson", "holiday"] = "lesson"
    date_key: int
    start_minutes: int | None = None
    start_label: str = ""  # period label ("3.") or "HH:MM"
    end_label: str = ""  # last period covered when the lesson spans several
    subject_short: str = ""
    subject_long: str = ""
    teacher_initial: str = ""
    teacher_full: str = ""
    status_code: StatusCode = ""
    substitution_text: str = ""
    free_text: str = ""
    emphasis: Emphasis = ""
    is_past: bool = False
    holiday: Holiday | None = None

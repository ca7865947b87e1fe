"""Normalization of upstream payloads into timetable records.

The fetch layer hands over plain dicts in the shapes the scheduling
platform uses: REST status words ("CANCELLED", "SUBSTITUTION"), subjects and
teachers as a list of {name, longname} objects, HTML fragments in free text,
dates as "2026-01-15" or 20260115 and times as "08:00", 800 or full
"2026-01-15T08:00:00" timestamps. Everything here turns those into the
frozen records the engine consumes.

Single-record helpers raise NormalizationError; the bulk helpers log and
skip the offending entry so one bad payload never hides a whole timetable.
"""

import html
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, TypeVar

from pydantic import ValidationError

from src.timetable.errors import NormalizationError
from src.timetable.logging import get_logger
from src.timetable.merge import DEFAULT_LESSON_MINUTES
from src.timetable.models import (
    AbsenceRecord,
    ExamRecord,
    Holiday,
    HomeworkRecord,
    NamedPeriod,
    RawLessonSlot,
    StatusCode,
)
from src.timetable.timeconv import minutes_label

log = get_logger(__name__)

T = TypeVar("T")

_CANCELLED = {"CANCELLED", "CANCEL"}
_IRREGULAR = {"ADDITIONAL", "CHANGED", "SUBSTITUTION", "SUBSTITUTE"}
_LEGACY_CODES = {"regular", "irregular", "cancelled", "info", "error"}

_BR_TAG = re.compile(r"<br\s*/?>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]*>")
_SPACES = re.compile(r"[^\S\n]+")
_TIMESTAMP = re.compile(r"\d{4}-\d{2}-\d{2}[T ](\d{2}:\d{2})")


def map_status_code(status: str | None, substitution_text: str | None = None) -> StatusCode:
    """Translate a REST lesson status into the engine's status code.

    CANCELLED/CANCEL become "cancelled"; ADDITIONAL, CHANGED, SUBSTITUTION
    and SUBSTITUTE become "irregular". Any other status (REGULAR, NORMAL,
    unknown words) is regular, unless a substitution text is present, in
    which case the lesson is irregular after all.
    """
    if not status:
        return ""
    word = str(status).strip().upper()
    if word in _CANCELLED:
        return "cancelled"
    if word in _IRREGULAR:
        return "irregular"
    if substitution_text and str(substitution_text).strip():
        return "irregular"
    return ""


def sanitize_html_text(text: object, preserve_line_breaks: bool = True) -> str:
    """Strip HTML from an upstream text fragment.

    <br> becomes a newline (or a space when preserve_line_breaks is False),
    remaining tags are removed and entities decoded. Runs of spaces collapse
    to one; line breaks survive.
    """
    if not text:
        return ""
    result = _BR_TAG.sub("\n" if preserve_line_breaks else " ", str(text))
    result = _ANY_TAG.sub("", result)
    result = html.unescape(result).replace("\xa0", " ")
    lines = (_SPACES.sub(" ", line).strip() for line in result.split("\n"))
    return "\n".join(line for line in lines if line)


def _pick(payload: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    """First non-None value among the given keys."""
    for name in names:
        value = payload.get(name)
        if value is not None:
            return value
    return default


def _raw_time(value: object) -> str | int | None:
    """Raw time as the engine accepts it; timestamps reduce to "HH:MM"."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        match = _TIMESTAMP.search(value)
        if match:
            return match.group(1)
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    raise NormalizationError(f"Unsupported time value: {value!r}")


def _element_names(value: object, field: str) -> tuple[str, str]:
    """(short, long) name of a subject/teacher/room element.

    Upstream sends a list of {name, longname} objects, a single object or,
    in compact payloads, a plain string. Only the first element is used.
    """
    if value is None:
        return "", ""
    if isinstance(value, str):
        return value, value
    if isinstance(value, Sequence):
        if not value:
            return "", ""
        value = value[0]
        if isinstance(value, str):
            return value, value
    if not isinstance(value, Mapping):
        raise NormalizationError(f"Field {field!r} must hold objects, got {type(value).__name__}")

    name = str(value.get("name") or "")
    longname = str(_pick(value, "longname", "longName", default="") or "")
    return name or longname, longname or name


def _require_mapping(payload: object, kind: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise NormalizationError(f"{kind} payload must be a mapping, got {type(payload).__name__}")
    return payload


def _identity(payload: Mapping[str, Any], *names: str) -> str | None:
    value = _pick(payload, *names)
    return None if value is None else str(value)


def _build(model: Callable[..., T], kind: str, **fields: Any) -> T:
    try:
        return model(**fields)
    except ValidationError as exc:
        raise NormalizationError(f"Invalid {kind} payload: {exc}") from exc


def normalize_lesson(payload: object) -> RawLessonSlot:
    """Convert one timetable entry into a RawLessonSlot.

    Raises:
        NormalizationError: If the payload is not a mapping or a field has
            an unusable shape.
    """
    payload = _require_mapping(payload, "lesson")

    subject_short, subject_long = _element_names(payload.get("su"), "su")
    teacher_initial, teacher_full = _element_names(payload.get("te"), "te")
    substitution_text = sanitize_html_text(_pick(payload, "substText", "substitutionText"), False)

    code = str(payload.get("code") or "").strip().lower()
    if code not in _LEGACY_CODES:
        code = map_status_code(payload.get("status"), substitution_text)

    return _build(
        RawLessonSlot,
        "lesson",
        date_key=payload.get("date"),
        start_time=_raw_time(payload.get("startTime")),
        end_time=_raw_time(payload.get("endTime")),
        subject_short=subject_short,
        subject_long=subject_long,
        teacher_initial=teacher_initial,
        teacher_full=teacher_full,
        status_code=code,
        substitution_text=substitution_text,
        free_text=sanitize_html_text(_pick(payload, "lstext", "lessonInfo")),
        lesson_identity=_identity(payload, "id", "lid", "lessonId"),
        lesson_type=_pick(payload, "activityType", "type"),
    )


def normalize_homework(payload: object) -> HomeworkRecord:
    """Convert one homework entry; the due date becomes the date key."""
    payload = _require_mapping(payload, "homework")
    subject = _pick(payload, "su", "subject")
    subject_short, subject_long = _element_names(subject, "su")
    return _build(
        HomeworkRecord,
        "homework",
        date_key=_pick(payload, "dueDate", "date"),
        lesson_identity=_identity(payload, "lessonId", "lid"),
        subject_short=subject_short,
        subject_long=subject_long,
        text=sanitize_html_text(_pick(payload, "text", "description", "remark")),
        remark=sanitize_html_text(payload.get("remark"), False),
        completed=payload.get("completed"),
    )


def normalize_exam(payload: object) -> ExamRecord:
    """Convert one exam entry."""
    payload = _require_mapping(payload, "exam")
    subject = _pick(payload, "su", "subject")
    subject_short, subject_long = _element_names(subject, "subject")

    teachers = payload.get("teachers") or []
    if isinstance(teachers, str) or not isinstance(teachers, Sequence):
        teachers = [teachers]
    teacher_names = tuple(
        _element_names(teacher, "teachers")[0] for teacher in teachers
    )

    return _build(
        ExamRecord,
        "exam",
        date_key=_pick(payload, "examDate", "date"),
        lesson_identity=_identity(payload, "lessonId", "lid"),
        start_time=_raw_time(payload.get("startTime")),
        end_time=_raw_time(payload.get("endTime")),
        name=sanitize_html_text(payload.get("name"), False),
        subject_short=subject_short,
        subject_long=subject_long,
        teachers=tuple(name for name in teacher_names if name),
        text=sanitize_html_text(payload.get("text")),
    )


def normalize_absence(payload: object) -> AbsenceRecord:
    """Convert one absence entry."""
    payload = _require_mapping(payload, "absence")
    subject_short, subject_long = _element_names(payload.get("su"), "su")
    return _build(
        AbsenceRecord,
        "absence",
        date_key=_pick(payload, "date", "startDate", "absenceDate", "day"),
        lesson_identity=_identity(payload, "lessonId", "lid", "id"),
        start_time=_raw_time(_pick(payload, "startTime", "start")),
        end_time=_raw_time(_pick(payload, "endTime", "end")),
        subject_short=subject_short,
        subject_long=subject_long,
        reason=sanitize_html_text(_pick(payload, "reason", "reasonText", "text"), False),
        excused=_pick(payload, "isExcused", "excused"),
    )


def normalize_holiday(payload: object) -> Holiday:
    """Convert one holiday entry (startDate..endDate, inclusive)."""
    payload = _require_mapping(payload, "holiday")
    start = payload.get("startDate")
    end = _pick(payload, "endDate", "startDate")
    return _build(
        Holiday,
        "holiday",
        name=str(_pick(payload, "name", "shortName", default="")),
        long_name=str(_pick(payload, "longName", "name", default="")),
        start_key=start,
        end_key=end,
    )


def normalize_records(
    payloads: Iterable[object],
    normalizer: Callable[[object], T],
    kind: str,
) -> list[T]:
    """Apply a single-record normalizer to every payload.

    Entries that fail are logged and skipped.
    """
    records: list[T] = []
    skipped = 0
    for index, payload in enumerate(payloads or ()):
        try:
            records.append(normalizer(payload))
        except NormalizationError as exc:
            skipped += 1
            log.warning("record_skipped", kind=kind, index=index, error=str(exc))
    if skipped:
        log.info("records_normalized", kind=kind, kept=len(records), skipped=skipped)
    return records


def normalize_lessons(payloads: Iterable[object]) -> list[RawLessonSlot]:
    return normalize_records(payloads, normalize_lesson, "lesson")


def normalize_periods(timegrid: object) -> list[NamedPeriod]:
    """Named periods from a timegrid payload.

    Accepts the row format ([{"timeUnits": [...]}, ...], first row used) and
    the flat format ([{"startTime", "endTime", "name"}, ...]).
    """
    if not isinstance(timegrid, Sequence) or isinstance(timegrid, str) or not timegrid:
        return []

    first = timegrid[0]
    if isinstance(first, Mapping) and isinstance(first.get("timeUnits"), Sequence):
        units = first["timeUnits"]
    else:
        units = timegrid

    periods: list[NamedPeriod] = []
    for unit in units:
        if not isinstance(unit, Mapping):
            log.warning("period_skipped", unit=repr(unit))
            continue
        periods.append(
            NamedPeriod(
                start_time=_raw_time(unit.get("startTime")),
                end_time=_raw_time(unit.get("endTime")),
                label=str(unit.get("name") or ""),
            )
        )
    return periods


def infer_periods(
    slots: Iterable[RawLessonSlot],
    default_lesson_minutes: int = DEFAULT_LESSON_MINUTES,
) -> list[NamedPeriod]:
    """Derive numbered periods from lesson start times.

    Used when no timegrid is available. Every distinct start time becomes a
    period labelled "1", "2", ... in chronological order. A period ends
    where the next one starts; the last one ends with the first lesson
    starting there, or after default_lesson_minutes.
    """
    ends_by_start: dict[int, int | None] = {}
    for slot in slots:
        start = slot.start_minutes
        if start is None:
            continue
        if ends_by_start.get(start) is None:
            end = slot.end_minutes
            ends_by_start[start] = end if end is not None and end > start else None

    starts = sorted(ends_by_start)
    periods: list[NamedPeriod] = []
    for index, start in enumerate(starts):
        if index + 1 < len(starts):
            end = starts[index + 1]
        else:
            end = ends_by_start[start] or start + default_lesson_minutes
        periods.append(
            NamedPeriod(
                start_time=minutes_label(start),
                end_time=minutes_label(end),
                label=str(index + 1),
            )
        )
    return periods

"""Error hierarchy for the timetable engine.

The layout engine itself never raises for malformed lesson data: unparseable
times and dates are excluded and reported through the logger. Exceptions are
reserved for the boundaries around it, where a caller hands over something
that cannot be turned into records at all.

Example usage at the collaborator boundary:
    try:
        slot = normalize_lesson(payload)
    except NormalizationError as exc:
        log.warning("record_skipped", kind="lesson", error=str(exc))
"""


class TimetableError(Exception):
    """Base exception for all timetable errors."""

    pass


class NormalizationError(TimetableError):
    """An upstream payload cannot be coerced into a record.

    Examples: a lesson entry that is not a mapping, a subject list holding
    something other than objects.
    """

    pass


class InvalidRequestError(TimetableError):
    """A layout request violates a structural precondition.

    Raised when a request payload fails validation, e.g. a day window that
    is not a whole number of days. Wraps the underlying pydantic error.
    """

    pass

"""Conversion of upstream time values to minutes since midnight.

Upstream records carry start/end times in several shapes: "13:50" strings
from the timegrid, 1350 integers from the REST timetable, "0800" strings from
older payloads. Everything downstream works on plain minute offsets.
"""

import re

_NON_DIGIT = re.compile(r"\D")


def _digits(text: str) -> str:
    return _NON_DIGIT.sub("", text)


def to_minutes(value: str | int | float | None) -> int | None:
    """Convert a raw time value to minutes since midnight.

    Accepts "H:MM" / "HH:MM" strings, HHMM digit strings or integers
    (left-padded to four digits, so 750 is 07:50) and None. Non-digit
    characters are stripped before parsing.

    Args:
        value: Raw time value as reported upstream.

    Returns:
        Minutes since midnight, or None when the value is empty or cannot
        be parsed. Callers treat None as "exclude from range computations".
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)

    text = str(value).strip()
    if not text:
        return None

    if ":" in text:
        parts = [_digits(p) for p in text.split(":")]
        hours, minutes = parts[0], parts[1] if len(parts) > 1 else ""
        if not hours and not minutes:
            return None
        return int(hours or 0) * 60 + int(minutes or 0)

    digits = _digits(text)
    if not digits or len(digits) > 4:
        return None
    digits = digits.zfill(4)
    return int(digits[:2]) * 60 + int(digits[2:])


def minutes_label(minutes: int) -> str:
    """Format a minute offset as "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_time(value: str | int | float | None) -> str:
    """Format a raw time value as "HH:MM", or "" when it cannot be parsed."""
    minutes = to_minutes(value)
    if minutes is None:
        return ""
    return minutes_label(minutes)


def raw_time_number(value: str | int | float | None) -> int:
    """Numeric HHMM value of a raw time, used as a sort key.

    Compares the raw upstream field rather than parsed minutes, so "08:00"
    and 800 sort the same way. Missing or digit-less values sort first.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    digits = _digits(str(value))
    return int(digits) if digits else 0

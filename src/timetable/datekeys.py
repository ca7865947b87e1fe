"""Integer date keys (YYYYMMDD) and day arithmetic.

Date keys are what upstream records carry and what the engine compares;
calendar arithmetic goes through datetime.date so month and year rollover
are handled by the standard library.
"""

import re
from datetime import date, timedelta

_MIN_KEY = 10000101
_MAX_KEY = 99991231


def to_key(year: int, month: int, day: int) -> int:
    """Encode a calendar date as an integer YYYYMMDD key."""
    return year * 10000 + month * 100 + day


def from_key(key: int) -> tuple[int, int, int] | None:
    """Decode a YYYYMMDD key into (year, month, day).

    Returns None when the key does not denote a real calendar date.
    """
    year, rest = divmod(key, 10000)
    month, day = divmod(rest, 100)
    try:
        date(year, month, day)
    except ValueError:
        return None
    return year, month, day


def key_to_date(key: int) -> date:
    """Convert a date key to a date.

    Raises:
        ValueError: If the key does not denote a real calendar date.
    """
    parts = from_key(key)
    if parts is None:
        raise ValueError(f"Invalid date key {key!r}")
    return date(*parts)


def date_to_key(value: date) -> int:
    """Convert a date to its YYYYMMDD key."""
    return to_key(value.year, value.month, value.day)


def shift_key(key: int, delta_days: int) -> int:
    """Add delta_days (may be negative) to a date key.

    shift_key(20260131, 1) == 20260201

    Raises:
        ValueError: If the key does not denote a real calendar date, or the
            result falls outside years 1..9999.
    """
    try:
        shifted = key_to_date(key) + timedelta(days=delta_days)
    except OverflowError as e:
        raise ValueError(f"Date key {key!r} shifted by {delta_days} days is out of range") from e
    return date_to_key(shifted)


def parse_key(value: object) -> int | None:
    """Coerce an upstream date value into a date key.

    Accepts 20260115, "20260115" and "2026-01-15" (ISO strings may carry a
    time part). Returns None for anything that does not denote a real
    calendar date.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, date):
        return date_to_key(value)
    if isinstance(value, int):
        key = value
    else:
        text = str(value).strip()
        iso = re.match(r"^(\d{4})-(\d{1,2})-(\d{1,2})", text)
        if iso:
            key = to_key(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))
        else:
            digits = re.sub(r"\D", "", text)
            if len(digits) != 8:
                return None
            key = int(digits)

    if not _MIN_KEY <= key <= _MAX_KEY or from_key(key) is None:
        return None
    return key


def today_key(as_of: date | None = None) -> int:
    """Today's date key in the local calendar.

    Args:
        as_of: Fixed date to use instead of the wall clock (debug date,
            deterministic tests).
    """
    return date_to_key(as_of if as_of is not None else date.today())

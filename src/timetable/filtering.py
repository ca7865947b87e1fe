"""Day-window filtering and per-day grouping of dated records.

Works on any record with a date_key attribute (lessons, homework, exams,
absences). Records whose date could not be parsed carry date_key=None and
never pass.
"""

import math
from collections.abc import Iterable, Sequence
from typing import TypeVar

from src.timetable.datekeys import key_to_date, parse_key, shift_key
from src.timetable.models import Holiday
from src.timetable.timeconv import raw_time_number

R = TypeVar("R")


def _record_key(record: object) -> int | None:
    return parse_key(getattr(record, "date_key", None))


def _is_number(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _bound(anchor_key: int, delta_days: int) -> int | None:
    """anchor_key shifted by delta_days; None when that leaves the calendar."""
    key_to_date(anchor_key)  # an invalid anchor still raises
    try:
        return shift_key(anchor_key, delta_days)
    except ValueError:
        return None


def filter_by_range(
    records: Sequence[R],
    anchor_key: int,
    past_days: float | None,
    future_days: float | None,
) -> list[R]:
    """Keep the records whose date falls inside the window around anchor_key.

    The lower bound (anchor - past_days) is active only when past_days is a
    finite number >= 0; the upper bound (anchor + future_days) only when
    future_days is finite and > 0. Both bounds are inclusive.

    Args:
        records: Dated records.
        anchor_key: "Today" as a YYYYMMDD key.
        past_days: Days before the anchor to keep.
        future_days: Days after the anchor to keep.

    Returns:
        A new list; a shallow copy of records when no bound is active.
    """
    min_key = None
    max_key = None
    if _is_number(past_days) and past_days >= 0:
        min_key = _bound(anchor_key, -int(past_days))
    if _is_number(future_days) and future_days > 0:
        max_key = _bound(anchor_key, int(future_days))

    if min_key is None and max_key is None:
        return list(records)

    kept: list[R] = []
    for record in records:
        key = _record_key(record)
        if key is None:
            continue
        if min_key is not None and key < min_key:
            continue
        if max_key is not None and key > max_key:
            continue
        kept.append(record)
    return kept


def group_by_day(records: Iterable[R]) -> dict[int, list[R]]:
    """Partition records into per-day buckets keyed by date key.

    Each bucket is sorted by the raw HHMM value of start_time (stable, so
    ties keep their original order). Records without a date key are skipped.
    """
    buckets: dict[int, list[R]] = {}
    for record in records:
        key = _record_key(record)
        if key is None:
            continue
        buckets.setdefault(key, []).append(record)

    for key, bucket in buckets.items():
        buckets[key] = sorted(
            bucket, key=lambda r: raw_time_number(getattr(r, "start_time", None))
        )
    return buckets


def holiday_map(holidays: Iterable[Holiday], date_keys: Iterable[int]) -> dict[int, Holiday]:
    """Map each requested day to the first holiday covering it."""
    holidays = list(holidays)
    result: dict[int, Holiday] = {}
    for key in date_keys:
        for holiday in holidays:
            if holiday.covers(key):
                result[key] = holiday
                break
    return result

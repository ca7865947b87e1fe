"""Visible time window and tick marks for the grid.

The window comes from the school's named periods when there are any,
otherwise from the lesson blocks themselves. Full-day placeholder entries
(at least full_day_minutes long) are ignored so they do not stretch the
window to midnight.
"""

from collections.abc import Iterable, Sequence

from src.timetable.models import MergedLessonBlock, NamedPeriod, Tick, TimeAxis
from src.timetable.timeconv import minutes_label

FULL_DAY_MINUTES = 12 * 60
FALLBACK_WINDOW: tuple[int, int] = (7 * 60, 17 * 60)


def sorted_periods(periods: Iterable[NamedPeriod]) -> list[NamedPeriod]:
    """Periods with a convertible start, ordered by start minute."""
    usable = [p for p in periods if p.start_minutes is not None]
    return sorted(usable, key=lambda p: p.start_minutes)


def _period_window(periods: Sequence[NamedPeriod]) -> tuple[int | None, int | None]:
    starts = [p.start_minutes for p in periods if p.start_minutes is not None]
    ends = [p.end_minutes for p in periods if p.end_minutes is not None]
    return (min(starts) if starts else None, max(ends) if ends else None)


def _block_window(
    blocks: Iterable[MergedLessonBlock], full_day_minutes: int
) -> tuple[int | None, int | None]:
    start = None
    end = None
    for block in blocks:
        if block.duration_minutes >= full_day_minutes:
            continue
        start = block.start_minutes if start is None else min(start, block.start_minutes)
        end = block.end_minutes if end is None else max(end, block.end_minutes)
    return start, end


def build_ticks(periods: Sequence[NamedPeriod], start: int, end: int) -> list[Tick]:
    """Tick marks inside [start, end].

    With named periods: a labelled tick at each period start plus a divider
    at each period end. Without: one tick per full hour.
    """
    ticks: list[Tick] = []
    if periods:
        for period in sorted_periods(periods):
            if start <= period.start_minutes <= end:
                ticks.append(Tick(minutes=period.start_minutes, label=period.label, kind="period"))
            period_end = period.end_minutes
            if period_end is not None and start <= period_end <= end:
                ticks.append(Tick(minutes=period_end, kind="divider"))
        return ticks

    minute = -(-start // 60) * 60
    while minute <= end:
        ticks.append(Tick(minutes=minute, label=minutes_label(minute), kind="hour"))
        minute += 60
    return ticks


def build_axis(
    periods: Sequence[NamedPeriod],
    blocks: Iterable[MergedLessonBlock],
    full_day_minutes: int = FULL_DAY_MINUTES,
    fallback: tuple[int, int] = FALLBACK_WINDOW,
) -> TimeAxis:
    """Determine the visible minute range across all displayed days.

    Args:
        periods: Named periods; when non-empty they alone define the window.
        blocks: Merged blocks of every displayed day.
        full_day_minutes: Blocks at least this long are ignored.
        fallback: Window used when the computed one is empty or inverted.
            An empty or inverted fallback is replaced by 07:00-17:00.

    Returns:
        TimeAxis with end_minutes > start_minutes and its ticks.
    """
    if periods:
        start, end = _period_window(periods)
    else:
        start, end = _block_window(blocks, full_day_minutes)

    is_fallback = start is None or end is None or end <= start
    if is_fallback:
        start, end = fallback
        if end <= start:
            start, end = FALLBACK_WINDOW

    return TimeAxis(
        start_minutes=start,
        end_minutes=end,
        ticks=build_ticks(periods, start, end),
        is_fallback=is_fallback,
    )


def lesson_cap_cutoff(periods: Sequence[NamedPeriod], max_lessons: int) -> int | None:
    """End minute of the max_lessons-th period, or None when no cap applies.

    The cap applies only when max_lessons > 0 and there are more periods
    than the cap.
    """
    ordered = sorted_periods(periods)
    if max_lessons <= 0 or len(ordered) <= max_lessons:
        return None
    return ordered[max_lessons - 1].end_minutes


def capped_axis(axis: TimeAxis, periods: Sequence[NamedPeriod], max_lessons: int) -> TimeAxis:
    """Axis used to position blocks when a per-day lesson cap is configured.

    Ends at the cutoff when it falls strictly inside the global window;
    otherwise the global axis is returned unchanged.
    """
    cutoff = lesson_cap_cutoff(periods, max_lessons)
    if cutoff is None or not axis.start_minutes < cutoff < axis.end_minutes:
        return axis
    return TimeAxis(
        start_minutes=axis.start_minutes,
        end_minutes=cutoff,
        ticks=[t for t in axis.ticks if t.minutes <= cutoff],
        is_fallback=axis.is_fallback,
    )

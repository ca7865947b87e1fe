"""Grid layout: merged, clipped and proportionally positioned day columns.

Control flow for one request:
  filter_by_range -> group_by_day -> merge_slots (per day)
  -> build_axis (all days) -> clip/position -> annotate_columns

Positions are ratios of the positioning axis; the renderer scales them to
pixels. Every call recomputes from its inputs, so identical requests yield
identical grids.
"""

from collections.abc import Iterable, Mapping, Sequence

from src.timetable.annotate import annotate_columns
from src.timetable.axis import FALLBACK_WINDOW, FULL_DAY_MINUTES, build_axis, capped_axis
from src.timetable.filtering import filter_by_range, group_by_day, holiday_map
from src.timetable.logging import get_logger
from src.timetable.merge import DEFAULT_LESSON_MINUTES, DEFAULT_MERGE_GAP_MINUTES, merge_slots
from src.timetable.models import (
    DayColumn,
    DayWindow,
    GridModel,
    Holiday,
    MergedLessonBlock,
    NamedPeriod,
    RawLessonSlot,
    TimeAxis,
    TimetableRequest,
)
from src.timetable.timeconv import minutes_label

log = get_logger(__name__)


def position_block(block: MergedLessonBlock, axis: TimeAxis) -> MergedLessonBlock | None:
    """Clamp a block to the axis window and compute its ratios.

    Returns:
        A positioned copy, or None when the block has no visible overlap.
    """
    start = max(block.start_minutes, axis.start_minutes)
    end = min(block.end_minutes, axis.end_minutes)
    if end <= start:
        return None
    return block.model_copy(
        update={
            "start_minutes": start,
            "end_minutes": end,
            "top_ratio": axis.ratio(start),
            "height_ratio": (end - start) / axis.total_minutes,
        }
    )


def layout_grid(
    window: DayWindow,
    periods: Sequence[NamedPeriod],
    grouped: Mapping[int, Sequence[RawLessonSlot]],
    merge_gap_minutes: int = DEFAULT_MERGE_GAP_MINUTES,
    max_lessons_per_day: int = 0,
    *,
    default_lesson_minutes: int = DEFAULT_LESSON_MINUTES,
    full_day_minutes: int = FULL_DAY_MINUTES,
    fallback: tuple[int, int] = FALLBACK_WINDOW,
    holidays: Iterable[Holiday] = (),
) -> GridModel:
    """Lay out one column per day of the window.

    Args:
        window: Requested days around the anchor ("today").
        periods: Named periods; may be empty.
        grouped: Per-day slot buckets, sorted by start time (see group_by_day).
        merge_gap_minutes: Largest gap (inclusive) bridged by a merge.
        max_lessons_per_day: Per-day lesson cap; 0 disables it.
        default_lesson_minutes: Estimated length of slots without an end.
        full_day_minutes: Blocks at least this long do not stretch the axis.
        fallback: Axis window used when the computed one is degenerate.
        holidays: Holidays to attach to the columns they cover.

    Returns:
        GridModel with exactly window.size columns in chronological order.
    """
    date_keys = window.date_keys()

    merged: dict[int, list[MergedLessonBlock]] = {}
    for key in date_keys:
        outcome = merge_slots(grouped.get(key, []), merge_gap_minutes, default_lesson_minutes)
        for slot in outcome.dropped:
            log.debug("slot_dropped", date=key, slot=slot, reason="start_time_unparseable")
        for slot in outcome.boundaries:
            log.debug(
                "merge_boundary_forced",
                date=key,
                slot=slot,
                reason="end_time_unparseable",
            )
        merged[key] = outcome.blocks

    axis = build_axis(
        periods,
        (block for blocks in merged.values() for block in blocks),
        full_day_minutes=full_day_minutes,
        fallback=fallback,
    )
    if axis.is_fallback:
        log.debug(
            "axis_fallback",
            start=minutes_label(axis.start_minutes),
            end=minutes_label(axis.end_minutes),
        )

    position_axis = capped_axis(axis, periods, max_lessons_per_day)
    if position_axis is not axis:
        log.debug(
            "axis_capped",
            max_lessons=max_lessons_per_day,
            cutoff=minutes_label(position_axis.end_minutes),
        )

    holidays_by_day = holiday_map(holidays, date_keys)

    columns: list[DayColumn] = []
    for key in date_keys:
        blocks = merged[key]
        positioned = [
            placed
            for placed in (position_block(block, position_axis) for block in blocks)
            if placed is not None
        ]
        hidden = len(blocks) - len(positioned)
        if hidden:
            log.debug("blocks_hidden", date=key, hidden=hidden, total=len(blocks))

        columns.append(
            DayColumn(
                date_key=key,
                blocks=positioned,
                has_overflow=max_lessons_per_day > 0 and len(blocks) > max_lessons_per_day,
                hidden_count=hidden,
                is_today=key == window.anchor_key,
                holiday=holidays_by_day.get(key),
            )
        )

    return GridModel(axis=axis, position_axis=position_axis, days=columns)


def build_grid(request: TimetableRequest) -> GridModel:
    """Build the annotated grid for one student's request.

    This is the engine's single entry point for grid mode. It holds no
    state; callers that want caching can key it on request.fingerprint().
    """
    window = request.window
    lessons = filter_by_range(
        request.lessons, window.anchor_key, window.past_days, window.next_days
    )
    grid = layout_grid(
        window,
        request.periods,
        group_by_day(lessons),
        request.merge_gap_minutes,
        request.max_lessons_per_day,
        default_lesson_minutes=request.default_lesson_minutes,
        full_day_minutes=request.full_day_minutes,
        fallback=(request.fallback_start_minutes, request.fallback_end_minutes),
        holidays=request.holidays,
    )
    annotate_columns(
        grid.days,
        request.homework,
        request.exams,
        request.absences,
        exam_keywords=request.exam_keywords,
    )

    log.info(
        "grid_built",
        student_id=request.student_id or None,
        days=len(grid.days),
        blocks=sum(len(day.blocks) for day in grid.days),
        lessons_in_range=len(lessons),
    )
    return grid

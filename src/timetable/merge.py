"""Coalescing of adjacent equivalent lesson slots into merged blocks.

Double periods arrive upstream as two or more slots; the grid draws them as
one block. A slot joins the open block only when it starts at or after the
block's end, the gap is within the tolerance (inclusive), and subject,
teacher and status are identical. Anything else closes the block.
"""

from collections.abc import Sequence

from src.timetable.models import MergedLessonBlock, MergeResult, RawLessonSlot
from src.timetable.timeconv import minutes_label

DEFAULT_MERGE_GAP_MINUTES = 15
DEFAULT_LESSON_MINUTES = 45


def describe_slot(slot: RawLessonSlot) -> str:
    """Short human-readable reference to a slot for log output."""
    ident = f" #{slot.lesson_identity}" if slot.lesson_identity else ""
    return f"{slot.date_key} {slot.start_time}-{slot.end_time} {slot.subject_short or '?'}{ident}"


def _append_text(accumulated: str, text: str) -> str:
    if not text or text in accumulated:
        return accumulated
    return f"{accumulated}\n{text}" if accumulated else text


class _BlockBuilder:
    """Mutable accumulator for the block currently being extended."""

    def __init__(self, first: RawLessonSlot, start: int, end: int) -> None:
        self.first = first
        self.start = start
        self.end = end
        self.identities: list[str] = []
        self.substitution_text = ""
        self.free_text = ""
        self.slot_count = 0
        self._collect(first)

    def _collect(self, slot: RawLessonSlot) -> None:
        if slot.lesson_identity and slot.lesson_identity not in self.identities:
            self.identities.append(slot.lesson_identity)
        self.substitution_text = _append_text(self.substitution_text, slot.substitution_text)
        self.free_text = _append_text(self.free_text, slot.free_text)
        self.slot_count += 1

    def accepts(self, slot: RawLessonSlot, merge_gap_minutes: int) -> bool:
        start = slot.start_minutes
        end = slot.end_minutes
        if start is None or end is None or end <= start:
            return False
        if start < self.end or start - self.end > merge_gap_minutes:
            return False
        return (
            slot.subject_short == self.first.subject_short
            and slot.teacher_initial == self.first.teacher_initial
            and slot.status_code == self.first.status_code
        )

    def absorb(self, slot: RawLessonSlot) -> None:
        self.end = slot.end_minutes
        self._collect(slot)

    def build(self) -> MergedLessonBlock:
        first = self.first
        return MergedLessonBlock(
            date_key=first.date_key,
            start_minutes=self.start,
            end_minutes=self.end,
            start_time=minutes_label(self.start),
            end_time=minutes_label(self.end),
            subject_short=first.subject_short,
            subject_long=first.subject_long,
            teacher_initial=first.teacher_initial,
            teacher_full=first.teacher_full,
            status_code=first.status_code,
            substitution_text=self.substitution_text,
            free_text=self.free_text,
            lesson_type=first.lesson_type,
            member_identities=self.identities,
            slot_count=self.slot_count,
        )


def merge_slots(
    slots: Sequence[RawLessonSlot],
    merge_gap_minutes: int = DEFAULT_MERGE_GAP_MINUTES,
    default_lesson_minutes: int = DEFAULT_LESSON_MINUTES,
) -> MergeResult:
    """Merge one day's slots (sorted by start time) into blocks.

    A slot whose start cannot be converted is dropped. A slot with a start
    but no convertible end gets an estimated end of default_lesson_minutes
    and becomes a block of its own: adjacency is undecidable, so nothing is
    merged into or past it. Both conditions are reported in the result for
    the caller to log.

    Args:
        slots: One day's slots in chronological order.
        merge_gap_minutes: Largest gap (inclusive) bridged by a merge.
        default_lesson_minutes: Estimated length of a slot without an end.

    Returns:
        MergeResult with blocks in input order. Every block ends after it starts.
    """
    result = MergeResult()
    i = 0
    while i < len(slots):
        first = slots[i]
        i += 1

        start = first.start_minutes
        if first.date_key is None or start is None:
            result.dropped.append(describe_slot(first))
            continue

        end = first.end_minutes
        if end is None:
            result.boundaries.append(describe_slot(first))
            result.blocks.append(
                _BlockBuilder(first, start, start + max(default_lesson_minutes, 1)).build()
            )
            continue

        if end <= start:
            result.dropped.append(describe_slot(first))
            continue

        builder = _BlockBuilder(first, start, end)
        while i < len(slots) and builder.accepts(slots[i], merge_gap_minutes):
            builder.absorb(slots[i])
            i += 1
        result.blocks.append(builder.build())

    return result

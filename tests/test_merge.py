from src.timetable.merge import merge_slots


def test_simple_merge(make_slot) -> None:
    result = merge_slots([make_slot("0800", "0845"), make_slot("0845", "0930")], merge_gap_minutes=15)

    assert len(result.blocks) == 1
    block = result.blocks[0]
    assert (block.start_minutes, block.end_minutes) == (480, 570)
    assert (block.start_time, block.end_time) == ("08:00", "09:30")
    assert block.slot_count == 2
    assert block.subject_short == "Math"
    assert block.teacher_initial == "Mr X"


def test_gap_equal_to_tolerance_merges(make_slot) -> None:
    result = merge_slots([make_slot("0800", "0845"), make_slot("0900", "0945")], merge_gap_minutes=15)

    assert [(b.start_minutes, b.end_minutes) for b in result.blocks] == [(480, 585)]


def test_gap_beyond_tolerance_stays_separate(make_slot) -> None:
    result = merge_slots([make_slot("0800", "0845"), make_slot("0901", "0946")], merge_gap_minutes=15)

    assert [(b.start_minutes, b.end_minutes) for b in result.blocks] == [(480, 525), (541, 586)]


def test_different_content_closes_block(make_slot) -> None:
    slots = [
        make_slot("0800", "0845"),
        make_slot("0845", "0930", teacher="Mrs Y"),
        make_slot("0930", "1015", teacher="Mrs Y", status_code="cancelled"),
        make_slot("1015", "1100", subject="Bio", teacher="Mrs Y", status_code="cancelled"),
    ]

    result = merge_slots(slots)

    assert len(result.blocks) == 4


def test_overlapping_slots_do_not_merge(make_slot) -> None:
    result = merge_slots([make_slot("0800", "0900"), make_slot("0830", "0930")])

    assert len(result.blocks) == 2


def test_member_identities_keep_order_without_duplicates(make_slot) -> None:
    slots = [
        make_slot("0800", "0845", lesson_identity=7),
        make_slot("0845", "0930", lesson_identity="3"),
        make_slot("0930", "1015", lesson_identity=7),
        make_slot("1015", "1100"),
    ]

    block = merge_slots(slots).blocks[0]

    assert block.member_identities == ["7", "3"]
    assert block.slot_count == 4


def test_texts_are_joined_and_deduplicated(make_slot) -> None:
    slots = [
        make_slot("0800", "0845", free_text="Bring calculator", substitution_text="Room change"),
        make_slot("0845", "0930", free_text="calculator"),
        make_slot("0930", "1015", free_text="Test on chapter 4", substitution_text="Room change"),
    ]

    block = merge_slots(slots).blocks[0]

    assert block.free_text == "Bring calculator\nTest on chapter 4"
    assert block.substitution_text == "Room change"


def test_missing_end_forces_boundary(make_slot) -> None:
    slots = [
        make_slot("0800", "0845"),
        make_slot("0845", None),
        make_slot("0930", "1015"),
    ]

    result = merge_slots(slots, default_lesson_minutes=45)

    assert [(b.start_minutes, b.end_minutes) for b in result.blocks] == [
        (480, 525),
        (525, 570),
        (570, 615),
    ]
    assert len(result.boundaries) == 1
    assert result.dropped == []


def test_unparseable_start_is_dropped(make_slot) -> None:
    slots = [make_slot("later", "0845"), make_slot("0900", "0800"), make_slot("1000", "1045")]

    result = merge_slots(slots)

    assert len(result.dropped) == 2
    assert [(b.start_minutes, b.end_minutes) for b in result.blocks] == [(600, 645)]


def test_every_block_ends_after_it_starts(make_slot) -> None:
    slots = [
        make_slot("0800", "0845"),
        make_slot("0845", "0930"),
        make_slot("0930", None),
        make_slot("1000", "1000"),
        make_slot(None, "1100"),
        make_slot("1100", "1145", subject="Art"),
    ]

    for block in merge_slots(slots).blocks:
        assert block.end_minutes > block.start_minutes

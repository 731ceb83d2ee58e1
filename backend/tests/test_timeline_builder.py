"""
Tests for the pitch timeline builder: cursor walk, idempotence and ordering.
"""

from pitchplan.utils.time_math import to_minutes
from pitchplan.utils.timeline import (
    BREAK,
    FIXTURE,
    BreakItem,
    FixtureItem,
    ItemRef,
    build_timeline,
    changed_placements,
    order_items,
)

OPEN = to_minutes("09:00")


def fixture(fixture_id, start_time=None, duration=20, slack=5, slack_before=0, pitch_id="P"):
    return FixtureItem(
        fixture_id=fixture_id,
        competition_id="C",
        duration=duration,
        slack=slack,
        slack_before=slack_before,
        pitch_id=pitch_id if start_time else None,
        start_time=start_time,
    )


def test_fixtures_follow_each_other_from_open_time():
    placements = build_timeline("P", OPEN, [fixture("F1"), fixture("F2")])

    assert [p.start_time for p in placements] == ["09:00", "09:25"]
    assert all(p.pitch_id == "P" for p in placements)


def test_break_between_fixtures_pushes_the_next_one():
    items = [fixture("F1"), BreakItem(break_id="B1", pitch_id="P", duration=10), fixture("F2")]

    placements = build_timeline("P", OPEN, items)

    assert [(p.ref.kind, p.start_time) for p in placements] == [
        (FIXTURE, "09:00"),
        (BREAK, "09:25"),
        (FIXTURE, "09:35"),
    ]


def test_short_break_occupies_minimum_duration():
    items = [BreakItem(break_id="B1", pitch_id="P", duration=1), fixture("F1")]

    placements = build_timeline("P", OPEN, items)

    assert placements[1].start_time == "09:05"


def test_slack_before_delays_start_but_not_previous_end():
    placements = build_timeline("P", OPEN, [fixture("F1", slack_before=10), fixture("F2")])

    assert placements[0].start_time == "09:10"
    assert placements[1].start_time == "09:35"


def test_builder_preserves_input_order():
    items = [fixture("F3"), fixture("F1"), fixture("F2")]

    placements = build_timeline("P", OPEN, items)

    assert [p.ref.item_id for p in placements] == ["F3", "F1", "F2"]
    starts = [p.start_minutes for p in placements]
    assert starts == sorted(starts)


def test_rebuilding_a_consistent_timeline_changes_nothing():
    items = [
        fixture("F1", "09:00"),
        BreakItem(break_id="B1", pitch_id="P", duration=10, start_time="09:25"),
        fixture("F2", "09:35"),
    ]

    placements = build_timeline("P", OPEN, items)

    assert changed_placements(items, placements) == []


def test_changed_placements_reports_only_moved_items():
    items = [fixture("F1", "09:00"), fixture("F2", "10:00")]

    changed = changed_placements(items, build_timeline("P", OPEN, items))

    assert [p.ref for p in changed] == [ItemRef(FIXTURE, "F2")]
    assert changed[0].start_time == "09:25"


def test_order_items_sorts_by_time_then_fixtures_first_then_id():
    items = [
        BreakItem(break_id="B1", pitch_id="P", duration=10, start_time="09:25"),
        fixture("F2", "09:25"),
        fixture("F1", "09:00"),
        fixture("F0", "09:25"),
        BreakItem(break_id="B0", pitch_id="P", duration=10, start_time="bogus"),
    ]

    ordered = order_items(items)

    assert [item.item_id for item in ordered] == ["F1", "F0", "F2", "B1", "B0"]


def test_order_items_treats_starts_before_open_as_next_day():
    items = [fixture("F3", "00:20"), fixture("F1", "23:00"), fixture("F2", "23:40")]

    ordered = order_items(items, open_minutes=to_minutes("23:00"))

    assert [item.item_id for item in ordered] == ["F1", "F2", "F3"]

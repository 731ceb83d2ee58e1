"""
Tests for group timing cascade: explicit previous/current diff and the
duration + start time updates that follow a group default change.
"""

from dataclasses import replace

from pitchplan.utils.cascade import (
    GroupTimingSnapshot,
    compute_cascade,
    diff_group_timing,
    snapshot_group_timing,
)
from pitchplan.utils.schedule_state import FixtureRecord, GroupTiming, PitchWindow, ScheduleState

GROUP_KEY = ("C", "G")


def fx(fixture_id, start_time, pitch_id="P1", group_id="G", duration=None):
    return FixtureRecord(
        fixture_id=fixture_id,
        competition_id="C",
        group_id=group_id,
        pitch_id=pitch_id,
        start_time=start_time,
        duration=duration,
    )


def make_state(fixtures, default_duration=20, default_slack=5):
    group = GroupTiming(competition_id="C", group_id="G", default_duration=default_duration, default_slack=default_slack)
    return ScheduleState(
        pitches={p: PitchWindow(pitch_id=p, open_time="09:00", close_time="18:00") for p in ("P1", "P2")},
        fixtures={f.fixture_id: f for f in fixtures},
        groups={group.key: group},
    )


def with_group_defaults(state, **changes):
    group = replace(state.groups[GROUP_KEY], **changes)
    return replace(state, groups={GROUP_KEY: group})


def cascade(before, after):
    changes = diff_group_timing(snapshot_group_timing(before), snapshot_group_timing(after))
    return compute_cascade(after, changes)


def test_longer_default_duration_pushes_later_fixtures():
    before = make_state([fx("F1", "09:00"), fx("F2", "09:25")])
    after = with_group_defaults(before, default_duration=30)

    updates = cascade(before, after)

    assert updates.fixture_changes("F1") == {"duration": 30}
    assert updates.fixture_changes("F2") == {"duration": 30, "start_time": "09:35"}


def test_overridden_duration_is_kept_but_still_reflowed():
    before = make_state([fx("F1", "09:00", duration=45), fx("F2", "09:50")])
    after = with_group_defaults(before, default_duration=30)

    updates = cascade(before, after)

    assert "duration" not in updates.fixture_changes("F1")
    assert updates.fixture_changes("F2") == {"duration": 30}


def test_duration_equal_to_previous_default_follows_the_group():
    before = make_state([fx("F1", "09:00", duration=20), fx("F2", "09:25")])
    after = with_group_defaults(before, default_duration=30)

    updates = cascade(before, after)

    assert updates.fixture_changes("F1") == {"duration": 30}


def test_slack_change_only_shifts_start_times():
    before = make_state([fx("F1", "09:00"), fx("F2", "09:25")])
    after = with_group_defaults(before, default_slack=10)

    updates = cascade(before, after)

    assert updates.fixture_ids == ["F2"]
    assert updates.fixture_changes("F2") == {"start_time": "09:30"}


def test_pitches_without_group_fixtures_are_untouched():
    before = make_state([fx("F1", "09:00"), fx("X1", "09:07", pitch_id="P2", group_id=None)])
    after = with_group_defaults(before, default_duration=30)

    updates = cascade(before, after)

    assert "X1" not in updates.fixture_ids


def test_unchanged_group_produces_no_updates():
    state = make_state([fx("F1", "09:00"), fx("F2", "09:25")])

    assert diff_group_timing(snapshot_group_timing(state), snapshot_group_timing(state)) == []
    assert compute_cascade(state, []).is_empty()


def test_first_observation_is_a_baseline():
    state = make_state([fx("F1", "09:00")])

    assert diff_group_timing(None, snapshot_group_timing(state)) == []


def test_new_groups_are_ignored():
    current = {GROUP_KEY: GroupTimingSnapshot(duration=30, slack=5)}

    assert diff_group_timing({}, current) == []


def test_diff_reports_previous_and_current():
    previous = {GROUP_KEY: GroupTimingSnapshot(duration=20, slack=5)}
    current = {GROUP_KEY: GroupTimingSnapshot(duration=30, slack=5)}

    (change,) = diff_group_timing(previous, current)

    assert change.key == GROUP_KEY
    assert change.duration_changed and not change.slack_changed

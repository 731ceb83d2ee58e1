"""
Tests for FixtureStore: loading ScheduleState and single-commit writes.
"""

import pytest
from sqlmodel import Session, select

from pitchplan.models import CompetitionGroup, Fixture, Pitch, PitchBreak, Tournament
from pitchplan.services.fixture_store import FixtureStore
from pitchplan.utils.errors import InvalidTimeError, InvalidWindowError, NotFoundError, ScheduleError
from pitchplan.utils.schedule_updates import FixtureUpdate, ScheduleUpdates


def placement(session: Session, fixture_id: str):
    fixture = session.get(Fixture, fixture_id)
    session.refresh(fixture)
    return fixture.pitch_id, fixture.start_time


def test_load_state_maps_the_tournament(session: Session, seeded):
    state = FixtureStore(session).load_state(seeded["tournament"])

    assert set(state.pitches) == {seeded["P1"], seeded["P2"]}
    assert state.pitches[seeded["P2"]].location_id == seeded["location"]
    assert len(state.fixtures) == 4
    assert len(state.teams) == 4

    group = state.groups[(seeded["competition"], seeded["group"])]
    assert group.pitch_ids == (seeded["P1"], seeded["P2"])
    assert group.default_duration == 20

    f4 = state.fixtures[seeded["F4"]]
    assert not f4.is_scheduled
    assert [item.item_id for item in state.pitch_items(seeded["P1"])] == [seeded["F1"], seeded["F2"]]


def test_load_state_for_unknown_tournament_raises(session: Session):
    with pytest.raises(NotFoundError):
        FixtureStore(session).load_state("missing")


def test_update_fixture_with_reflow_moves_the_rest_of_the_pitch(session: Session, seeded):
    store = FixtureStore(session)

    result = store.update_fixture(seeded["competition"], seeded["F1"], {"duration": 30}, should_reflow=True)

    assert set(result.changed_fixture_ids) == {seeded["F1"], seeded["F2"]}
    assert placement(session, seeded["F2"]) == (seeded["P1"], "09:35")


def test_update_fixture_without_reflow_touches_one_row(session: Session, seeded):
    result = FixtureStore(session).update_fixture(seeded["competition"], seeded["F1"], {"duration": 30})

    assert result.changed_fixture_ids == [seeded["F1"]]
    assert placement(session, seeded["F2"]) == (seeded["P1"], "09:25")


def test_malformed_start_time_leaves_fixture_unscheduled(session: Session, seeded):
    FixtureStore(session).update_fixture(seeded["competition"], seeded["F2"], {"start_time": "25:99"})

    assert placement(session, seeded["F2"]) == (None, None)


def test_unknown_field_is_rejected(session: Session, seeded):
    with pytest.raises(ScheduleError):
        FixtureStore(session).update_fixture(seeded["competition"], seeded["F1"], {"colour": "red"})


def test_fixture_must_belong_to_competition(session: Session, seeded):
    with pytest.raises(NotFoundError):
        FixtureStore(session).update_fixture("other-competition", seeded["F1"], {"duration": 30})


def test_fixture_pitch_must_exist_in_its_tournament(session: Session, seeded):
    other = Tournament(name="Other Cup")
    foreign = Pitch(tournament_id=other.id, name="Away Pitch")
    session.add_all([other, foreign])
    session.commit()
    store = FixtureStore(session)

    for pitch_id in (foreign.id, "no-such-pitch"):
        with pytest.raises(NotFoundError):
            store.update_fixture(
                seeded["competition"], seeded["F4"], {"pitch_id": pitch_id, "start_time": "09:00"}, should_reflow=True
            )
        assert placement(session, seeded["F4"]) == (None, None)


def test_apply_updates_is_all_or_nothing(session: Session, seeded):
    updates = ScheduleUpdates(
        fixture_updates=[
            FixtureUpdate(seeded["competition"], seeded["F1"], {"start_time": "11:00"}),
            FixtureUpdate(seeded["competition"], "missing", {"start_time": "12:00"}),
        ]
    )

    with pytest.raises(NotFoundError):
        FixtureStore(session).apply_updates(updates)

    assert placement(session, seeded["F1"]) == (seeded["P1"], "09:00")


def test_apply_updates_reports_only_real_changes(session: Session, seeded):
    updates = ScheduleUpdates(
        fixture_updates=[
            FixtureUpdate(seeded["competition"], seeded["F1"], {"start_time": "09:00"}),
            FixtureUpdate(seeded["competition"], seeded["F2"], {"start_time": "09:30"}),
        ]
    )

    result = FixtureStore(session).apply_updates(updates)

    assert result.changed_fixture_ids == [seeded["F2"]]


def test_add_pitch_break_normalizes_duration_and_label(session: Session, seeded):
    pitch_break, _ = FixtureStore(session).add_pitch_break(seeded["P1"], "12:00", duration=1, label="  ")

    assert pitch_break.duration == 5
    assert pitch_break.label == "Break"


def test_add_pitch_break_rejects_bad_input(session: Session, seeded):
    store = FixtureStore(session)

    with pytest.raises(InvalidTimeError):
        store.add_pitch_break(seeded["P1"], "noon")
    with pytest.raises(NotFoundError):
        store.add_pitch_break("missing", "12:00")


def test_add_pitch_break_with_reflow_pushes_following_fixtures(session: Session, seeded):
    store = FixtureStore(session)

    pitch_break, result = store.add_pitch_break(seeded["P1"], "09:25", duration=10, should_reflow=True)

    # Fixtures sort before breaks at the same minute, so F2 stays ahead of the break
    assert pitch_break.id in result.changed_break_ids
    assert placement(session, seeded["F2"]) == (seeded["P1"], "09:25")
    session.refresh(pitch_break)
    assert pitch_break.start_time == "09:50"


def test_update_pitch_rejects_inverted_window(session: Session, seeded):
    with pytest.raises(InvalidWindowError):
        FixtureStore(session).update_pitch(seeded["P1"], {"close_time": "08:00"})

    pitch = session.get(Pitch, seeded["P1"])
    session.refresh(pitch)
    assert pitch.close_time == "18:00"


def test_delete_pitch_unassigns_fixtures_and_cleans_up(session: Session, seeded):
    store = FixtureStore(session)
    store.add_pitch_break(seeded["P1"], "12:00")

    unassigned = store.delete_pitch(seeded["P1"])

    assert set(unassigned) == {seeded["F1"], seeded["F2"]}
    assert placement(session, seeded["F1"]) == (None, None)
    assert session.get(Pitch, seeded["P1"]) is None
    assert session.exec(select(PitchBreak).where(PitchBreak.pitch_id == seeded["P1"])).all() == []

    group = session.get(CompetitionGroup, seeded["group"])
    session.refresh(group)
    assert group.pitch_ids == [seeded["P2"]]
    assert group.primary_pitch_id == seeded["P2"]


def test_delete_location_unlinks_pitches(session: Session, seeded):
    unlinked = FixtureStore(session).delete_location(seeded["location"])

    assert unlinked == [seeded["P2"]]
    pitch = session.get(Pitch, seeded["P2"])
    session.refresh(pitch)
    assert pitch.location_id is None


def test_reset_schedule_unassigns_everything(session: Session, seeded):
    unassigned = FixtureStore(session).reset_schedule(seeded["tournament"])

    assert set(unassigned) == {seeded["F1"], seeded["F2"], seeded["F3"]}
    for name in ("F1", "F2", "F3", "F4"):
        assert placement(session, seeded[name]) == (None, None)


def test_update_group_with_cascade(session: Session, seeded):
    group, result = FixtureStore(session).update_group(
        seeded["competition"], seeded["group"], {"default_duration": 30}, should_cascade=True
    )

    assert group.default_duration == 30
    assert set(result.changed_fixture_ids) == {seeded["F1"], seeded["F2"], seeded["F3"], seeded["F4"]}
    assert placement(session, seeded["F2"]) == (seeded["P1"], "09:35")
    assert session.get(Fixture, seeded["F4"]).duration == 30


def test_update_group_without_cascade_leaves_fixtures(session: Session, seeded):
    _, result = FixtureStore(session).update_group(seeded["competition"], seeded["group"], {"default_duration": 30})

    assert result.changed_fixture_ids == []
    assert placement(session, seeded["F2"]) == (seeded["P1"], "09:25")

from pitchplan.services.auto_schedule import auto_assign_umpires, auto_schedule_matches
from pitchplan.utils.schedule_state import FixtureRecord, GroupTiming, PitchWindow, ScheduleState, TeamRecord


def pitches(close_time="18:00"):
    return {
        "P1": PitchWindow(pitch_id="P1", name="Pitch 1", open_time="09:00", close_time=close_time),
        "P2": PitchWindow(pitch_id="P2", name="Pitch 2", open_time="09:00", close_time=close_time),
    }


def fx(fixture_id, competition_id="C", pitch_id=None, start_time=None, home="TBD", away="TBD", **kwargs):
    return FixtureRecord(
        fixture_id=fixture_id,
        competition_id=competition_id,
        home_team_id=home,
        away_team_id=away,
        pitch_id=pitch_id,
        start_time=start_time,
        **kwargs,
    )


def test_fixtures_go_to_the_pitch_that_frees_up_first():
    state = ScheduleState(
        pitches=pitches(),
        fixtures={f.fixture_id: f for f in [fx("F0", pitch_id="P1", start_time="09:00"), fx("F1"), fx("F2"), fx("F3")]},
    )

    updates = auto_schedule_matches(state, "C")

    assert updates.fixture_changes("F1") == {"pitch_id": "P2", "start_time": "09:00"}
    assert updates.fixture_changes("F2") == {"pitch_id": "P1", "start_time": "09:25"}
    assert updates.fixture_changes("F3") == {"pitch_id": "P2", "start_time": "09:25"}
    assert "F0" not in updates.fixture_ids


def test_group_pitch_pool_is_respected():
    group = GroupTiming(competition_id="C", group_id="G", pitch_ids=("P2",))
    state = ScheduleState(
        pitches=pitches(),
        fixtures={f.fixture_id: f for f in [fx("F1", group_id="G"), fx("F2", group_id="G")]},
        groups={group.key: group},
    )

    updates = auto_schedule_matches(state, "C")

    assert updates.fixture_changes("F1") == {"pitch_id": "P2", "start_time": "09:00"}
    assert updates.fixture_changes("F2") == {"pitch_id": "P2", "start_time": "09:25"}


def test_fixtures_that_do_not_fit_stay_unscheduled():
    state = ScheduleState(pitches={"P1": pitches("09:30")["P1"]}, fixtures={"F1": fx("F1"), "F2": fx("F2")})

    updates = auto_schedule_matches(state, "C")

    assert updates.fixture_ids == ["F1"]


def test_other_competitions_are_left_alone():
    state = ScheduleState(pitches=pitches(), fixtures={"F1": fx("F1"), "X1": fx("X1", competition_id="OTHER")})

    assert auto_schedule_matches(state, "C").fixture_ids == ["F1"]


def test_umpires_are_free_teams_with_fewest_duties():
    teams = {t: TeamRecord(team_id=t, competition_id="C") for t in ("A", "B", "C", "D")}
    state = ScheduleState(
        pitches=pitches(),
        teams=teams,
        fixtures={
            "F1": fx("F1", pitch_id="P1", start_time="09:00", home="A", away="B"),
            "F2": fx("F2", pitch_id="P1", start_time="10:00", home="C", away="D"),
            "F3": fx("F3"),
        },
    )

    updates = auto_assign_umpires(state)

    assert updates.fixture_changes("F1") == {"umpire_team_id": "C"}
    assert updates.fixture_changes("F2") == {"umpire_team_id": "A"}
    assert "F3" not in updates.fixture_ids


def test_existing_umpires_are_kept_and_counted():
    teams = {t: TeamRecord(team_id=t, competition_id="C") for t in ("A", "B", "C", "D")}
    state = ScheduleState(
        pitches=pitches(),
        teams=teams,
        fixtures={
            "F1": fx("F1", pitch_id="P1", start_time="09:00", home="A", away="B", umpire_team_id="D"),
            "F2": fx("F2", pitch_id="P1", start_time="11:00", home="A", away="B"),
        },
    )

    updates = auto_assign_umpires(state)

    assert updates.fixture_ids == ["F2"]
    assert updates.fixture_changes("F2") == {"umpire_team_id": "C"}


def test_no_free_team_means_no_umpire():
    teams = {t: TeamRecord(team_id=t, competition_id="C") for t in ("A", "B", "C", "D")}
    state = ScheduleState(
        pitches=pitches(),
        teams=teams,
        fixtures={
            "F1": fx("F1", pitch_id="P1", start_time="09:00", home="A", away="B"),
            "F2": fx("F2", pitch_id="P2", start_time="09:00", home="C", away="D"),
        },
    )

    assert auto_assign_umpires(state).is_empty()

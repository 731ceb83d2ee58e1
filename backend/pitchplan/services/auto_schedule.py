"""
Bulk scheduling heuristics.

Both functions are deliberately simple and make no optimality claims. They
return ScheduleUpdates like the rest of the core; the editor writes them and
then reflows every pitch so the timelines are consistent again.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from pitchplan.utils.conflicts import intervals_overlap, is_placeholder_team
from pitchplan.utils.reorder import next_free_minutes
from pitchplan.utils.schedule_state import FixtureRecord, ScheduleState
from pitchplan.utils.schedule_updates import FixtureUpdate, ScheduleUpdates
from pitchplan.utils.time_math import to_clock

logger = logging.getLogger(__name__)


def _pitch_pool(state: ScheduleState, fixture: FixtureRecord) -> List[str]:
    """Group's preferred pitches that still exist, else every pitch."""
    group = state.group_for(fixture)
    if group and group.pitch_ids:
        pool = [p for p in group.pitch_ids if p in state.pitches]
        if pool:
            return pool
    return sorted(state.pitches, key=lambda p: (state.pitches[p].name, p))


def auto_schedule_matches(state: ScheduleState, competition_id: str) -> ScheduleUpdates:
    """
    Place a competition's unscheduled fixtures.

    Each fixture is appended to whichever pitch of its pool frees up first,
    provided it ends before that pitch closes. Fixtures that fit nowhere stay
    unscheduled.
    """
    pending = sorted(
        (f for f in state.fixtures.values() if f.competition_id == competition_id and not f.is_scheduled),
        key=lambda f: (f.group_id or "", f.fixture_id),
    )
    cursors: Dict[str, int] = {}
    updates = ScheduleUpdates()
    skipped = 0

    for fixture in pending:
        item = state.fixture_item(fixture)
        best: Optional[Tuple[int, str]] = None
        for pitch_id in _pitch_pool(state, fixture):
            if pitch_id not in cursors:
                cursors[pitch_id] = next_free_minutes(state, pitch_id)
            start = cursors[pitch_id]
            if start + item.slack_before + item.duration > state.pitch_window(pitch_id).close_minutes:
                continue
            if best is None or start < best[0]:
                best = (start, pitch_id)

        if best is None:
            skipped += 1
            continue

        start, pitch_id = best
        updates.fixture_updates.append(
            FixtureUpdate(
                fixture.competition_id,
                fixture.fixture_id,
                {"pitch_id": pitch_id, "start_time": to_clock(start + item.slack_before)},
            )
        )
        cursors[pitch_id] = start + item.block_minutes

    logger.info(
        "Auto-schedule competition %s: %d placed, %d left unscheduled",
        competition_id,
        len(updates.fixture_updates),
        skipped,
    )
    return updates


def auto_assign_umpires(state: ScheduleState, competition_id: Optional[str] = None) -> ScheduleUpdates:
    """
    Give every scheduled fixture without an umpire a team from its competition.

    The umpire is not playing in the fixture, is not playing or umpiring at
    an overlapping time, and has the fewest duties so far (ties by team id).
    """
    busy: Dict[str, List[Tuple[int, int]]] = defaultdict(list)
    duties: Dict[str, int] = defaultdict(int)

    fixtures = sorted(state.scheduled_fixtures(), key=lambda f: (f.start_minutes, f.fixture_id))
    for fixture in fixtures:
        interval = (fixture.start_minutes, fixture.start_minutes + state.effective_duration(fixture))
        for team_id in {fixture.home_team_id, fixture.away_team_id}:
            if not is_placeholder_team(team_id):
                busy[team_id].append(interval)
        if fixture.umpire_team_id:
            busy[fixture.umpire_team_id].append(interval)
            duties[fixture.umpire_team_id] += 1

    updates = ScheduleUpdates()
    for fixture in fixtures:
        if fixture.umpire_team_id:
            continue
        if competition_id is not None and fixture.competition_id != competition_id:
            continue

        interval = (fixture.start_minutes, fixture.start_minutes + state.effective_duration(fixture))
        candidates = [
            team.team_id
            for team in state.teams.values()
            if team.competition_id == fixture.competition_id
            and team.team_id not in (fixture.home_team_id, fixture.away_team_id)
            and not any(intervals_overlap(*interval, *other) for other in busy[team.team_id])
        ]
        if not candidates:
            continue

        umpire_id = min(candidates, key=lambda team_id: (duties[team_id], team_id))
        busy[umpire_id].append(interval)
        duties[umpire_id] += 1
        updates.fixture_updates.append(
            FixtureUpdate(fixture.competition_id, fixture.fixture_id, {"umpire_team_id": umpire_id})
        )

    logger.info("Auto-assign umpires: %d fixture(s) assigned", len(updates.fixture_updates))
    return updates

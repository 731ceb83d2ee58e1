"""
Cross-team conflict detection.

Two advisory checks over every scheduled fixture of a tournament:

- Double booking: a team's fixtures whose [start, start + duration) intervals
  intersect. Both fixtures are flagged.
- Insufficient rest: for consecutive fixtures of a team, the gap between the
  earlier fixture's end and the later one's start is below
  max(rest(earlier), rest(later)). Only the later (upcoming) fixture is
  flagged, with the team that needs more recovery.

Nothing here blocks an edit; the report only annotates the schedule.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

from pitchplan.utils.schedule_state import FixtureRecord, ScheduleState

PLACEHOLDER_TEAM_IDS = {"", "TBD"}


@dataclass(frozen=True)
class TeamConflict:
    """A team booked into two overlapping fixtures"""

    team_id: str
    fixture_id: str
    conflicting_fixture_id: str


@dataclass(frozen=True)
class RestViolation:
    """A team starting a fixture before its rest requirement has elapsed"""

    team_id: str
    fixture_id: str
    previous_fixture_id: str
    gap_minutes: int
    required_rest_minutes: int


@dataclass
class ConflictReport:
    conflicted_fixture_ids: Set[str] = field(default_factory=set)
    rest_warnings: Dict[str, Set[str]] = field(default_factory=dict)
    team_conflicts: List[TeamConflict] = field(default_factory=list)
    rest_violations: List[RestViolation] = field(default_factory=list)

    def is_clean(self) -> bool:
        return not self.conflicted_fixture_ids and not self.rest_warnings


def is_placeholder_team(team_id: Optional[str], known_team_ids: Optional[FrozenSet[str]] = None) -> bool:
    """TBD, blank, or (when the team list is known) anything not in it, e.g. "Winner QF1"."""
    if team_id is None or team_id.strip().upper() in PLACEHOLDER_TEAM_IDS:
        return True
    if known_team_ids is not None and team_id not in known_team_ids:
        return True
    return False


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Check if [a_start, a_end) overlaps [b_start, b_end)."""
    return a_start < b_end and b_start < a_end


def fixtures_by_team(state: ScheduleState) -> Dict[str, List[FixtureRecord]]:
    """Scheduled fixtures per real team, each list sorted by (start, fixture id)."""
    known = state.known_team_ids
    by_team: Dict[str, List[FixtureRecord]] = defaultdict(list)

    for fixture in state.scheduled_fixtures():
        for team_id in {fixture.home_team_id, fixture.away_team_id}:
            if is_placeholder_team(team_id, known):
                continue
            by_team[team_id].append(fixture)

    for fixtures in by_team.values():
        fixtures.sort(key=lambda f: (f.start_minutes, f.fixture_id))
    return dict(by_team)


def detect_conflicts(state: ScheduleState) -> ConflictReport:
    report = ConflictReport()
    rest_warnings: Dict[str, Set[str]] = defaultdict(set)

    for team_id, fixtures in sorted(fixtures_by_team(state).items()):
        intervals: List[Tuple[int, int]] = [
            (f.start_minutes, f.start_minutes + state.effective_duration(f)) for f in fixtures
        ]

        # Double booking: every pair
        for i in range(len(fixtures)):
            for j in range(i + 1, len(fixtures)):
                if intervals_overlap(*intervals[i], *intervals[j]):
                    report.conflicted_fixture_ids.add(fixtures[i].fixture_id)
                    report.conflicted_fixture_ids.add(fixtures[j].fixture_id)
                    report.team_conflicts.append(
                        TeamConflict(team_id, fixtures[i].fixture_id, fixtures[j].fixture_id)
                    )

        # Rest: consecutive pairs only, later fixture flagged
        for i in range(len(fixtures) - 1):
            earlier, later = fixtures[i], fixtures[i + 1]
            gap = intervals[i + 1][0] - intervals[i][1]
            required = max(state.effective_rest(earlier), state.effective_rest(later))
            if 0 <= gap < required:
                rest_warnings[later.fixture_id].add(team_id)
                report.rest_violations.append(
                    RestViolation(
                        team_id=team_id,
                        fixture_id=later.fixture_id,
                        previous_fixture_id=earlier.fixture_id,
                        gap_minutes=gap,
                        required_rest_minutes=required,
                    )
                )

    report.rest_warnings = dict(rest_warnings)
    return report

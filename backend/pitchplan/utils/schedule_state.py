"""
Pure, in-memory view of one tournament's schedule.

ScheduleState is what every scheduling computation reads: pitches, fixtures,
breaks and group timing defaults as plain frozen records. It resolves the
timing fallback chain (fixture override -> group default -> global default)
and recovers each pitch's current occupant order.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from pitchplan.config import (
    DEFAULT_BREAK_DURATION,
    DEFAULT_BREAK_LABEL,
    DEFAULT_MATCH_DURATION,
    DEFAULT_MATCH_SLACK,
    DEFAULT_PITCH_END,
    DEFAULT_PITCH_START,
    DEFAULT_TEAM_REST,
)
from pitchplan.utils.schedule_updates import ScheduleUpdates
from pitchplan.utils.time_math import to_minutes
from pitchplan.utils.timeline import BreakItem, FixtureItem, TimelineItem, order_items

GroupKey = Tuple[str, str]  # (competition_id, group_id)


@dataclass(frozen=True)
class PitchWindow:
    pitch_id: str
    name: str = ""
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    location_id: Optional[str] = None

    @property
    def effective_open_time(self) -> str:
        return self.open_time if to_minutes(self.open_time) is not None else DEFAULT_PITCH_START

    @property
    def effective_close_time(self) -> str:
        return self.close_time if to_minutes(self.close_time) is not None else DEFAULT_PITCH_END

    @property
    def open_minutes(self) -> int:
        return to_minutes(self.effective_open_time)

    @property
    def close_minutes(self) -> int:
        return to_minutes(self.effective_close_time)


@dataclass(frozen=True)
class GroupTiming:
    competition_id: str
    group_id: str
    default_duration: Optional[int] = None
    default_slack: Optional[int] = None
    default_rest: Optional[int] = None
    pitch_ids: Tuple[str, ...] = ()

    @property
    def key(self) -> GroupKey:
        return (self.competition_id, self.group_id)

    @property
    def effective_duration(self) -> int:
        return self.default_duration if self.default_duration is not None else DEFAULT_MATCH_DURATION

    @property
    def effective_slack(self) -> int:
        return self.default_slack if self.default_slack is not None else DEFAULT_MATCH_SLACK


@dataclass(frozen=True)
class TeamRecord:
    team_id: str
    competition_id: str
    group_id: Optional[str] = None


@dataclass(frozen=True)
class FixtureRecord:
    fixture_id: str
    competition_id: str
    home_team_id: str = "TBD"
    away_team_id: str = "TBD"
    group_id: Optional[str] = None
    stage: str = "Group"
    pitch_id: Optional[str] = None
    start_time: Optional[str] = None
    duration: Optional[int] = None
    slack: Optional[int] = None
    slack_before: Optional[int] = None
    rest: Optional[int] = None
    umpire_team_id: Optional[str] = None

    @property
    def start_minutes(self) -> Optional[int]:
        return to_minutes(self.start_time)

    @property
    def is_scheduled(self) -> bool:
        """Scheduled means both a pitch and a well-formed start time."""
        return bool(self.pitch_id) and self.start_minutes is not None


@dataclass(frozen=True)
class BreakRecord:
    break_id: str
    pitch_id: str
    start_time: Optional[str] = None
    duration: int = DEFAULT_BREAK_DURATION
    label: str = DEFAULT_BREAK_LABEL


@dataclass(frozen=True)
class ScheduleState:
    pitches: Mapping[str, PitchWindow] = field(default_factory=dict)
    fixtures: Mapping[str, FixtureRecord] = field(default_factory=dict)
    breaks: Mapping[str, BreakRecord] = field(default_factory=dict)
    groups: Mapping[GroupKey, GroupTiming] = field(default_factory=dict)
    teams: Mapping[str, TeamRecord] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Fallback chain
    # ------------------------------------------------------------------

    def group_for(self, fixture: FixtureRecord) -> Optional[GroupTiming]:
        if not fixture.group_id:
            return None
        return self.groups.get((fixture.competition_id, fixture.group_id))

    def effective_duration(self, fixture: FixtureRecord) -> int:
        if fixture.duration is not None:
            return fixture.duration
        group = self.group_for(fixture)
        if group and group.default_duration is not None:
            return group.default_duration
        return DEFAULT_MATCH_DURATION

    def effective_slack(self, fixture: FixtureRecord) -> int:
        if fixture.slack is not None:
            return fixture.slack
        group = self.group_for(fixture)
        if group and group.default_slack is not None:
            return group.default_slack
        return DEFAULT_MATCH_SLACK

    def effective_rest(self, fixture: FixtureRecord) -> int:
        if fixture.rest is not None:
            return fixture.rest
        group = self.group_for(fixture)
        if group and group.default_rest is not None:
            return group.default_rest
        return DEFAULT_TEAM_REST

    @staticmethod
    def effective_slack_before(fixture: FixtureRecord) -> int:
        return fixture.slack_before or 0

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def pitch_window(self, pitch_id: str) -> PitchWindow:
        """Window for a pitch; an unknown id gets the standard window."""
        return self.pitches.get(pitch_id) or PitchWindow(pitch_id=pitch_id)

    @property
    def known_team_ids(self) -> Optional[FrozenSet[str]]:
        if not self.teams:
            return None
        return frozenset(self.teams)

    def scheduled_fixtures(self) -> List[FixtureRecord]:
        return [f for f in self.fixtures.values() if f.is_scheduled]

    # ------------------------------------------------------------------
    # Timeline view
    # ------------------------------------------------------------------

    def fixture_item(self, fixture: FixtureRecord) -> FixtureItem:
        return FixtureItem(
            fixture_id=fixture.fixture_id,
            competition_id=fixture.competition_id,
            duration=self.effective_duration(fixture),
            slack=self.effective_slack(fixture),
            slack_before=self.effective_slack_before(fixture),
            pitch_id=fixture.pitch_id,
            start_time=fixture.start_time,
        )

    @staticmethod
    def break_item(pitch_break: BreakRecord) -> BreakItem:
        return BreakItem(
            break_id=pitch_break.break_id,
            pitch_id=pitch_break.pitch_id,
            duration=pitch_break.duration,
            start_time=pitch_break.start_time,
        )

    def pitch_items(self, pitch_id: str) -> List[TimelineItem]:
        """Current occupants of a pitch in timeline order."""
        items: List[TimelineItem] = [
            self.fixture_item(f) for f in self.fixtures.values() if f.is_scheduled and f.pitch_id == pitch_id
        ]
        items.extend(self.break_item(b) for b in self.breaks.values() if b.pitch_id == pitch_id)
        return order_items(items, self.pitch_window(pitch_id).open_minutes)

    def occupied_pitch_ids(self) -> List[str]:
        """Pitches that hold anything, known pitches first."""
        ids = list(self.pitches)
        for fixture in self.fixtures.values():
            if fixture.is_scheduled and fixture.pitch_id not in ids:
                ids.append(fixture.pitch_id)
        for pitch_break in self.breaks.values():
            if pitch_break.pitch_id not in ids:
                ids.append(pitch_break.pitch_id)
        return ids

    # ------------------------------------------------------------------
    # Copy-on-write helpers
    # ------------------------------------------------------------------

    def with_fixtures(self, updated: Mapping[str, FixtureRecord]) -> "ScheduleState":
        fixtures: Dict[str, FixtureRecord] = dict(self.fixtures)
        fixtures.update(updated)
        return replace(self, fixtures=fixtures)

    def with_breaks(self, updated: Mapping[str, BreakRecord]) -> "ScheduleState":
        breaks: Dict[str, BreakRecord] = dict(self.breaks)
        breaks.update(updated)
        return replace(self, breaks=breaks)

    def with_pitches(self, updated: Mapping[str, PitchWindow]) -> "ScheduleState":
        pitches: Dict[str, PitchWindow] = dict(self.pitches)
        pitches.update(updated)
        return replace(self, pitches=pitches)

    def with_updates(self, updates: ScheduleUpdates) -> "ScheduleState":
        """State as it would be after writing updates; unknown ids are ignored."""
        fixture_fields = {f.name for f in fields(FixtureRecord)}
        break_fields = {f.name for f in fields(BreakRecord)}

        fixtures: Dict[str, FixtureRecord] = {}
        for fu in updates.fixture_updates:
            current = fixtures.get(fu.fixture_id) or self.fixtures.get(fu.fixture_id)
            if current is None:
                continue
            fixtures[fu.fixture_id] = replace(
                current, **{k: v for k, v in fu.changes.items() if k in fixture_fields}
            )

        breaks: Dict[str, BreakRecord] = {}
        for bu in updates.break_updates:
            current_break = breaks.get(bu.break_id) or self.breaks.get(bu.break_id)
            if current_break is None:
                continue
            breaks[bu.break_id] = replace(
                current_break, **{k: v for k, v in bu.changes.items() if k in break_fields}
            )

        return self.with_fixtures(fixtures).with_breaks(breaks)

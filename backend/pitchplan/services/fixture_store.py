"""
Fixture Store - persistent side of the scheduler

Loads a tournament into a pure ScheduleState and writes ScheduleUpdates back.
Every public write is one transaction: either all rows change or none do.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from sqlmodel import Session, select

from pitchplan.config import DEFAULT_BREAK_DURATION, DEFAULT_BREAK_LABEL, MIN_BREAK_DURATION
from pitchplan.models import Competition, CompetitionGroup, Fixture, Location, Pitch, PitchBreak, Team, Tournament
from pitchplan.utils.cascade import compute_cascade, diff_group_timing, snapshot_group_timing
from pitchplan.utils.errors import InvalidTimeError, InvalidWindowError, NotFoundError, ScheduleError
from pitchplan.utils.reorder import reflow_pitches
from pitchplan.utils.schedule_state import (
    BreakRecord,
    FixtureRecord,
    GroupTiming,
    PitchWindow,
    ScheduleState,
    TeamRecord,
)
from pitchplan.utils.schedule_updates import FixtureUpdate, ScheduleUpdates
from pitchplan.utils.time_math import is_valid_clock

logger = logging.getLogger(__name__)

FIXTURE_FIELDS = {
    "home_team_id",
    "away_team_id",
    "group_id",
    "stage",
    "description",
    "match_code",
    "pitch_id",
    "start_time",
    "duration",
    "slack",
    "slack_before",
    "rest",
    "umpire_team_id",
}
BREAK_FIELDS = {"pitch_id", "start_time", "duration", "label"}
GROUP_FIELDS = {"name", "default_duration", "default_slack", "default_rest", "pitch_ids", "primary_pitch_id"}
PITCH_FIELDS = {"name", "open_time", "close_time", "location_id"}


@dataclass
class ApplyResult:
    """Ids of the rows a write actually touched"""

    changed_fixture_ids: List[str] = field(default_factory=list)
    changed_break_ids: List[str] = field(default_factory=list)

    def extend(self, other: "ApplyResult") -> None:
        for fixture_id in other.changed_fixture_ids:
            if fixture_id not in self.changed_fixture_ids:
                self.changed_fixture_ids.append(fixture_id)
        for break_id in other.changed_break_ids:
            if break_id not in self.changed_break_ids:
                self.changed_break_ids.append(break_id)

    def to_dict(self):
        return {
            "changed_fixture_ids": self.changed_fixture_ids,
            "changed_break_ids": self.changed_break_ids,
        }


def _check_fields(changes: Dict[str, Any], allowed: Set[str], what: str) -> None:
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ScheduleError(f"Unknown {what} field(s): {', '.join(unknown)}")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class FixtureStore:
    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_tournament(self, tournament_id: str) -> Tournament:
        tournament = self.session.get(Tournament, tournament_id)
        if not tournament:
            raise NotFoundError(f"Tournament {tournament_id} not found")
        return tournament

    def get_fixture(self, competition_id: str, fixture_id: str) -> Fixture:
        fixture = self.session.get(Fixture, fixture_id)
        if not fixture or fixture.competition_id != competition_id:
            raise NotFoundError(f"Fixture {fixture_id} not found in competition {competition_id}")
        return fixture

    def get_pitch(self, pitch_id: str) -> Pitch:
        pitch = self.session.get(Pitch, pitch_id)
        if not pitch:
            raise NotFoundError(f"Pitch {pitch_id} not found")
        return pitch

    def get_break(self, break_id: str) -> PitchBreak:
        pitch_break = self.session.get(PitchBreak, break_id)
        if not pitch_break:
            raise NotFoundError(f"Break {break_id} not found")
        return pitch_break

    def get_group(self, competition_id: str, group_id: str) -> CompetitionGroup:
        group = self.session.get(CompetitionGroup, group_id)
        if not group or group.competition_id != competition_id:
            raise NotFoundError(f"Group {group_id} not found in competition {competition_id}")
        return group

    def competition_ids(self, tournament_id: str) -> List[str]:
        return list(
            self.session.exec(select(Competition.id).where(Competition.tournament_id == tournament_id)).all()
        )

    def load_state(self, tournament_id: str) -> ScheduleState:
        """Snapshot one tournament as a pure ScheduleState."""
        self.get_tournament(tournament_id)

        pitches = self.session.exec(select(Pitch).where(Pitch.tournament_id == tournament_id)).all()
        pitch_ids = [p.id for p in pitches]
        competition_ids = self.competition_ids(tournament_id)

        breaks = (
            self.session.exec(select(PitchBreak).where(PitchBreak.pitch_id.in_(pitch_ids))).all()  # type: ignore[attr-defined]
            if pitch_ids
            else []
        )
        if competition_ids:
            groups = self.session.exec(
                select(CompetitionGroup).where(CompetitionGroup.competition_id.in_(competition_ids))  # type: ignore[attr-defined]
            ).all()
            teams = self.session.exec(
                select(Team).where(Team.competition_id.in_(competition_ids))  # type: ignore[attr-defined]
            ).all()
            fixtures = self.session.exec(
                select(Fixture).where(Fixture.competition_id.in_(competition_ids))  # type: ignore[attr-defined]
            ).all()
        else:
            groups, teams, fixtures = [], [], []

        return ScheduleState(
            pitches={
                p.id: PitchWindow(
                    pitch_id=p.id,
                    name=p.name,
                    open_time=p.open_time,
                    close_time=p.close_time,
                    location_id=p.location_id,
                )
                for p in pitches
            },
            fixtures={
                f.id: FixtureRecord(
                    fixture_id=f.id,
                    competition_id=f.competition_id,
                    home_team_id=f.home_team_id,
                    away_team_id=f.away_team_id,
                    group_id=f.group_id,
                    stage=f.stage,
                    pitch_id=f.pitch_id,
                    start_time=f.start_time,
                    duration=f.duration,
                    slack=f.slack,
                    slack_before=f.slack_before,
                    rest=f.rest,
                    umpire_team_id=f.umpire_team_id,
                )
                for f in fixtures
            },
            breaks={
                b.id: BreakRecord(
                    break_id=b.id,
                    pitch_id=b.pitch_id,
                    start_time=b.start_time,
                    duration=b.duration,
                    label=b.label,
                )
                for b in breaks
            },
            groups={
                (g.competition_id, g.id): GroupTiming(
                    competition_id=g.competition_id,
                    group_id=g.id,
                    default_duration=g.default_duration,
                    default_slack=g.default_slack,
                    default_rest=g.default_rest,
                    pitch_ids=tuple(g.configured_pitch_ids()),
                )
                for g in groups
            },
            teams={t.id: TeamRecord(team_id=t.id, competition_id=t.competition_id, group_id=t.group_id) for t in teams},
        )

    # ------------------------------------------------------------------
    # Staging (no commit)
    # ------------------------------------------------------------------

    def _stage_fixture(self, fixture: Fixture, changes: Dict[str, Any]) -> bool:
        """Copy changes onto a fixture row; True if any value differs."""
        _check_fields(changes, FIXTURE_FIELDS, "fixture")
        values = dict(changes)
        if "pitch_id" in values:
            values["pitch_id"] = _blank_to_none(values["pitch_id"])
        if "start_time" in values:
            values["start_time"] = _blank_to_none(values["start_time"])
            if values["start_time"] is not None and not is_valid_clock(values["start_time"]):
                logger.warning(
                    "Fixture %s: malformed start time %r, leaving it unscheduled", fixture.id, values["start_time"]
                )
                values["start_time"] = None
                values["pitch_id"] = None
        if values.get("pitch_id") is not None and values["pitch_id"] != fixture.pitch_id:
            tournament_id = self._tournament_of_competition(fixture.competition_id)
            self._require_pitch_in_tournament(values["pitch_id"], tournament_id)

        changed = False
        for key, value in values.items():
            if getattr(fixture, key) != value:
                setattr(fixture, key, value)
                changed = True
        if changed:
            fixture.updated_at = datetime.utcnow()
            self.session.add(fixture)
        return changed

    def _stage_break(self, pitch_break: PitchBreak, changes: Dict[str, Any]) -> bool:
        _check_fields(changes, BREAK_FIELDS, "break")
        values = dict(changes)
        if "start_time" in values and not is_valid_clock(values["start_time"]):
            raise InvalidTimeError(f"Break start time must be HH:MM, got {values['start_time']!r}")
        if "duration" in values:
            values["duration"] = max(MIN_BREAK_DURATION, int(values["duration"]))
        if "label" in values:
            values["label"] = (values["label"] or "").strip() or DEFAULT_BREAK_LABEL
        if "pitch_id" in values:
            self.get_pitch(values["pitch_id"])

        changed = False
        for key, value in values.items():
            if getattr(pitch_break, key) != value:
                setattr(pitch_break, key, value)
                changed = True
        if changed:
            self.session.add(pitch_break)
        return changed

    def _stage_updates(self, updates: ScheduleUpdates) -> ApplyResult:
        result = ApplyResult()
        for fu in updates.fixture_updates:
            fixture = self.get_fixture(fu.competition_id, fu.fixture_id)
            if self._stage_fixture(fixture, fu.changes) and fixture.id not in result.changed_fixture_ids:
                result.changed_fixture_ids.append(fixture.id)
        for bu in updates.break_updates:
            pitch_break = self.get_break(bu.break_id)
            if self._stage_break(pitch_break, bu.changes) and pitch_break.id not in result.changed_break_ids:
                result.changed_break_ids.append(pitch_break.id)
        return result

    def _stage_reflow(self, tournament_ids: Iterable[str], pitch_ids: Iterable[str]) -> ApplyResult:
        """Reflow pitches against the staged (flushed) state."""
        result = ApplyResult()
        pitch_ids = [p for p in dict.fromkeys(pitch_ids) if p]
        if not pitch_ids:
            return result
        self.session.flush()
        for tournament_id in dict.fromkeys(tournament_ids):
            state = self.load_state(tournament_id)
            in_tournament = [p for p in pitch_ids if p in state.pitches]
            result.extend(self._stage_updates(reflow_pitches(state, in_tournament)))
        return result

    def _commit(self, what: str) -> None:
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.exception("%s failed, transaction rolled back", what)
            raise

    def _run(self, what: str, stage):
        """Run a staging callable and commit it as one transaction."""
        try:
            result = stage()
        except Exception:
            self.session.rollback()
            raise
        self._commit(what)
        return result

    def _tournament_of_competition(self, competition_id: str) -> str:
        competition = self.session.get(Competition, competition_id)
        if not competition:
            raise NotFoundError(f"Competition {competition_id} not found")
        return competition.tournament_id

    def _require_pitch_in_tournament(self, pitch_id: str, tournament_id: str) -> Pitch:
        pitch = self.session.get(Pitch, pitch_id)
        if not pitch or pitch.tournament_id != tournament_id:
            raise NotFoundError(f"Pitch {pitch_id} not found in tournament {tournament_id}")
        return pitch

    # ------------------------------------------------------------------
    # Fixture writes
    # ------------------------------------------------------------------

    def update_fixture(
        self, competition_id: str, fixture_id: str, changes: Dict[str, Any], should_reflow: bool = False
    ) -> ApplyResult:
        """Write one fixture; with should_reflow, its old and new pitch are rebuilt too."""
        return self.batch_update_fixtures([FixtureUpdate(competition_id, fixture_id, changes)], should_reflow)

    def batch_update_fixtures(self, updates: List[FixtureUpdate], should_reflow: bool = False) -> ApplyResult:
        def stage() -> ApplyResult:
            touched_pitches: List[Optional[str]] = []
            tournament_ids: List[str] = []
            if should_reflow:
                for fu in updates:
                    touched_pitches.append(self.get_fixture(fu.competition_id, fu.fixture_id).pitch_id)
                    tournament_ids.append(self._tournament_of_competition(fu.competition_id))

            result = self._stage_updates(ScheduleUpdates(fixture_updates=list(updates)))

            if should_reflow:
                for fu in updates:
                    touched_pitches.append(self.session.get(Fixture, fu.fixture_id).pitch_id)
                result.extend(self._stage_reflow(tournament_ids, touched_pitches))
            return result

        result = self._run("Batch fixture update", stage)
        logger.info("Updated %d fixture(s)", len(result.changed_fixture_ids))
        return result

    def apply_updates(self, updates: ScheduleUpdates) -> ApplyResult:
        """Apply fixture and break updates from the scheduling core in one commit."""
        if updates.is_empty():
            return ApplyResult()
        result = self._run("Apply schedule updates", lambda: self._stage_updates(updates))
        logger.info(
            "Applied schedule updates: %d fixture(s), %d break(s) changed",
            len(result.changed_fixture_ids),
            len(result.changed_break_ids),
        )
        return result

    def reset_schedule(self, tournament_id: str) -> List[str]:
        """Unassign every fixture of a tournament."""
        self.get_tournament(tournament_id)

        def stage() -> List[str]:
            competition_ids = self.competition_ids(tournament_id)
            if not competition_ids:
                return []
            fixtures = self.session.exec(
                select(Fixture).where(Fixture.competition_id.in_(competition_ids))  # type: ignore[attr-defined]
            ).all()
            return [f.id for f in fixtures if self._stage_fixture(f, {"pitch_id": None, "start_time": None})]

        unassigned = self._run("Reset schedule", stage)
        logger.info("Reset schedule for tournament %s: %d fixture(s) unassigned", tournament_id, len(unassigned))
        return unassigned

    # ------------------------------------------------------------------
    # Breaks
    # ------------------------------------------------------------------

    def _pitch_tournament(self, pitch_id: str) -> str:
        return self.get_pitch(pitch_id).tournament_id

    def add_pitch_break(
        self,
        pitch_id: str,
        start_time: str,
        duration: int = DEFAULT_BREAK_DURATION,
        label: Optional[str] = None,
        should_reflow: bool = False,
    ) -> Tuple[PitchBreak, ApplyResult]:
        """Create a break; with should_reflow its pitch is rebuilt in the same commit."""
        tournament_id = self._pitch_tournament(pitch_id)
        if not is_valid_clock(start_time):
            raise InvalidTimeError(f"Break start time must be HH:MM, got {start_time!r}")

        pitch_break = PitchBreak(
            pitch_id=pitch_id,
            start_time=start_time,
            duration=max(MIN_BREAK_DURATION, duration),
            label=(label or "").strip() or DEFAULT_BREAK_LABEL,
        )

        def stage() -> ApplyResult:
            self.session.add(pitch_break)
            result = ApplyResult(changed_break_ids=[pitch_break.id])
            if should_reflow:
                result.extend(self._stage_reflow([tournament_id], [pitch_id]))
            return result

        result = self._run("Add pitch break", stage)
        self.session.refresh(pitch_break)
        logger.info("Added break %s on pitch %s at %s", pitch_break.id, pitch_id, pitch_break.start_time)
        return pitch_break, result

    def update_pitch_break(
        self, break_id: str, changes: Dict[str, Any], should_reflow: bool = False
    ) -> Tuple[PitchBreak, ApplyResult]:
        pitch_break = self.get_break(break_id)
        old_pitch_id = pitch_break.pitch_id
        tournament_id = self._pitch_tournament(old_pitch_id)

        def stage() -> ApplyResult:
            result = ApplyResult()
            if self._stage_break(pitch_break, changes):
                result.changed_break_ids.append(pitch_break.id)
            if should_reflow:
                result.extend(self._stage_reflow([tournament_id], [old_pitch_id, pitch_break.pitch_id]))
            return result

        result = self._run("Update pitch break", stage)
        self.session.refresh(pitch_break)
        return pitch_break, result

    def delete_pitch_break(self, break_id: str, should_reflow: bool = False) -> ApplyResult:
        pitch_break = self.get_break(break_id)
        pitch_id = pitch_break.pitch_id
        tournament_id = self._pitch_tournament(pitch_id)

        def stage() -> ApplyResult:
            self.session.delete(pitch_break)
            if should_reflow:
                return self._stage_reflow([tournament_id], [pitch_id])
            return ApplyResult()

        result = self._run("Delete pitch break", stage)
        logger.info("Deleted break %s", break_id)
        return result

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def update_group(
        self, competition_id: str, group_id: str, changes: Dict[str, Any], should_cascade: bool = False
    ) -> Tuple[CompetitionGroup, ApplyResult]:
        """
        Write group settings.

        With should_cascade, group timing is snapshotted before and after the
        write; fixtures following a changed default pick up the new duration
        and every affected pitch is rebuilt, all in the same commit.
        """
        group = self.get_group(competition_id, group_id)
        tournament_id = self._tournament_of_competition(competition_id)

        def stage() -> ApplyResult:
            previous = snapshot_group_timing(self.load_state(tournament_id)) if should_cascade else None
            self._stage_group(group, changes)
            if not should_cascade:
                return ApplyResult()
            self.session.flush()
            state = self.load_state(tournament_id)
            timing_changes = diff_group_timing(previous, snapshot_group_timing(state))
            return self._stage_updates(compute_cascade(state, timing_changes))

        result = self._run("Update group", stage)
        self.session.refresh(group)
        return group, result

    def _stage_group(self, group: CompetitionGroup, changes: Dict[str, Any]) -> None:
        _check_fields(changes, GROUP_FIELDS, "group")
        for key, value in changes.items():
            if key in ("default_duration", "default_slack", "default_rest") and value is not None and value < 0:
                raise ScheduleError(f"{key} must be >= 0")
            if key == "pitch_ids" and value is not None:
                value = list(value)
            setattr(group, key, value)
        self.session.add(group)

    # ------------------------------------------------------------------
    # Pitches and locations
    # ------------------------------------------------------------------

    def _stage_pitch(self, pitch: Pitch, changes: Dict[str, Any]) -> bool:
        _check_fields(changes, PITCH_FIELDS, "pitch")
        values = dict(changes)
        for key in ("open_time", "close_time"):
            if key in values:
                values[key] = _blank_to_none(values[key])
                if values[key] is not None and not is_valid_clock(values[key]):
                    raise InvalidTimeError(f"{key} must be HH:MM, got {values[key]!r}")

        open_time = values.get("open_time", pitch.open_time)
        close_time = values.get("close_time", pitch.close_time)
        window = PitchWindow(pitch_id=pitch.id, open_time=open_time, close_time=close_time)
        if window.open_minutes >= window.close_minutes:
            raise InvalidWindowError(
                f"Pitch {pitch.id}: open_time {window.effective_open_time} must be before "
                f"close_time {window.effective_close_time}"
            )
        if values.get("location_id"):
            if not self.session.get(Location, values["location_id"]):
                raise NotFoundError(f"Location {values['location_id']} not found")

        changed = False
        for key, value in values.items():
            if getattr(pitch, key) != value:
                setattr(pitch, key, value)
                changed = True
        if changed:
            self.session.add(pitch)
        return changed

    def create_pitch(self, tournament_id: str, name: str, **fields: Any) -> Pitch:
        self.get_tournament(tournament_id)
        pitch = Pitch(tournament_id=tournament_id, name=name)

        def stage() -> None:
            self._stage_pitch(pitch, fields)
            self.session.add(pitch)

        self._run("Create pitch", stage)
        self.session.refresh(pitch)
        return pitch

    def update_pitch(self, pitch_id: str, changes: Dict[str, Any], should_reflow: bool = False) -> ApplyResult:
        """Write pitch fields; with should_reflow the pitch is rebuilt in the same commit."""
        pitch = self.get_pitch(pitch_id)

        def stage() -> ApplyResult:
            self._stage_pitch(pitch, changes)
            if should_reflow:
                return self._stage_reflow([pitch.tournament_id], [pitch.id])
            return ApplyResult()

        return self._run("Update pitch", stage)

    def delete_pitch(self, pitch_id: str) -> List[str]:
        """
        Delete a pitch. Its fixtures become unscheduled, its breaks are
        deleted and it is dropped from every group's pitch pool.

        Returns:
            Ids of the fixtures that were unassigned
        """
        pitch = self.get_pitch(pitch_id)

        def stage() -> List[str]:
            fixtures = self.session.exec(select(Fixture).where(Fixture.pitch_id == pitch_id)).all()
            unassigned = [f.id for f in fixtures if self._stage_fixture(f, {"pitch_id": None, "start_time": None})]

            for pitch_break in self.session.exec(select(PitchBreak).where(PitchBreak.pitch_id == pitch_id)).all():
                self.session.delete(pitch_break)

            competition_ids = self.competition_ids(pitch.tournament_id)
            if competition_ids:
                groups = self.session.exec(
                    select(CompetitionGroup).where(CompetitionGroup.competition_id.in_(competition_ids))  # type: ignore[attr-defined]
                ).all()
                for group in groups:
                    pool = group.configured_pitch_ids()
                    if pitch_id not in pool:
                        continue
                    # First remaining pool pitch becomes primary
                    remaining = [p for p in pool if p != pitch_id]
                    self._stage_group(
                        group, {"pitch_ids": remaining, "primary_pitch_id": remaining[0] if remaining else None}
                    )

            self.session.flush()
            self.session.delete(pitch)
            return unassigned

        unassigned = self._run("Delete pitch", stage)
        logger.info("Deleted pitch %s: %d fixture(s) unassigned", pitch_id, len(unassigned))
        return unassigned

    def delete_location(self, location_id: str) -> List[str]:
        """Delete a location; its pitches stay but lose the link."""
        location = self.session.get(Location, location_id)
        if not location:
            raise NotFoundError(f"Location {location_id} not found")

        def stage() -> List[str]:
            pitches = self.session.exec(select(Pitch).where(Pitch.location_id == location_id)).all()
            for pitch in pitches:
                pitch.location_id = None
                self.session.add(pitch)
            self.session.flush()
            self.session.delete(location)
            return [p.id for p in pitches]

        unlinked = self._run("Delete location", stage)
        logger.info("Deleted location %s: %d pitch(es) unlinked", location_id, len(unlinked))
        return unlinked


"""
Schedule Editor Service

Every edit of a tournament's pitch timelines goes through here:

1. Load the tournament as a ScheduleState (immediately before computing)
2. Run the pure computation (reorder, cascade, bulk heuristics)
3. Write the resulting updates in one batch

Each operation returns the ids that actually changed so the caller can show
change feedback. Moves whose source or target vanished are dropped quietly.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlmodel import Session

from pitchplan.config import DEFAULT_BREAK_DURATION
from pitchplan.models import CompetitionGroup, PitchBreak
from pitchplan.services.auto_schedule import auto_assign_umpires, auto_schedule_matches
from pitchplan.services.fixture_store import ApplyResult, FixtureStore
from pitchplan.utils.conflicts import ConflictReport, detect_conflicts
from pitchplan.utils.draft_overlay import BreakDraft, PitchDraft, apply_drafts
from pitchplan.utils.errors import NotFoundError
from pitchplan.utils.reorder import (
    insert_item,
    next_free_minutes,
    reflow_all,
    reflow_pitches,
    swap_fixtures,
    unassign_fixture,
)
from pitchplan.utils.schedule_state import PitchWindow, ScheduleState
from pitchplan.utils.schedule_updates import ScheduleUpdates, merge_updates
from pitchplan.utils.time_math import to_clock, to_minutes
from pitchplan.utils.timeline import FIXTURE, ItemRef

logger = logging.getLogger(__name__)

TIMING_FIELDS = {"pitch_id", "start_time", "duration", "slack", "slack_before"}


class ScheduleEditor:
    def __init__(self, session: Session, tournament_id: str):
        self.store = FixtureStore(session)
        self.tournament_id = tournament_id

    def state(self) -> ScheduleState:
        return self.store.load_state(self.tournament_id)

    def _require_pitch(self, state: ScheduleState, pitch_id: str) -> PitchWindow:
        window = state.pitches.get(pitch_id)
        if window is None:
            raise NotFoundError(f"Pitch {pitch_id} not found in tournament {self.tournament_id}")
        return window

    def _require_break(self, state: ScheduleState, break_id: str) -> None:
        if break_id not in state.breaks:
            raise NotFoundError(f"Break {break_id} not found in tournament {self.tournament_id}")

    def _require_competition(self, competition_id: str) -> None:
        if competition_id not in self.store.competition_ids(self.tournament_id):
            raise NotFoundError(f"Competition {competition_id} not found in tournament {self.tournament_id}")

    def _write(self, what: str, updates: ScheduleUpdates) -> ApplyResult:
        if updates.is_empty():
            logger.debug("%s: nothing to write", what)
            return ApplyResult()
        return self.store.apply_updates(updates)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def conflicts(self) -> ConflictReport:
        return detect_conflicts(self.state())

    def timeline_view(
        self,
        pitch_drafts: Optional[Mapping[str, PitchDraft]] = None,
        break_drafts: Optional[Mapping[str, BreakDraft]] = None,
    ) -> Dict[str, Any]:
        """
        Per-pitch ordered timelines with conflict annotations.

        Pending drafts (break resize, pitch boundary drag) are laid over the
        committed state; they change how items are drawn but nothing moves.
        """
        state = apply_drafts(self.state(), pitch_drafts, break_drafts)
        report = detect_conflicts(state)

        pitches = []
        for pitch_id in sorted(state.pitches, key=lambda p: (state.pitches[p].name, p)):
            window = state.pitches[pitch_id]
            entries = []
            for item in state.pitch_items(pitch_id):
                start = to_minutes(item.start_time)
                if item.kind == FIXTURE:
                    fixture = state.fixtures[item.item_id]
                    entries.append(
                        {
                            "kind": item.kind,
                            "id": item.item_id,
                            "competition_id": fixture.competition_id,
                            "home_team_id": fixture.home_team_id,
                            "away_team_id": fixture.away_team_id,
                            "stage": fixture.stage,
                            "umpire_team_id": fixture.umpire_team_id,
                            "start_time": item.start_time,
                            "end_time": to_clock(start + item.duration),
                            "duration": item.duration,
                            "slack": item.slack,
                            "conflicted": item.item_id in report.conflicted_fixture_ids,
                            "rest_warning_team_ids": sorted(report.rest_warnings.get(item.item_id, ())),
                        }
                    )
                else:
                    pitch_break = state.breaks[item.item_id]
                    entries.append(
                        {
                            "kind": item.kind,
                            "id": item.item_id,
                            "label": pitch_break.label,
                            "start_time": item.start_time,
                            "end_time": to_clock(start + item.block_minutes) if start is not None else None,
                            "duration": item.block_minutes,
                        }
                    )
            pitches.append(
                {
                    "pitch_id": pitch_id,
                    "name": window.name,
                    "open_time": window.effective_open_time,
                    "close_time": window.effective_close_time,
                    "location_id": window.location_id,
                    "items": entries,
                }
            )

        unscheduled = sorted(f.fixture_id for f in state.fixtures.values() if not f.is_scheduled)
        return {"tournament_id": self.tournament_id, "pitches": pitches, "unscheduled_fixture_ids": unscheduled}

    # ------------------------------------------------------------------
    # Drag and drop
    # ------------------------------------------------------------------

    def swap(self, source_fixture_id: str, target_fixture_id: str) -> ApplyResult:
        return self._write("Swap", swap_fixtures(self.state(), source_fixture_id, target_fixture_id))

    def insert(self, kind: str, item_id: str, pitch_id: str, index: int) -> ApplyResult:
        return self._write("Insert", insert_item(self.state(), ItemRef(kind, item_id), pitch_id, index))

    def unassign(self, fixture_id: str) -> ApplyResult:
        return self._write("Unassign", unassign_fixture(self.state(), fixture_id))

    # ------------------------------------------------------------------
    # Breaks
    # ------------------------------------------------------------------

    def add_break(
        self, pitch_id: str, duration: int = DEFAULT_BREAK_DURATION, label: Optional[str] = None
    ) -> PitchBreak:
        """Append a break after the last occupant of a pitch."""
        state = self.state()
        self._require_pitch(state, pitch_id)
        start_time = to_clock(next_free_minutes(state, pitch_id))
        pitch_break, _ = self.store.add_pitch_break(pitch_id, start_time, duration, label, should_reflow=True)
        return pitch_break

    def delete_break(self, break_id: str) -> ApplyResult:
        """Delete a break and close the gap it leaves."""
        self._require_break(self.state(), break_id)
        return self.store.delete_pitch_break(break_id, should_reflow=True)

    def update_break(self, break_id: str, changes: Dict[str, Any]) -> ApplyResult:
        """Rename a break and/or commit the final duration of a resize drag.

        A duration change rebuilds the pitch in the same commit.
        """
        self._require_break(self.state(), break_id)
        _, result = self.store.update_pitch_break(break_id, changes, should_reflow="duration" in changes)
        return result

    # ------------------------------------------------------------------
    # Settings that move things
    # ------------------------------------------------------------------

    def commit_pitch_window(self, pitch_id: str, changes: Dict[str, Any]) -> ApplyResult:
        """Write pitch settings; a new open time rebuilds the pitch from it."""
        before = self._require_pitch(self.state(), pitch_id)
        after = PitchWindow(
            pitch_id=pitch_id,
            open_time=changes.get("open_time", before.open_time),
            close_time=changes.get("close_time", before.close_time),
        )
        open_changed = after.open_minutes != before.open_minutes
        result = self.store.update_pitch(pitch_id, changes, should_reflow=open_changed)
        if open_changed:
            logger.info(
                "Pitch %s opens at %s, %d item(s) moved",
                pitch_id,
                after.effective_open_time,
                len(result.changed_fixture_ids) + len(result.changed_break_ids),
            )
        return result

    def update_group(
        self, competition_id: str, group_id: str, changes: Dict[str, Any]
    ) -> Tuple[CompetitionGroup, ApplyResult]:
        """Write group settings and cascade any duration or slack change onto its fixtures."""
        self._require_competition(competition_id)
        return self.store.update_group(competition_id, group_id, changes, should_cascade=True)

    def update_fixture_details(self, competition_id: str, fixture_id: str, changes: Dict[str, Any]) -> ApplyResult:
        """Write fixture fields; timing changes rebuild the pitches involved."""
        self._require_competition(competition_id)
        should_reflow = bool(TIMING_FIELDS & set(changes))
        return self.store.update_fixture(competition_id, fixture_id, changes, should_reflow=should_reflow)

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def reflow(self, pitch_ids: Optional[List[str]] = None) -> ApplyResult:
        state = self.state()
        if pitch_ids is None:
            return self._write("Reflow", reflow_all(state))
        for pitch_id in pitch_ids:
            self._require_pitch(state, pitch_id)
        return self._write("Reflow", reflow_pitches(state, pitch_ids))

    def auto_schedule(self, competition_id: Optional[str] = None) -> ApplyResult:
        """Place unscheduled fixtures, then rebuild every pitch, in one write."""
        if competition_id is not None:
            self._require_competition(competition_id)
            competition_ids = [competition_id]
        else:
            competition_ids = sorted(self.store.competition_ids(self.tournament_id))

        state = self.state()
        steps = []
        for cid in competition_ids:
            placed = auto_schedule_matches(state, cid)
            state = state.with_updates(placed)
            steps.append(placed)
        steps.append(reflow_all(state))
        return self._write("Auto-schedule", merge_updates(steps))

    def auto_assign_umpires(self, competition_id: Optional[str] = None) -> ApplyResult:
        if competition_id is not None:
            self._require_competition(competition_id)
        return self._write("Auto-assign umpires", auto_assign_umpires(self.state(), competition_id))

    def delete_pitch(self, pitch_id: str) -> List[str]:
        self._require_pitch(self.state(), pitch_id)
        return self.store.delete_pitch(pitch_id)

    def reset(self) -> List[str]:
        return self.store.reset_schedule(self.tournament_id)

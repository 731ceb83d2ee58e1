"""
Cascade Reflow

When a group's default duration or slack changes, its fixtures (those not
carrying their own duration) pick up the new duration and every pitch that
holds one of the group's fixtures is rebuilt in its current order.

Change detection is an explicit previous-vs-current diff of group timing
snapshots, taken by the caller around each committed group-settings change.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional

from pitchplan.utils.reorder import reflow_lists
from pitchplan.utils.schedule_state import FixtureRecord, GroupKey, ScheduleState
from pitchplan.utils.schedule_updates import FixtureUpdate, ScheduleUpdates, merge_updates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupTimingSnapshot:
    duration: int
    slack: int


@dataclass(frozen=True)
class GroupTimingChange:
    competition_id: str
    group_id: str
    previous: GroupTimingSnapshot
    current: GroupTimingSnapshot

    @property
    def key(self) -> GroupKey:
        return (self.competition_id, self.group_id)

    @property
    def duration_changed(self) -> bool:
        return self.previous.duration != self.current.duration

    @property
    def slack_changed(self) -> bool:
        return self.previous.slack != self.current.slack


def snapshot_group_timing(state: ScheduleState) -> Dict[GroupKey, GroupTimingSnapshot]:
    return {
        key: GroupTimingSnapshot(duration=group.effective_duration, slack=group.effective_slack)
        for key, group in state.groups.items()
    }


def diff_group_timing(
    previous: Optional[Mapping[GroupKey, GroupTimingSnapshot]],
    current: Mapping[GroupKey, GroupTimingSnapshot],
) -> List[GroupTimingChange]:
    """
    Groups whose effective duration or slack differ between two snapshots.

    previous=None is the first observation: it only establishes a baseline.
    Groups that did not exist in previous are ignored.
    """
    if previous is None:
        return []

    changes = []
    for key, now in current.items():
        before = previous.get(key)
        if before is None or before == now:
            continue
        changes.append(GroupTimingChange(competition_id=key[0], group_id=key[1], previous=before, current=now))
    return changes


def _follows_group_duration(fixture: FixtureRecord, change: GroupTimingChange) -> bool:
    """A fixture follows its group unless it carries a duration of its own."""
    return fixture.duration is None or fixture.duration == change.previous.duration


def compute_cascade(state: ScheduleState, changes: List[GroupTimingChange]) -> ScheduleUpdates:
    """
    Updates needed after group timing changed.

    Args:
        state: State with the new group defaults already in place
        changes: Output of diff_group_timing()

    Returns:
        Duration updates plus any start-time shifts they cause, merged per item
    """
    if not changes:
        return ScheduleUpdates()

    changed_by_key = {change.key: change for change in changes}
    duration_updates = ScheduleUpdates()
    updated_fixtures: Dict[str, FixtureRecord] = {}
    affected_pitch_ids: List[str] = []

    for fixture in state.fixtures.values():
        if not fixture.group_id:
            continue
        change = changed_by_key.get((fixture.competition_id, fixture.group_id))
        if change is None:
            continue

        if change.duration_changed and _follows_group_duration(fixture, change):
            new_duration = change.current.duration
            if fixture.duration != new_duration:
                duration_updates.fixture_updates.append(
                    FixtureUpdate(fixture.competition_id, fixture.fixture_id, {"duration": new_duration})
                )
                updated_fixtures[fixture.fixture_id] = replace(fixture, duration=new_duration)

        if fixture.is_scheduled and fixture.pitch_id not in affected_pitch_ids:
            affected_pitch_ids.append(fixture.pitch_id)

    next_state = state.with_fixtures(updated_fixtures)
    reflow = reflow_lists(next_state, {pitch_id: next_state.pitch_items(pitch_id) for pitch_id in affected_pitch_ids})

    logger.info(
        "Group timing cascade: %d group(s) changed, %d duration update(s), %d pitch(es) reflowed",
        len(changes),
        len(duration_updates.fixture_updates),
        len(affected_pitch_ids),
    )
    return merge_updates([duration_updates, reflow])

"""
Concrete field updates produced by the scheduling core.

The core never writes anything itself; it returns ScheduleUpdates and the
data layer applies them in one batch.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence

from pitchplan.utils.timeline import BREAK, FIXTURE, Placement, TimelineItem, changed_placements


@dataclass
class FixtureUpdate:
    competition_id: str
    fixture_id: str
    changes: Dict[str, Any]


@dataclass
class BreakUpdate:
    break_id: str
    changes: Dict[str, Any]


@dataclass
class ScheduleUpdates:
    fixture_updates: List[FixtureUpdate] = field(default_factory=list)
    break_updates: List[BreakUpdate] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.fixture_updates and not self.break_updates

    @property
    def fixture_ids(self) -> List[str]:
        return [u.fixture_id for u in self.fixture_updates]

    @property
    def break_ids(self) -> List[str]:
        return [u.break_id for u in self.break_updates]

    def fixture_changes(self, fixture_id: str) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for update in self.fixture_updates:
            if update.fixture_id == fixture_id:
                merged.update(update.changes)
        return merged

    def break_changes(self, break_id: str) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for update in self.break_updates:
            if update.break_id == break_id:
                merged.update(update.changes)
        return merged

    def merge(self, other: "ScheduleUpdates") -> "ScheduleUpdates":
        """Combine two update sets; per field, values from other win."""
        return merge_updates([self, other])


def merge_updates(update_sets: Iterable[ScheduleUpdates]) -> ScheduleUpdates:
    fixtures: Dict[str, FixtureUpdate] = {}
    breaks: Dict[str, BreakUpdate] = {}

    for updates in update_sets:
        for fu in updates.fixture_updates:
            existing = fixtures.get(fu.fixture_id)
            if existing:
                existing.changes.update(fu.changes)
            else:
                fixtures[fu.fixture_id] = FixtureUpdate(fu.competition_id, fu.fixture_id, dict(fu.changes))
        for bu in updates.break_updates:
            existing_break = breaks.get(bu.break_id)
            if existing_break:
                existing_break.changes.update(bu.changes)
            else:
                breaks[bu.break_id] = BreakUpdate(bu.break_id, dict(bu.changes))

    return ScheduleUpdates(fixture_updates=list(fixtures.values()), break_updates=list(breaks.values()))


def updates_from_placements(items: Sequence[TimelineItem], placements: Sequence[Placement]) -> ScheduleUpdates:
    """Translate builder output into updates, dropping placements that change nothing."""
    by_ref = {item.ref: item for item in items}
    updates = ScheduleUpdates()

    for placement in changed_placements(items, placements):
        item = by_ref[placement.ref]
        changes: Dict[str, Any] = {}
        if item.pitch_id != placement.pitch_id:
            changes["pitch_id"] = placement.pitch_id
        if item.start_time != placement.start_time:
            changes["start_time"] = placement.start_time

        if placement.ref.kind == FIXTURE:
            updates.fixture_updates.append(FixtureUpdate(item.competition_id, item.fixture_id, changes))
        elif placement.ref.kind == BREAK:
            updates.break_updates.append(BreakUpdate(item.break_id, changes))

    return updates

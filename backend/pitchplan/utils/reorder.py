"""
Reorder Engine

Translates a user move (drag of one occupant onto another position) into a
new ordered list per affected pitch, then rebuilds those pitches with the
timeline builder. Three moves exist:

1. Swap: fixture dropped directly onto another fixture
2. Insert: occupant dropped into a gap (leading, between, or trailing)
3. Unassign: fixture dropped outside any pitch

Every function here is pure: it reads a ScheduleState and returns the
ScheduleUpdates needed. A missing source or target yields an empty result.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from pitchplan.utils.schedule_state import ScheduleState
from pitchplan.utils.schedule_updates import FixtureUpdate, ScheduleUpdates, merge_updates, updates_from_placements
from pitchplan.utils.timeline import BREAK, FIXTURE, ItemRef, TimelineItem, build_timeline

logger = logging.getLogger(__name__)


# ============================================================================
# List helpers (always return new lists)
# ============================================================================


def index_of(items: Sequence[TimelineItem], ref: ItemRef) -> int:
    for idx, item in enumerate(items):
        if item.ref == ref:
            return idx
    return -1


def without(items: Sequence[TimelineItem], ref: ItemRef) -> List[TimelineItem]:
    return [item for item in items if item.ref != ref]


def inserted(items: Sequence[TimelineItem], index: int, item: TimelineItem) -> List[TimelineItem]:
    return list(items[:index]) + [item] + list(items[index:])


def replaced(items: Sequence[TimelineItem], index: int, item: TimelineItem) -> List[TimelineItem]:
    result = list(items)
    result[index] = item
    return result


def swapped(items: Sequence[TimelineItem], i: int, j: int) -> List[TimelineItem]:
    result = list(items)
    result[i], result[j] = result[j], result[i]
    return result


# ============================================================================
# Reflow
# ============================================================================


def reflow_lists(state: ScheduleState, lists: Dict[str, Sequence[TimelineItem]]) -> ScheduleUpdates:
    """Rebuild each pitch from its given order and keep only real changes."""
    per_pitch = []
    for pitch_id, items in lists.items():
        window = state.pitch_window(pitch_id)
        placements = build_timeline(pitch_id, window.open_minutes, items)
        per_pitch.append(updates_from_placements(items, placements))
    return merge_updates(per_pitch)


def reflow_pitches(state: ScheduleState, pitch_ids: Sequence[str]) -> ScheduleUpdates:
    """Rebuild pitches in their current order (e.g. after an open-time change)."""
    return reflow_lists(state, {pitch_id: state.pitch_items(pitch_id) for pitch_id in dict.fromkeys(pitch_ids)})


def reflow_all(state: ScheduleState) -> ScheduleUpdates:
    return reflow_pitches(state, state.occupied_pitch_ids())


# ============================================================================
# Moves
# ============================================================================


def _find(state: ScheduleState, ref: ItemRef) -> Optional[Tuple[TimelineItem, Optional[str]]]:
    """Return (timeline item, current pitch or None) for a reference."""
    if ref.kind == FIXTURE:
        fixture = state.fixtures.get(ref.item_id)
        if fixture is None:
            return None
        return state.fixture_item(fixture), fixture.pitch_id if fixture.is_scheduled else None
    if ref.kind == BREAK:
        pitch_break = state.breaks.get(ref.item_id)
        if pitch_break is None:
            return None
        return state.break_item(pitch_break), pitch_break.pitch_id
    return None


def swap_fixtures(state: ScheduleState, source_id: str, target_id: str) -> ScheduleUpdates:
    """
    Drop fixture source_id onto fixture target_id.

    - Same pitch: the two exchange positions in that pitch's order
    - Different pitches: each takes the other's position; list lengths kept
    - Unscheduled source: source takes target's slot, target is unscheduled
    """
    if source_id == target_id:
        return ScheduleUpdates()

    source = state.fixtures.get(source_id)
    target = state.fixtures.get(target_id)
    if source is None or target is None:
        logger.debug("Swap dropped: fixture %s or %s no longer exists", source_id, target_id)
        return ScheduleUpdates()
    if not target.is_scheduled:
        return ScheduleUpdates()

    source_ref = ItemRef(FIXTURE, source_id)
    target_ref = ItemRef(FIXTURE, target_id)
    target_pitch_id = target.pitch_id
    target_list = state.pitch_items(target_pitch_id)
    target_idx = index_of(target_list, target_ref)
    if target_idx < 0:
        return ScheduleUpdates()

    if source.is_scheduled and source.pitch_id == target_pitch_id:
        source_idx = index_of(target_list, source_ref)
        if source_idx < 0:
            return ScheduleUpdates()
        return reflow_lists(state, {target_pitch_id: swapped(target_list, source_idx, target_idx)})

    if source.is_scheduled:
        source_list = state.pitch_items(source.pitch_id)
        source_idx = index_of(source_list, source_ref)
        if source_idx < 0:
            return ScheduleUpdates()
        return reflow_lists(
            state,
            {
                source.pitch_id: replaced(source_list, source_idx, target_list[target_idx]),
                target_pitch_id: replaced(target_list, target_idx, state.fixture_item(source)),
            },
        )

    updates = reflow_lists(state, {target_pitch_id: replaced(target_list, target_idx, state.fixture_item(source))})
    updates.fixture_updates.append(
        FixtureUpdate(target.competition_id, target.fixture_id, {"pitch_id": None, "start_time": None})
    )
    return updates


def insert_item(state: ScheduleState, ref: ItemRef, pitch_id: str, index: int) -> ScheduleUpdates:
    """
    Drop an occupant into the gap at position index of pitch_id.

    index counts gaps in the destination's current order: 0 is the leading
    gap, len(items) the trailing gap.
    """
    found = _find(state, ref)
    if found is None or pitch_id not in state.pitches:
        logger.debug("Insert dropped: %s or pitch %s no longer exists", ref, pitch_id)
        return ScheduleUpdates()

    item, source_pitch_id = found
    requested = max(0, index)

    if source_pitch_id and source_pitch_id == pitch_id:
        current = state.pitch_items(pitch_id)
        source_idx = index_of(current, ref)
        if source_idx < 0:
            return ScheduleUpdates()
        remaining = without(current, ref)
        # Removing the source shifts every later gap down by one
        insert_at = requested - 1 if source_idx < requested else requested
        insert_at = max(0, min(insert_at, len(remaining)))
        if insert_at == source_idx:
            return ScheduleUpdates()
        return reflow_lists(state, {pitch_id: inserted(remaining, insert_at, item)})

    target_list = state.pitch_items(pitch_id)
    insert_at = min(requested, len(target_list))
    lists: Dict[str, Sequence[TimelineItem]] = {}
    if source_pitch_id:
        lists[source_pitch_id] = without(state.pitch_items(source_pitch_id), ref)
    lists[pitch_id] = inserted(target_list, insert_at, item)
    return reflow_lists(state, lists)


def unassign_fixture(state: ScheduleState, fixture_id: str) -> ScheduleUpdates:
    """Clear a fixture's pitch and start time and close the gap it leaves."""
    fixture = state.fixtures.get(fixture_id)
    if fixture is None:
        logger.debug("Unassign dropped: fixture %s no longer exists", fixture_id)
        return ScheduleUpdates()

    changes = {}
    if fixture.pitch_id is not None:
        changes["pitch_id"] = None
    if fixture.start_time is not None:
        changes["start_time"] = None
    if not changes:
        return ScheduleUpdates()

    updates = ScheduleUpdates(fixture_updates=[FixtureUpdate(fixture.competition_id, fixture_id, changes)])
    if fixture.is_scheduled:
        remaining = without(state.pitch_items(fixture.pitch_id), ItemRef(FIXTURE, fixture_id))
        updates = updates.merge(reflow_lists(state, {fixture.pitch_id: remaining}))
    return updates


def next_free_minutes(state: ScheduleState, pitch_id: str) -> int:
    """Minute at which the last occupant of a pitch ends (open time if empty)."""
    window = state.pitch_window(pitch_id)
    items = state.pitch_items(pitch_id)
    if not items:
        return window.open_minutes
    return build_timeline(pitch_id, window.open_minutes, items)[-1].end_minutes

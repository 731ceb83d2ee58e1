"""
Pitch Timeline Builder

A pitch timeline is the ordered sequence of fixtures and breaks placed on
one pitch. Given that order, start times are fully determined by walking a
cursor from the pitch open time:

- Fixture: start = cursor + slack_before; cursor += slack_before + duration + slack
- Break:   start = cursor;                cursor += max(duration, MIN_BREAK_DURATION)

The builder never reorders. Ordering is decided by the caller (the reorder
functions, or order_items() when recovering the current order from stored
start times).
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from pitchplan.config import MIN_BREAK_DURATION
from pitchplan.utils.time_math import MINUTES_PER_DAY, to_clock, to_minutes

FIXTURE = "fixture"
BREAK = "break"


@dataclass(frozen=True)
class ItemRef:
    """Stable reference to a timeline occupant"""

    kind: str  # "fixture" | "break"
    item_id: str


@dataclass(frozen=True)
class FixtureItem:
    """A fixture as seen by the timeline (timing values already resolved)"""

    fixture_id: str
    competition_id: str
    duration: int
    slack: int = 0
    slack_before: int = 0
    pitch_id: Optional[str] = None
    start_time: Optional[str] = None
    kind: str = field(default=FIXTURE, init=False)

    @property
    def item_id(self) -> str:
        return self.fixture_id

    @property
    def ref(self) -> ItemRef:
        return ItemRef(FIXTURE, self.fixture_id)

    @property
    def block_minutes(self) -> int:
        return self.slack_before + self.duration + self.slack


@dataclass(frozen=True)
class BreakItem:
    """A pitch break as seen by the timeline"""

    break_id: str
    pitch_id: str
    duration: int
    start_time: Optional[str] = None
    kind: str = field(default=BREAK, init=False)

    @property
    def item_id(self) -> str:
        return self.break_id

    @property
    def ref(self) -> ItemRef:
        return ItemRef(BREAK, self.break_id)

    @property
    def block_minutes(self) -> int:
        return max(self.duration, MIN_BREAK_DURATION)


TimelineItem = Union[FixtureItem, BreakItem]


@dataclass(frozen=True)
class Placement:
    """Builder output: where and when one occupant sits"""

    ref: ItemRef
    pitch_id: str
    start_minutes: int
    block_minutes: int
    competition_id: Optional[str] = None

    @property
    def start_time(self) -> str:
        return to_clock(self.start_minutes)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.block_minutes


def build_timeline(pitch_id: str, open_minutes: int, ordered_items: Sequence[TimelineItem]) -> List[Placement]:
    """
    Assign start times to every item of one pitch, in the given order.

    Args:
        pitch_id: Pitch the items are placed on (cross-pitch moves land here)
        open_minutes: Pitch open time in minutes since midnight
        ordered_items: Occupants in their final order

    Returns:
        One Placement per input item, same order, non-decreasing start times
    """
    cursor = open_minutes
    placements: List[Placement] = []

    for item in ordered_items:
        if item.kind == FIXTURE:
            start = cursor + item.slack_before
            placements.append(
                Placement(
                    ref=item.ref,
                    pitch_id=pitch_id,
                    start_minutes=start,
                    block_minutes=item.duration + item.slack,
                    competition_id=item.competition_id,
                )
            )
        else:
            start = cursor
            placements.append(
                Placement(ref=item.ref, pitch_id=pitch_id, start_minutes=start, block_minutes=item.block_minutes)
            )
        cursor += item.block_minutes

    return placements


def _sort_key(item: TimelineItem, open_minutes: int):
    start = to_minutes(item.start_time)
    if start is None:
        # Unparseable start times sort after everything with a real time
        start_key = float("inf")
    elif start < open_minutes:
        # Clock wrapped past midnight
        start_key = start + MINUTES_PER_DAY
    else:
        start_key = start
    kind_rank = 0 if item.kind == FIXTURE else 1
    return (start_key, kind_rank, item.item_id)


def order_items(items: Sequence[TimelineItem], open_minutes: int = 0) -> List[TimelineItem]:
    """Order occupants by (start time, fixtures before breaks, id).

    Start times earlier than the pitch open time belong to the next day, so a
    timeline that ran past midnight keeps its order.
    """
    return sorted(items, key=lambda item: _sort_key(item, open_minutes))


def changed_placements(items: Sequence[TimelineItem], placements: Sequence[Placement]) -> List[Placement]:
    """Keep only placements whose pitch or start time differ from the item's current values."""
    changed = []
    for item, placement in zip(items, placements):
        if item.pitch_id != placement.pitch_id or item.start_time != placement.start_time:
            changed.append(placement)
    return changed

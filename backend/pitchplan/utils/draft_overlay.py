"""
Draft overlay for in-progress drag interactions.

Resizing a break or dragging a pitch boundary spans many pointer moves.
Each move only updates a draft; drafts are laid over committed state to get
the effective (preview) view, and nothing reflows until the drag commits.
"""

from dataclasses import dataclass, replace
from typing import Dict, Mapping, Optional

from pitchplan.config import DRAG_SNAP_MINUTES, MIN_BREAK_DURATION, MIN_PITCH_WINDOW_MINUTES
from pitchplan.utils.schedule_state import BreakRecord, PitchWindow, ScheduleState
from pitchplan.utils.time_math import MINUTES_PER_DAY, snap_minutes, to_clock

OPEN_BOUNDARY = "open_time"
CLOSE_BOUNDARY = "close_time"


@dataclass(frozen=True)
class PitchDraft:
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class BreakDraft:
    duration: Optional[int] = None
    label: Optional[str] = None


def apply_drafts(
    state: ScheduleState,
    pitch_drafts: Optional[Mapping[str, PitchDraft]] = None,
    break_drafts: Optional[Mapping[str, BreakDraft]] = None,
) -> ScheduleState:
    """Effective view: committed state with pending drafts merged on top."""
    pitches: Dict[str, PitchWindow] = {}
    for pitch_id, draft in (pitch_drafts or {}).items():
        window = state.pitches.get(pitch_id)
        if window is None:
            continue
        pitches[pitch_id] = replace(
            window,
            open_time=draft.open_time if draft.open_time is not None else window.open_time,
            close_time=draft.close_time if draft.close_time is not None else window.close_time,
            name=draft.name if draft.name is not None else window.name,
        )

    breaks: Dict[str, BreakRecord] = {}
    for break_id, draft in (break_drafts or {}).items():
        pitch_break = state.breaks.get(break_id)
        if pitch_break is None:
            continue
        breaks[break_id] = replace(
            pitch_break,
            duration=draft.duration if draft.duration is not None else pitch_break.duration,
            label=draft.label if draft.label is not None else pitch_break.label,
        )

    return state.with_pitches(pitches).with_breaks(breaks)


def resize_break(initial_duration: int, delta_minutes: float, snap: int = DRAG_SNAP_MINUTES) -> int:
    """Duration after dragging a break's lower edge by delta_minutes."""
    return max(MIN_BREAK_DURATION, initial_duration + snap_minutes(delta_minutes, snap))


def drag_pitch_boundary(
    window: PitchWindow, boundary: str, delta_minutes: float, snap: int = DRAG_SNAP_MINUTES
) -> PitchDraft:
    """
    Draft window after dragging one boundary by delta_minutes.

    The window never shrinks below MIN_PITCH_WINDOW_MINUTES and stays inside
    the day.
    """
    delta = snap_minutes(delta_minutes, snap)
    open_minutes, close_minutes = window.open_minutes, window.close_minutes

    if boundary == OPEN_BOUNDARY:
        open_minutes = max(0, min(open_minutes + delta, close_minutes - MIN_PITCH_WINDOW_MINUTES))
    elif boundary == CLOSE_BOUNDARY:
        close_minutes = min(MINUTES_PER_DAY - 1, max(close_minutes + delta, open_minutes + MIN_PITCH_WINDOW_MINUTES))
    else:
        raise ValueError(f"Unknown pitch boundary: {boundary}")

    return PitchDraft(open_time=to_clock(open_minutes), close_time=to_clock(close_minutes))


class BreakResizeDrag:
    """Pending break resize; the draft duration is cosmetic until committed."""

    def __init__(self, pitch_break: BreakRecord):
        self.break_id = pitch_break.break_id
        self.pitch_id = pitch_break.pitch_id
        self.initial_duration = pitch_break.duration
        self.draft_duration = pitch_break.duration

    def move(self, delta_minutes: float) -> int:
        self.draft_duration = resize_break(self.initial_duration, delta_minutes)
        return self.draft_duration

    @property
    def changed(self) -> bool:
        return self.draft_duration != self.initial_duration

    def as_draft(self) -> Dict[str, BreakDraft]:
        return {self.break_id: BreakDraft(duration=self.draft_duration)}


class PitchBoundaryDrag:
    """Pending pitch window drag on one boundary."""

    def __init__(self, window: PitchWindow, boundary: str):
        if boundary not in (OPEN_BOUNDARY, CLOSE_BOUNDARY):
            raise ValueError(f"Unknown pitch boundary: {boundary}")
        self.window = window
        self.boundary = boundary
        self.draft = PitchDraft(open_time=window.effective_open_time, close_time=window.effective_close_time)

    def move(self, delta_minutes: float) -> PitchDraft:
        self.draft = drag_pitch_boundary(self.window, self.boundary, delta_minutes)
        return self.draft

    @property
    def open_time_changed(self) -> bool:
        return self.draft.open_time != self.window.effective_open_time

    def as_draft(self) -> Dict[str, PitchDraft]:
        return {self.window.pitch_id: self.draft}

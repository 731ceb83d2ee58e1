from dataclasses import asdict
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from pitchplan.config import DEFAULT_BREAK_DURATION, MIN_BREAK_DURATION
from pitchplan.database import get_session
from pitchplan.services.schedule_editor import ScheduleEditor
from pitchplan.utils.draft_overlay import BreakDraft, PitchDraft
from pitchplan.utils.errors import NotFoundError, ScheduleError
from pitchplan.utils.time_math import is_valid_clock
from pitchplan.utils.timeline import BREAK, FIXTURE

router = APIRouter()


def http_error(e: ScheduleError) -> HTTPException:
    """Map a domain error to the HTTP error the routes raise"""
    status_code = 404 if isinstance(e, NotFoundError) else 400
    return HTTPException(status_code=status_code, detail=str(e))


# ============================================================================
# Request / Response Models
# ============================================================================


class ChangedIdsResponse(BaseModel):
    changed_fixture_ids: List[str]
    changed_break_ids: List[str]


class SwapRequest(BaseModel):
    source_fixture_id: str
    target_fixture_id: str


class InsertRequest(BaseModel):
    kind: str = FIXTURE
    item_id: str
    pitch_id: str
    index: int

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v):
        if v not in (FIXTURE, BREAK):
            raise ValueError(f"kind must be '{FIXTURE}' or '{BREAK}'")
        return v


class UnassignRequest(BaseModel):
    fixture_id: str


class ReflowRequest(BaseModel):
    pitch_ids: Optional[List[str]] = None


class CompetitionScopeRequest(BaseModel):
    competition_id: Optional[str] = None


class PitchDraftIn(BaseModel):
    open_time: Optional[str] = None
    close_time: Optional[str] = None

    @field_validator("open_time", "close_time")
    @classmethod
    def validate_clock(cls, v):
        if v is not None and not is_valid_clock(v):
            raise ValueError("time must be HH:MM")
        return v


class BreakDraftIn(BaseModel):
    duration: Optional[int] = None
    label: Optional[str] = None


class TimelinePreviewRequest(BaseModel):
    pitch_drafts: Dict[str, PitchDraftIn] = {}
    break_drafts: Dict[str, BreakDraftIn] = {}


class BreakCreate(BaseModel):
    duration: int = DEFAULT_BREAK_DURATION
    label: Optional[str] = None

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        if v < MIN_BREAK_DURATION:
            raise ValueError(f"duration must be >= {MIN_BREAK_DURATION}")
        return v


class BreakUpdate(BaseModel):
    duration: Optional[int] = None
    label: Optional[str] = None


class BreakResponse(BaseModel):
    id: str
    pitch_id: str
    start_time: str
    duration: int
    label: str

    class Config:
        from_attributes = True


class TeamConflictResponse(BaseModel):
    team_id: str
    fixture_id: str
    conflicting_fixture_id: str


class RestViolationResponse(BaseModel):
    team_id: str
    fixture_id: str
    previous_fixture_id: str
    gap_minutes: int
    required_rest_minutes: int


class ConflictReportResponse(BaseModel):
    conflicted_fixture_ids: List[str]
    rest_warnings: Dict[str, List[str]]
    team_conflicts: List[TeamConflictResponse]
    rest_violations: List[RestViolationResponse]


class ResetResponse(BaseModel):
    unassigned_fixture_ids: List[str]


# ============================================================================
# Views
# ============================================================================


@router.get("/tournaments/{tournament_id}/schedule/timeline")
def get_timeline(tournament_id: str, session: Session = Depends(get_session)):
    """Per-pitch ordered timelines with conflict and rest annotations"""
    try:
        return ScheduleEditor(session, tournament_id).timeline_view()
    except ScheduleError as e:
        raise http_error(e)


@router.post("/tournaments/{tournament_id}/schedule/timeline/preview")
def preview_timeline(tournament_id: str, request: TimelinePreviewRequest, session: Session = Depends(get_session)):
    """Timeline with pending drag drafts laid over it; nothing is written"""
    pitch_drafts = {pid: PitchDraft(**d.model_dump()) for pid, d in request.pitch_drafts.items()}
    break_drafts = {bid: BreakDraft(**d.model_dump()) for bid, d in request.break_drafts.items()}
    try:
        return ScheduleEditor(session, tournament_id).timeline_view(pitch_drafts, break_drafts)
    except ScheduleError as e:
        raise http_error(e)


@router.get("/tournaments/{tournament_id}/schedule/conflicts", response_model=ConflictReportResponse)
def get_conflicts(tournament_id: str, session: Session = Depends(get_session)):
    """Double bookings and rest warnings; advisory only"""
    try:
        report = ScheduleEditor(session, tournament_id).conflicts()
    except ScheduleError as e:
        raise http_error(e)

    return ConflictReportResponse(
        conflicted_fixture_ids=sorted(report.conflicted_fixture_ids),
        rest_warnings={fid: sorted(teams) for fid, teams in sorted(report.rest_warnings.items())},
        team_conflicts=[TeamConflictResponse(**asdict(c)) for c in report.team_conflicts],
        rest_violations=[RestViolationResponse(**asdict(v)) for v in report.rest_violations],
    )


# ============================================================================
# Drag and drop
# ============================================================================


@router.post("/tournaments/{tournament_id}/schedule/swap", response_model=ChangedIdsResponse)
def swap_fixtures(tournament_id: str, request: SwapRequest, session: Session = Depends(get_session)):
    try:
        result = ScheduleEditor(session, tournament_id).swap(request.source_fixture_id, request.target_fixture_id)
    except ScheduleError as e:
        raise http_error(e)
    return result.to_dict()


@router.post("/tournaments/{tournament_id}/schedule/insert", response_model=ChangedIdsResponse)
def insert_item(tournament_id: str, request: InsertRequest, session: Session = Depends(get_session)):
    try:
        result = ScheduleEditor(session, tournament_id).insert(
            request.kind, request.item_id, request.pitch_id, request.index
        )
    except ScheduleError as e:
        raise http_error(e)
    return result.to_dict()


@router.post("/tournaments/{tournament_id}/schedule/unassign", response_model=ChangedIdsResponse)
def unassign_fixture(tournament_id: str, request: UnassignRequest, session: Session = Depends(get_session)):
    try:
        result = ScheduleEditor(session, tournament_id).unassign(request.fixture_id)
    except ScheduleError as e:
        raise http_error(e)
    return result.to_dict()


# ============================================================================
# Bulk operations
# ============================================================================


@router.post("/tournaments/{tournament_id}/schedule/reflow", response_model=ChangedIdsResponse)
def reflow(tournament_id: str, request: ReflowRequest, session: Session = Depends(get_session)):
    """Rebuild pitch timelines in their current order (all pitches by default)"""
    try:
        return ScheduleEditor(session, tournament_id).reflow(request.pitch_ids).to_dict()
    except ScheduleError as e:
        raise http_error(e)


@router.post("/tournaments/{tournament_id}/schedule/auto-schedule", response_model=ChangedIdsResponse)
def auto_schedule(tournament_id: str, request: CompetitionScopeRequest, session: Session = Depends(get_session)):
    try:
        return ScheduleEditor(session, tournament_id).auto_schedule(request.competition_id).to_dict()
    except ScheduleError as e:
        raise http_error(e)


@router.post("/tournaments/{tournament_id}/schedule/auto-assign-umpires", response_model=ChangedIdsResponse)
def auto_assign_umpires(
    tournament_id: str, request: CompetitionScopeRequest, session: Session = Depends(get_session)
):
    try:
        return ScheduleEditor(session, tournament_id).auto_assign_umpires(request.competition_id).to_dict()
    except ScheduleError as e:
        raise http_error(e)


@router.post("/tournaments/{tournament_id}/schedule/reset", response_model=ResetResponse)
def reset_schedule(tournament_id: str, session: Session = Depends(get_session)):
    """Unassign every fixture of the tournament"""
    try:
        return ResetResponse(unassigned_fixture_ids=ScheduleEditor(session, tournament_id).reset())
    except ScheduleError as e:
        raise http_error(e)


# ============================================================================
# Breaks
# ============================================================================


@router.post(
    "/tournaments/{tournament_id}/pitches/{pitch_id}/breaks", response_model=BreakResponse, status_code=201
)
def add_break(
    tournament_id: str, pitch_id: str, break_data: BreakCreate, session: Session = Depends(get_session)
):
    """Append a break after the last item on the pitch"""
    try:
        return ScheduleEditor(session, tournament_id).add_break(pitch_id, break_data.duration, break_data.label)
    except ScheduleError as e:
        raise http_error(e)


@router.patch("/tournaments/{tournament_id}/breaks/{break_id}", response_model=ChangedIdsResponse)
def update_break(
    tournament_id: str, break_id: str, break_data: BreakUpdate, session: Session = Depends(get_session)
):
    """Commit a break resize (reflows its pitch) and/or rename it, in one transaction"""
    changes = break_data.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No changes supplied")
    try:
        return ScheduleEditor(session, tournament_id).update_break(break_id, changes).to_dict()
    except ScheduleError as e:
        raise http_error(e)


@router.delete("/tournaments/{tournament_id}/breaks/{break_id}", response_model=ChangedIdsResponse)
def delete_break(tournament_id: str, break_id: str, session: Session = Depends(get_session)):
    """Delete a break; later items on its pitch move up"""
    try:
        return ScheduleEditor(session, tournament_id).delete_break(break_id).to_dict()
    except ScheduleError as e:
        raise http_error(e)

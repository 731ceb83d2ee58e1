from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator, model_validator
from sqlmodel import Session, select

from pitchplan.database import get_session
from pitchplan.models.pitch import Pitch
from pitchplan.routes.schedule import ChangedIdsResponse, http_error
from pitchplan.services.fixture_store import FixtureStore
from pitchplan.services.schedule_editor import ScheduleEditor
from pitchplan.utils.errors import ScheduleError
from pitchplan.utils.time_math import is_valid_clock, to_minutes

router = APIRouter()


def _validate_clock(v):
    if v is not None and v != "" and not is_valid_clock(v):
        raise ValueError("time must be HH:MM")
    return v


class PitchCreate(BaseModel):
    name: str
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    location_id: Optional[str] = None

    @field_validator("open_time", "close_time")
    @classmethod
    def validate_clock(cls, v):
        return _validate_clock(v)

    @model_validator(mode="after")
    def validate_window(self):
        if self.open_time and self.close_time and to_minutes(self.close_time) <= to_minutes(self.open_time):
            raise ValueError("close_time must be later than open_time")
        return self


class PitchUpdate(BaseModel):
    name: Optional[str] = None
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    location_id: Optional[str] = None

    @field_validator("open_time", "close_time")
    @classmethod
    def validate_clock(cls, v):
        return _validate_clock(v)


class PitchResponse(BaseModel):
    id: str
    tournament_id: str
    name: str
    open_time: Optional[str]
    close_time: Optional[str]
    location_id: Optional[str]

    class Config:
        from_attributes = True


class PitchDeleteResponse(BaseModel):
    deleted_pitch_id: str
    unassigned_fixture_ids: List[str]


class LocationDeleteResponse(BaseModel):
    deleted_location_id: str
    unlinked_pitch_ids: List[str]


@router.get("/tournaments/{tournament_id}/pitches", response_model=List[PitchResponse])
def list_pitches(tournament_id: str, session: Session = Depends(get_session)):
    try:
        FixtureStore(session).get_tournament(tournament_id)
    except ScheduleError as e:
        raise http_error(e)
    return session.exec(select(Pitch).where(Pitch.tournament_id == tournament_id).order_by(Pitch.name)).all()


@router.post("/tournaments/{tournament_id}/pitches", response_model=PitchResponse, status_code=201)
def create_pitch(tournament_id: str, pitch_data: PitchCreate, session: Session = Depends(get_session)):
    fields = pitch_data.model_dump(exclude={"name"}, exclude_none=True)
    try:
        return FixtureStore(session).create_pitch(tournament_id, pitch_data.name, **fields)
    except ScheduleError as e:
        raise http_error(e)


@router.patch("/tournaments/{tournament_id}/pitches/{pitch_id}", response_model=ChangedIdsResponse)
def update_pitch(
    tournament_id: str, pitch_id: str, pitch_data: PitchUpdate, session: Session = Depends(get_session)
):
    """Update pitch settings; a new open time rebuilds the pitch timeline"""
    changes = pitch_data.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No changes supplied")
    try:
        return ScheduleEditor(session, tournament_id).commit_pitch_window(pitch_id, changes).to_dict()
    except ScheduleError as e:
        raise http_error(e)


@router.delete("/tournaments/{tournament_id}/pitches/{pitch_id}", response_model=PitchDeleteResponse)
def delete_pitch(tournament_id: str, pitch_id: str, session: Session = Depends(get_session)):
    """Delete a pitch; its fixtures become unscheduled and its breaks are removed"""
    try:
        unassigned = ScheduleEditor(session, tournament_id).delete_pitch(pitch_id)
    except ScheduleError as e:
        raise http_error(e)
    return PitchDeleteResponse(deleted_pitch_id=pitch_id, unassigned_fixture_ids=unassigned)


@router.delete("/locations/{location_id}", response_model=LocationDeleteResponse)
def delete_location(location_id: str, session: Session = Depends(get_session)):
    try:
        unlinked = FixtureStore(session).delete_location(location_id)
    except ScheduleError as e:
        raise http_error(e)
    return LocationDeleteResponse(deleted_location_id=location_id, unlinked_pitch_ids=unlinked)

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from pitchplan.database import get_session
from pitchplan.routes.schedule import ChangedIdsResponse, http_error
from pitchplan.services.schedule_editor import ScheduleEditor
from pitchplan.utils.errors import ScheduleError

router = APIRouter()


class GroupUpdate(BaseModel):
    name: Optional[str] = None
    default_duration: Optional[int] = None
    default_slack: Optional[int] = None
    default_rest: Optional[int] = None
    pitch_ids: Optional[List[str]] = None
    primary_pitch_id: Optional[str] = None

    @field_validator("default_duration", "default_slack", "default_rest")
    @classmethod
    def validate_minutes(cls, v):
        if v is not None and v < 0:
            raise ValueError("minutes must be >= 0")
        return v


class GroupResponse(BaseModel):
    id: str
    competition_id: str
    name: str
    default_duration: Optional[int]
    default_slack: Optional[int]
    default_rest: Optional[int]
    pitch_ids: Optional[List[str]]
    primary_pitch_id: Optional[str]
    changed_fixture_ids: List[str]
    changed_break_ids: List[str]


class FixtureUpdate(BaseModel):
    home_team_id: Optional[str] = None
    away_team_id: Optional[str] = None
    stage: Optional[str] = None
    description: Optional[str] = None
    match_code: Optional[str] = None
    pitch_id: Optional[str] = None
    start_time: Optional[str] = None
    duration: Optional[int] = None
    slack: Optional[int] = None
    slack_before: Optional[int] = None
    rest: Optional[int] = None
    umpire_team_id: Optional[str] = None

    @field_validator("duration", "slack", "slack_before", "rest")
    @classmethod
    def validate_minutes(cls, v):
        if v is not None and v < 0:
            raise ValueError("minutes must be >= 0")
        return v


@router.patch(
    "/tournaments/{tournament_id}/competitions/{competition_id}/groups/{group_id}",
    response_model=GroupResponse,
)
def update_group(
    tournament_id: str,
    competition_id: str,
    group_id: str,
    group_data: GroupUpdate,
    session: Session = Depends(get_session),
):
    """
    Update group settings.

    A change to the default duration or slack re-times the group's fixtures
    and rebuilds every pitch they sit on, in the same transaction.
    """
    changes = group_data.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No changes supplied")
    try:
        group, result = ScheduleEditor(session, tournament_id).update_group(competition_id, group_id, changes)
    except ScheduleError as e:
        raise http_error(e)

    return GroupResponse(
        id=group.id,
        competition_id=group.competition_id,
        name=group.name,
        default_duration=group.default_duration,
        default_slack=group.default_slack,
        default_rest=group.default_rest,
        pitch_ids=group.pitch_ids,
        primary_pitch_id=group.primary_pitch_id,
        **result.to_dict(),
    )


@router.patch(
    "/tournaments/{tournament_id}/competitions/{competition_id}/fixtures/{fixture_id}",
    response_model=ChangedIdsResponse,
)
def update_fixture(
    tournament_id: str,
    competition_id: str,
    fixture_id: str,
    fixture_data: FixtureUpdate,
    session: Session = Depends(get_session),
):
    """Update fixture details; timing changes rebuild the affected pitches"""
    changes = fixture_data.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No changes supplied")
    try:
        return ScheduleEditor(session, tournament_id).update_fixture_details(competition_id, fixture_id, changes).to_dict()
    except ScheduleError as e:
        raise http_error(e)

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pitchplan.models.competition_group import CompetitionGroup
    from pitchplan.models.fixture import Fixture
    from pitchplan.models.team import Team
    from pitchplan.models.tournament import Tournament


class Competition(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    tournament_id: str = Field(foreign_key="tournament.id", index=True)
    name: str
    code: Optional[str] = None
    color: Optional[str] = None  # Hex color for visual identification
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="competitions")
    groups: List["CompetitionGroup"] = Relationship(back_populates="competition")
    teams: List["Team"] = Relationship(back_populates="competition")
    fixtures: List["Fixture"] = Relationship(back_populates="competition")

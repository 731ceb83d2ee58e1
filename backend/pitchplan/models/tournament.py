from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pitchplan.models.competition import Competition
    from pitchplan.models.location import Location
    from pitchplan.models.pitch import Pitch


class Tournament(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    competitions: List["Competition"] = Relationship(back_populates="tournament")
    pitches: List["Pitch"] = Relationship(back_populates="tournament")
    locations: List["Location"] = Relationship(back_populates="tournament")

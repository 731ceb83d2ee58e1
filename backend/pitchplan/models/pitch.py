from datetime import datetime
from typing import TYPE_CHECKING, List, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pitchplan.models.location import Location
    from pitchplan.models.pitch_break import PitchBreak
    from pitchplan.models.tournament import Tournament


class Pitch(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    tournament_id: str = Field(foreign_key="tournament.id", index=True)
    name: str
    open_time: Optional[str] = Field(default=None)  # "HH:MM"; None -> standard window
    close_time: Optional[str] = Field(default=None)  # "HH:MM"
    location_id: Optional[str] = Field(default=None, foreign_key="location.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="pitches")
    location: Optional["Location"] = Relationship(back_populates="pitches")
    breaks: List["PitchBreak"] = Relationship(back_populates="pitch")

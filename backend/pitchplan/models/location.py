from typing import TYPE_CHECKING, List, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pitchplan.models.pitch import Pitch
    from pitchplan.models.tournament import Tournament


class Location(SQLModel, table=True):
    """A venue; pitches may link to one. Managed outside the scheduler."""

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    tournament_id: str = Field(foreign_key="tournament.id", index=True)
    name: str
    address: Optional[str] = None

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="locations")
    pitches: List["Pitch"] = Relationship(back_populates="location")

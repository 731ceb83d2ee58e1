from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pitchplan.models.competition import Competition


class Team(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    competition_id: str = Field(foreign_key="competition.id", index=True)
    name: str
    group_id: Optional[str] = Field(default=None, foreign_key="competitiongroup.id")
    initials: Optional[str] = None

    # Relationship
    competition: "Competition" = Relationship(back_populates="teams")

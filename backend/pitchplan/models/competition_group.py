from typing import TYPE_CHECKING, List, Optional
from uuid import uuid4

from sqlalchemy import JSON
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pitchplan.models.competition import Competition


class CompetitionGroup(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    competition_id: str = Field(foreign_key="competition.id", index=True)
    name: str

    # Timing defaults (None -> global default)
    default_duration: Optional[int] = Field(default=None)  # minutes
    default_slack: Optional[int] = Field(default=None)  # minutes after each match
    default_rest: Optional[int] = Field(default=None)  # minimum team rest

    # Preferred pitch pool for auto-scheduling
    pitch_ids: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    primary_pitch_id: Optional[str] = Field(default=None)

    # Relationship
    competition: "Competition" = Relationship(back_populates="groups")

    def configured_pitch_ids(self) -> List[str]:
        """pitch_ids if any, else primary_pitch_id; blanks and duplicates dropped."""
        configured = [p for p in (self.pitch_ids or []) if isinstance(p, str) and p.strip()]
        if not configured and self.primary_pitch_id and self.primary_pitch_id.strip():
            configured = [self.primary_pitch_id]
        return list(dict.fromkeys(configured))

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from pitchplan.models.competition import Competition


class Fixture(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    competition_id: str = Field(foreign_key="competition.id", index=True)

    # Team ids, or a placeholder such as "TBD" / "Winner QF1" (no FK on purpose)
    home_team_id: str = Field(default="TBD")
    away_team_id: str = Field(default="TBD")

    group_id: Optional[str] = Field(default=None, foreign_key="competitiongroup.id")
    stage: str = Field(default="Group")  # "Group" | "Quarter-Final" | "Final" | ...
    description: Optional[str] = Field(default=None)  # e.g. "1st vs 2nd"
    match_code: Optional[str] = Field(default=None)  # stable knockout id, e.g. "QF1"

    # Placement (both None = unscheduled)
    pitch_id: Optional[str] = Field(default=None, foreign_key="pitch.id", index=True)
    start_time: Optional[str] = Field(default=None)  # "HH:MM"

    # Timing overrides (None -> group default -> global default)
    duration: Optional[int] = Field(default=None)
    slack: Optional[int] = Field(default=None)
    slack_before: Optional[int] = Field(default=None)
    rest: Optional[int] = Field(default=None)

    umpire_team_id: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationship
    competition: "Competition" = Relationship(back_populates="fixtures")

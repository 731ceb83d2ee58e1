from typing import TYPE_CHECKING
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

from pitchplan.config import DEFAULT_BREAK_DURATION, DEFAULT_BREAK_LABEL

if TYPE_CHECKING:
    from pitchplan.models.pitch import Pitch


class PitchBreak(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    pitch_id: str = Field(foreign_key="pitch.id", index=True)
    start_time: str  # "HH:MM"
    duration: int = Field(default=DEFAULT_BREAK_DURATION)  # floored at MIN_BREAK_DURATION on write
    label: str = Field(default=DEFAULT_BREAK_LABEL)

    # Relationship
    pitch: "Pitch" = Relationship(back_populates="breaks")

from pitchplan.models.competition import Competition
from pitchplan.models.competition_group import CompetitionGroup
from pitchplan.models.fixture import Fixture
from pitchplan.models.location import Location
from pitchplan.models.pitch import Pitch
from pitchplan.models.pitch_break import PitchBreak
from pitchplan.models.team import Team
from pitchplan.models.tournament import Tournament

__all__ = [
    "Tournament",
    "Location",
    "Pitch",
    "PitchBreak",
    "Competition",
    "CompetitionGroup",
    "Team",
    "Fixture",
]

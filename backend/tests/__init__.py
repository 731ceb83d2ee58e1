import os

# Keep the app's own engine off disk; tests use the StaticPool engine in conftest
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

# Force SQLModel table registration at test discovery time
from pitchplan.models.competition import Competition  # noqa: E402,F401
from pitchplan.models.competition_group import CompetitionGroup  # noqa: E402,F401
from pitchplan.models.fixture import Fixture  # noqa: E402,F401
from pitchplan.models.location import Location  # noqa: E402,F401
from pitchplan.models.pitch import Pitch  # noqa: E402,F401
from pitchplan.models.pitch_break import PitchBreak  # noqa: E402,F401
from pitchplan.models.team import Team  # noqa: E402,F401
from pitchplan.models.tournament import Tournament  # noqa: E402,F401

from pathlib import Path
from typing import Generator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from pitchplan.config import DATABASE_URL, SQL_ECHO

_is_sqlite = DATABASE_URL.startswith("sqlite")
_connect_args = {"check_same_thread": False} if _is_sqlite else {}

if _is_sqlite and ":memory:" not in DATABASE_URL:
    db_path = DATABASE_URL.replace("sqlite:///", "", 1)
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

engine: Engine = create_engine(
    DATABASE_URL,
    echo=SQL_ECHO,
    connect_args=_connect_args,
)


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def init_db() -> None:
    """Initialize database - create all tables"""
    # Import all models to ensure they're registered with SQLModel metadata
    from pitchplan.models.competition import Competition  # noqa: F401
    from pitchplan.models.competition_group import CompetitionGroup  # noqa: F401
    from pitchplan.models.fixture import Fixture  # noqa: F401
    from pitchplan.models.location import Location  # noqa: F401
    from pitchplan.models.pitch import Pitch  # noqa: F401
    from pitchplan.models.pitch_break import PitchBreak  # noqa: F401
    from pitchplan.models.team import Team  # noqa: F401
    from pitchplan.models.tournament import Tournament  # noqa: F401

    SQLModel.metadata.create_all(engine)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from pitchplan.database import get_session
from pitchplan.main import app

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a freshly created schema"""
    # Import all models to ensure they're registered BEFORE create_all
    from pitchplan.models.competition import Competition  # noqa: F401
    from pitchplan.models.competition_group import CompetitionGroup  # noqa: F401
    from pitchplan.models.fixture import Fixture  # noqa: F401
    from pitchplan.models.location import Location  # noqa: F401
    from pitchplan.models.pitch import Pitch  # noqa: F401
    from pitchplan.models.pitch_break import PitchBreak  # noqa: F401
    from pitchplan.models.team import Team  # noqa: F401
    from pitchplan.models.tournament import Tournament  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place for the
    entire duration so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="seeded")
def seeded_fixture(session: Session):
    """
    One tournament with:
    - Pitch 1 (09:00-18:00) holding F1 (A v B, 09:00) and F2 (C v D, 09:25)
    - Pitch 2 (10:00-18:00, at a location) holding F3 (A v C, 10:00)
    - F4 (B v D) unscheduled
    - One competition with group G (20 min + 5 slack, pool Pitch 1 + Pitch 2)

    Returns a dict of ids keyed by short name.
    """
    from pitchplan.models import Competition, CompetitionGroup, Fixture, Location, Pitch, Team, Tournament

    tournament = Tournament(name="Summer Cup")
    session.add(tournament)
    location = Location(tournament_id=tournament.id, name="North Field")
    p1 = Pitch(tournament_id=tournament.id, name="Pitch 1", open_time="09:00", close_time="18:00")
    p2 = Pitch(
        tournament_id=tournament.id, name="Pitch 2", open_time="10:00", close_time="18:00", location_id=location.id
    )
    competition = Competition(tournament_id=tournament.id, name="U12", code="U12")
    group = CompetitionGroup(
        competition_id=competition.id,
        name="Group G",
        default_duration=20,
        default_slack=5,
        pitch_ids=[p1.id, p2.id],
        primary_pitch_id=p1.id,
    )
    session.add_all([location, p1, p2, competition, group])

    teams = {name: Team(competition_id=competition.id, name=f"Team {name}", group_id=group.id) for name in "ABCD"}
    session.add_all(teams.values())

    def fixture(home, away, pitch=None, start_time=None):
        return Fixture(
            competition_id=competition.id,
            group_id=group.id,
            home_team_id=teams[home].id,
            away_team_id=teams[away].id,
            pitch_id=pitch.id if pitch else None,
            start_time=start_time,
        )

    fixtures = {
        "F1": fixture("A", "B", p1, "09:00"),
        "F2": fixture("C", "D", p1, "09:25"),
        "F3": fixture("A", "C", p2, "10:00"),
        "F4": fixture("B", "D"),
    }
    session.add_all(fixtures.values())
    session.commit()

    ids = {
        "tournament": tournament.id,
        "location": location.id,
        "P1": p1.id,
        "P2": p2.id,
        "competition": competition.id,
        "group": group.id,
    }
    ids.update({name: team.id for name, team in teams.items()})
    ids.update({name: f.id for name, f in fixtures.items()})
    return ids

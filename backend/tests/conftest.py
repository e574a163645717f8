from typing import List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from competition_engine.database import get_session
from competition_engine.main import app
from competition_engine.models.club import Club
from competition_engine.models.competition import Competition
from competition_engine.models.participant import Participant
from competition_engine.services.store import SqlModelStore

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. Use sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables are created per test and dropped afterwards
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
    """Provide a test database session on a fresh schema"""
    # Import all models to ensure they're registered BEFORE create_all
    from competition_engine.models.club import Club  # noqa: F401
    from competition_engine.models.competition import Competition  # noqa: F401
    from competition_engine.models.match import Match  # noqa: F401
    from competition_engine.models.participant import Participant  # noqa: F401
    from competition_engine.models.user import User  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="store")
def store_fixture(session: Session) -> SqlModelStore:
    return SqlModelStore(session)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place for the
    entire duration, so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_competition(session: Session):
    """Factory: competition with `club_count` confirmed clubs seeded 1..N.

    Returns (competition, clubs) with clubs in seed order.
    """

    def _make(club_count: int, competition_type: str = "knockout", fmt: str = "single_elimination", **kwargs):
        competition = Competition(
            name=kwargs.pop("name", f"Cup {club_count}"),
            competition_type=competition_type,
            format=fmt,
            **kwargs,
        )
        session.add(competition)
        session.commit()
        session.refresh(competition)

        clubs: List[Club] = []
        for i in range(club_count):
            club = Club(name=f"Club {chr(ord('A') + i)}" if i < 26 else f"Club {i + 1}")
            session.add(club)
            clubs.append(club)
        session.commit()

        for seed, club in enumerate(clubs, start=1):
            session.refresh(club)
            session.add(Participant(competition_id=competition.id, club_id=club.id, seed_number=seed))
        session.commit()
        return competition, clubs

    return _make

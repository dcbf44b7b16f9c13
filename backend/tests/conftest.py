import random
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from matchplanner.database import get_session
from matchplanner.main import app
from matchplanner.utils.clock import get_now, get_rng

TEST_DATABASE_URL = "sqlite:///:memory:"

# Wall-clock instant seen by every request in API tests: the morning of the
# event day, before any tournament window opens.
FIXED_NOW = datetime(2026, 6, 1, 8, 0)

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. Use sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see session_fixture)
# 4. App dependencies overridden to use test_engine, FIXED_NOW and a seeded RNG
# 5. Tables created explicitly per test and dropped afterwards
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


def override_get_now():
    return FIXED_NOW


def override_get_rng():
    return random.Random(1234)


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    # Import all models to ensure they're registered BEFORE create_all
    from matchplanner.models.generated_schedule import GeneratedSchedule  # noqa: F401
    from matchplanner.models.match import Match  # noqa: F401
    from matchplanner.models.player import Player, PlayerGroup  # noqa: F401
    from matchplanner.models.tournament import Tournament  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden session, clock and RNG

    Overrides MUST be set BEFORE TestClient() and stay in place for the
    entire duration so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_now] = override_get_now
    app.dependency_overrides[get_rng] = override_get_rng

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="make_players")
def make_players_fixture(client: TestClient):
    """Create n players through the API and return their ids."""

    def _make(n: int, level: int = 5, prefix: str = "P"):
        ids = []
        for i in range(1, n + 1):
            response = client.post("/api/players", json={"name": f"{prefix}{i}", "level": level})
            assert response.status_code == 201
            ids.append(response.json()["id"])
        return ids

    return _make


@pytest.fixture(name="make_tournament")
def make_tournament_fixture(client: TestClient, make_players):
    """Create a tournament over freshly created players; keyword args override the defaults."""

    def _make(num_players: int = 8, **overrides):
        payload = {
            "name": "Thursday Doubles",
            "num_courts": 2,
            "players_per_team": 2,
            "match_duration_minutes": 10,
            "break_duration_minutes": 5,
            "start_time": "18:00",
            "end_time": "18:30",
            "balance_by_level": False,
            "selected_player_ids": make_players(num_players),
        }
        payload.update(overrides)
        response = client.post("/api/tournaments", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _make

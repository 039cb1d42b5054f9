# tests/conftest.py
import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Make sure models are imported so Base has all tables
from padel_league import models  # noqa: F401
from padel_league.db import Base, get_db, use_immediate_transactions
from padel_league.main import app
from padel_league.utils.idempotency import clear_replay_cache

# --- Enable test mode so idempotency decorator auto-fills keys ---
os.environ["TESTING"] = "1"

# In-memory DB, one per test
TEST_DATABASE_URL = "sqlite+pysqlite://"


@pytest.fixture()
def engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # <<< key: share the same memory DB
    )
    use_immediate_transactions(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def _fresh_replay_cache():
    clear_replay_cache()
    yield
    clear_replay_cache()


@pytest.fixture()
def client(db_session):
    # Override app DB dependency to use our shared in-memory session
    def _get_db_override():
        yield db_session

    app.dependency_overrides[get_db] = _get_db_override

    from starlette.testclient import TestClient

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def make_league(db_session):
    """
    Create a league with the given team names directly in the DB.
    Returns (league, {name: team}); every team gets a seeded Ranking row.
    """

    def _make(name="Test League", teams=("A", "B"), **league_kwargs):
        league = models.League(name=name, **league_kwargs)
        db_session.add(league)
        db_session.flush()
        by_name = {}
        for team_name in teams:
            team = models.Team(league_id=league.id, name=team_name)
            db_session.add(team)
            db_session.flush()
            db_session.add(models.Ranking(league_id=league.id, team_id=team.id))
            by_name[team_name] = team
        db_session.commit()
        return league, by_name

    return _make


@pytest.fixture()
def make_match(db_session):
    """Persist a completed match with the given set scores and return it."""

    def _make(league, team_a, team_b, a_score, b_score, status=models.MatchStatus.COMPLETED):
        match = models.Match(
            league_id=league.id,
            team_a_id=team_a.id,
            team_b_id=team_b.id,
            status=status,
            team_a_score=list(a_score),
            team_b_score=list(b_score),
        )
        db_session.add(match)
        db_session.commit()
        return match

    return _make

"""
Pytest configuration and shared fixtures.
This file ensures the project root is in sys.path for imports and points the
application at SQLite before any application module is imported.
"""

import os
import sys
from pathlib import Path

# Add project root to sys.path so we can import domain, services, etc.
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "testing")

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from domain.models import build_engine, init_database
from services.meal_plan_service import MealPlanService
from services.rate_limiter import RateLimiter
from services.side_effects import build_dispatcher
from test_fixtures import FixedClock, TEST_NOW


@pytest.fixture(scope="function")
def engine(tmp_path):
    """
    File-backed SQLite engine with the full schema, one per test.

    A file (rather than :memory:) gives every session its own connection, so
    rollback and commit visibility behave like a server database.
    """
    eng = build_engine(f"sqlite:///{tmp_path / 'mealforge.db'}")
    init_database(eng)
    yield eng
    eng.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, future=True)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Database session rolled back and closed after the test"""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(TEST_NOW)


@pytest.fixture
def side_effects(session_factory, clock):
    return build_dispatcher(session_factory, clock=clock)


@pytest.fixture
def service(db_session, side_effects, clock) -> MealPlanService:
    return MealPlanService(db_session, side_effects=side_effects, clock=clock)


@pytest.fixture
def client(session_factory, side_effects) -> Generator[TestClient, None, None]:
    """
    TestClient bound to the per-test database and a fresh rate limiter
    (5 requests per minute).

    Not used as a context manager, so the lifespan (database init against the
    configured URL, background sweeper) does not run.
    """
    from api.dependencies import get_db
    from main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    saved_state = (app.state.rate_limiter, app.state.side_effects)
    app.dependency_overrides[get_db] = override_get_db
    app.state.rate_limiter = RateLimiter(max_requests=5, window_ms=60_000)
    app.state.side_effects = side_effects
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.rate_limiter, app.state.side_effects = saved_state

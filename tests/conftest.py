"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all DoseCadence tests.
Fixtures include database sessions, test clients, sample data and records.
"""

import os
import sys
from datetime import date, timedelta
from typing import Generator, Dict, Any, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep the app lifespan off the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from database import Base, get_db
from models import Protocol, Injection, UserSettings
from tools import records
from tools.optimistic_buffer import optimistic_buffers
from app import app


# ==================== DATABASE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client with database override"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clear_optimistic_buffers():
    """Pending entries are process-wide; start every test empty"""
    optimistic_buffers.clear()
    yield
    optimistic_buffers.clear()


# ==================== SAMPLE DATA FIXTURES ====================

@pytest.fixture
def user_id() -> str:
    return "user-1"


@pytest.fixture
def sample_protocol_data() -> Dict[str, Any]:
    """Sample weekly protocol for creating test protocols"""
    return {
        "name": "Weekly 0.5 mL",
        "start_date": date(2024, 1, 1),
        "interval_days": 7,
        "dose_ml": 0.5,
        "concentration_mg_per_ml": 200.0,
        "notes": "Glute rotation",
        "theme_key": "blue",
    }


@pytest.fixture
def test_protocol(db_session: Session, user_id: str, sample_protocol_data: Dict) -> Protocol:
    """Create and return an active weekly protocol"""
    protocol = Protocol(user_id=user_id, is_active=True, **sample_protocol_data)
    db_session.add(protocol)
    db_session.commit()
    db_session.refresh(protocol)
    return protocol


@pytest.fixture
def second_protocol(db_session: Session, user_id: str) -> Protocol:
    """An inactive twice-weekly protocol"""
    protocol = Protocol(
        user_id=user_id,
        name="Twice weekly",
        start_date=date(2024, 1, 2),
        interval_days=3.5,
        dose_ml=0.25,
        concentration_mg_per_ml=200.0,
        is_active=False
    )
    db_session.add(protocol)
    db_session.commit()
    db_session.refresh(protocol)
    return protocol


@pytest.fixture
def test_injection(db_session: Session, user_id: str, test_protocol: Protocol) -> Injection:
    """A dose logged on the protocol's third scheduled day"""
    injection = Injection(
        user_id=user_id,
        protocol_id=test_protocol.id,
        date=date(2024, 1, 15),
        dose_ml=0.5,
        concentration_mg_per_ml=200.0,
        dose_mg=100.0
    )
    db_session.add(injection)
    db_session.commit()
    db_session.refresh(injection)
    return injection


@pytest.fixture
def weekly_history(db_session: Session, user_id: str, test_protocol: Protocol) -> List[Injection]:
    """Eight weekly logs from 2024-01-01 to 2024-02-19"""
    logs = []
    for week in range(8):
        injection = Injection(
            user_id=user_id,
            protocol_id=test_protocol.id,
            date=date(2024, 1, 1) + timedelta(days=7 * week),
            dose_ml=0.5,
            concentration_mg_per_ml=200.0,
            dose_mg=100.0
        )
        db_session.add(injection)
        logs.append(injection)
    db_session.commit()
    return logs


@pytest.fixture
def user_settings(db_session: Session, user_id: str) -> UserSettings:
    """Settings with focus mode off so every protocol shows"""
    row = UserSettings(
        user_id=user_id,
        timezone="UTC",
        hidden_protocol_ids=[],
        focus_active_only=False
    )
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


# ==================== RECORD FIXTURES ====================

@pytest.fixture
def weekly_record() -> records.Protocol:
    """Immutable weekly protocol starting 2024-01-01"""
    return records.Protocol(
        id="1",
        name="Weekly",
        start_date=date(2024, 1, 1),
        interval_days=7,
        dose_ml=0.5,
        concentration_mg_per_ml=200.0,
        is_active=True
    )


@pytest.fixture
def make_injection():
    """Factory for immutable injection records"""
    counter = {"next": 1}

    def _make(day: date, protocol_id: str = "1", dose_mg: float = 100.0, **kwargs) -> records.Injection:
        entry_id = kwargs.pop("id", str(counter["next"]))
        counter["next"] += 1
        return records.Injection(
            id=entry_id,
            protocol_id=protocol_id,
            date=day,
            dose_ml=kwargs.pop("dose_ml", 0.5),
            concentration_mg_per_ml=kwargs.pop("concentration_mg_per_ml", 200.0),
            dose_mg=dose_mg,
            **kwargs
        )

    return _make


# ==================== PYTEST CONFIGURATION ====================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "api: mark test as an API test")

"""
Test fixtures for Vandra backend tests.
"""
import os

# Settings are read at import time; pin a test configuration first.
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("AI_PROVIDER", "none")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")
os.environ.setdefault("FALLBACK_ORIGIN_CODE", "SLC")

from datetime import datetime

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from vandra.database import Base, get_db
from vandra.main import app
from vandra.models import User, FlightAlert
from vandra.services.ai_service import AIService
from vandra.services.airports import seed_airports
from vandra.services.amadeus_client import get_amadeus_client
from vandra.services.auth import create_access_token, hash_password
from vandra.services.flight_search import Flight


# Create test database engine (SQLite in-memory)
TEST_DATABASE_URL = "sqlite:///:memory:"

test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign key constraints for SQLite
@event.listens_for(test_engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test, with reference airports seeded.
    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)

    session = TestSessionLocal()
    seed_airports(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def override_get_db(db_session):
    """
    Override the get_db dependency to use the test database session.
    """
    def _override_get_db():
        try:
            yield db_session
        finally:
            pass

    return _override_get_db


@pytest.fixture(scope="function")
async def client(override_get_db):
    """
    Create an async test client with the database dependency overridden.
    """
    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_ai_service():
    """Every test starts with no LLM backend configured."""
    AIService.set_backend(None)
    yield
    AIService.set_backend(None)


@pytest.fixture(autouse=True)
def reset_amadeus_client():
    """Each test gets a fresh shared provider client."""
    get_amadeus_client.cache_clear()
    yield
    get_amadeus_client.cache_clear()


@pytest.fixture
def user(db_session):
    user = User(email="traveler@example.com", name="Traveler", password_hash=hash_password("password123"))
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def make_alert(db_session, user):
    def _make_alert(**kwargs):
        values = {"user_id": user.id, "origin_code": "SLC", "status": "active"}
        values.update(kwargs)
        alert = FlightAlert(**values)
        db_session.add(alert)
        db_session.commit()
        db_session.refresh(alert)
        return alert

    return _make_alert


def make_flight(
    price: float,
    destination: str = "NRT",
    origin: str = "SLC",
    departure_date: datetime = datetime(2026, 3, 15, 10, 0),
    airline: str = "DL",
    flight_id: str = "1",
) -> Flight:
    return Flight(
        id=flight_id,
        price=price,
        currency="USD",
        origin=origin,
        destination=destination,
        departure_date=departure_date,
        airline=airline,
        airline_name="Delta Air Lines",
        stops=1,
        duration_minutes=720,
        booking_url=f"https://www.google.com/travel/flights/{origin}.{destination}.{departure_date.date()}",
    )

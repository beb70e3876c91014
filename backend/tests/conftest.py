"""Pytest configuration and fixtures."""

import uuid
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from restaurant_core.db.base import Base
from restaurant_core.db.session import configure_sqlite
# Import all models to ensure they're registered with Base.metadata
from restaurant_core.models import Location, Restaurant, Role, User
from restaurant_core.services.location_service import LocationStore

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


def weekly_hours(open_time: str = "09:00", close_time: str = "22:00") -> dict:
    """A complete operating-hours map: seven weekdays plus holidays."""
    days = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
    hours = {day: {"open": open_time, "close": close_time} for day in days}
    hours["holidays"] = {"closed": True}
    return hours


def location_payload(url_name: str, **overrides) -> dict:
    payload = {
        "name": f"Location {url_name}",
        "url_name": url_name,
        "operating_hours": weekly_hours(),
        "address_street": "Main Street",
        "address_city": "Springfield",
        "address_state": "IL",
    }
    payload.update(overrides)
    return payload


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def hours() -> dict:
    return weekly_hours()


@pytest.fixture
def restaurant(db_session: Session) -> Restaurant:
    """Create a test restaurant."""
    restaurant = Restaurant(name="Test Restaurant", url_name="test-restaurant")
    db_session.add(restaurant)
    db_session.commit()
    return restaurant


@pytest.fixture
def other_restaurant(db_session: Session) -> Restaurant:
    restaurant = Restaurant(name="Other Restaurant", url_name="other-restaurant")
    db_session.add(restaurant)
    db_session.commit()
    return restaurant


@pytest.fixture
def user(db_session: Session) -> User:
    """Create a test user."""
    user = User(email="staff@example.com", full_name="Test Staff")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def make_user(db_session: Session):
    """Factory for additional users."""
    def _make(full_name: str = "Another Staff") -> User:
        user = User(email=f"{uuid.uuid4().hex[:8]}@example.com", full_name=full_name)
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture
def location_store(db_session: Session) -> LocationStore:
    return LocationStore(db_session)


@pytest.fixture
def make_location(location_store: LocationStore, restaurant: Restaurant):
    """Factory creating locations through the store for ``restaurant``."""
    def _make(url_name: str, restaurant_id=None, **overrides) -> Location:
        return location_store.create(restaurant_id or restaurant.id, location_payload(url_name, **overrides))
    return _make


@pytest.fixture
def make_role(db_session: Session):
    """Factory for roles inserted directly into the catalog."""
    def _make(name: str = "waiter", scope: str = "location", level: int = 1, is_active: bool = True) -> Role:
        role = Role(
            name=name,
            display_name=name.replace("_", " ").title(),
            level=level,
            scope=scope,
            is_active=is_active,
        )
        db_session.add(role)
        db_session.commit()
        return role
    return _make


@pytest.fixture
def role(make_role) -> Role:
    return make_role("waiter")


@pytest.fixture
def location_data():
    """Builder for valid location payloads."""
    return location_payload


@pytest.fixture
def hours_for():
    """Builder for operating-hours maps with custom times."""
    return weekly_hours

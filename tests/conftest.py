"""
Pytest fixtures for testing
"""
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from homebudget.infrastructure.db.session import Base
from homebudget.infrastructure.db.models import User, Household, HouseholdMember, Category
from homebudget.auth import hash_password


def _enable_foreign_keys(engine):
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared by every session / thread of one test"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _enable_foreign_keys(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_db_engine(tmp_path):
    """File-backed SQLite engine: real separate connections for threaded reads"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'homebudget.db'}",
        connect_args={"check_same_thread": False},
    )
    _enable_foreign_keys(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def seed_household(session: Session, email: str = "owner@example.com") -> dict:
    """User + household + two active members, one inactive member, three categories"""
    user = User(email=email, password_hash=hash_password("password123"))
    session.add(user)
    session.flush()

    household = Household(user_id=user.id, name="Test household")
    session.add(household)
    session.flush()

    alice = HouseholdMember(household_id=household.id, full_name="Alice", is_active=True)
    bob = HouseholdMember(household_id=household.id, full_name="Bob", is_active=True)
    carol = HouseholdMember(household_id=household.id, full_name="Carol", is_active=False)
    food = Category(household_id=household.id, name="Food")
    transport = Category(household_id=household.id, name="Transport")
    fun = Category(household_id=household.id, name="Fun")
    session.add_all([alice, bob, carol, food, transport, fun])
    session.commit()

    return {
        "user": user,
        "household_id": household.id,
        "alice": alice.id,
        "bob": bob.id,
        "carol": carol.id,
        "food": food.id,
        "transport": transport.id,
        "fun": fun.id,
    }


@pytest.fixture
def household(db_session) -> dict:
    return seed_household(db_session)


@pytest.fixture
def other_household(db_session) -> dict:
    """A second tenant; its ids must never be usable from the first"""
    return seed_household(db_session, email="neighbour@example.com")


@pytest.fixture
def make_household():
    """seed_household for sessions not provided by db_session"""
    return seed_household

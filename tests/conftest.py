"""
Pytest configuration and shared fixtures for the financial planner tests.
"""

import os

# Settings require a secret key; set one before the package is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key-123")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from finplan.config import Settings, reset_global_settings
from finplan.database.base import Base
from finplan.models.calculations import calculate_emi
from finplan.models.records import Loan, RetirementScenario
from finplan.services.projection_service import RetirementProjectionService
from finplan.storage.memory import InMemoryRepository
from finplan.storage.sql import SqlAlchemyRepository

USER_ID = "user-1"


@pytest.fixture(autouse=True)
def clean_global_settings():
    """Make sure no test sees settings cached by another."""
    reset_global_settings()
    yield
    reset_global_settings()


@pytest.fixture
def settings():
    """Settings for an in-memory store with the standard projection defaults."""
    return Settings(
        _env_file=None,
        SECRET_KEY="test-secret-key-123",
        APP_ENV="testing",
        STORAGE_TYPE="memory",
        DB_URL="sqlite://",
    )


@pytest.fixture
def repository():
    """Create an empty in-memory repository."""
    return InMemoryRepository()


@pytest.fixture
def service(repository, settings):
    """Create a projection service over the in-memory repository."""
    return RetirementProjectionService(repository, settings)


@pytest.fixture
def make_scenario(repository):
    """Store a default scenario for USER_ID; keyword arguments override fields."""

    def _make(**overrides):
        fields = {
            "user_id": USER_ID,
            "name": "Baseline",
            "current_age": 30,
            "retirement_age": 60,
            "life_expectancy": 85,
            "inflation_rate": 0.0,
            "corpus_return_rate": 0.0,
            "sip_step_up_percent": 0.0,
            "withdrawal_rate": 8.0,
            "is_default": True,
        }
        fields.update(overrides)
        return repository.upsert(RetirementScenario(**fields))

    return _make


@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session_factory(db_engine):
    """Create a session factory bound to the test database."""
    return sessionmaker(bind=db_engine, expire_on_commit=False)


@pytest.fixture
def sql_repository(db_session_factory):
    """Create a SQL repository over the test database."""
    return SqlAlchemyRepository(db_session_factory)


@pytest.fixture
def home_loan():
    """A 20-year home loan whose EMI clears it exactly."""
    return Loan(
        id="loan-home",
        user_id=USER_ID,
        name="Home Loan",
        original_amount=5000000.0,
        outstanding_amount=5000000.0,
        interest_rate=8.5,
        emi=calculate_emi(5000000.0, 8.5, 240),
        tenure_months=240,
        remaining_months=240,
    )

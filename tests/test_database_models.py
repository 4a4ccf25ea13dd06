"""
Tests for SQLAlchemy database models.

This module tests the row models and the engine builder used by the SQL
record store.
"""

import pytest
from sqlalchemy import inspect
from sqlalchemy.orm import sessionmaker

from finplan.database.base import build_engine, create_tables, drop_tables
from finplan.database.models import InvestmentRow, PlannerRecordRow, ScenarioRow
from finplan.models.records import Investment, InvestmentType


class TestDatabaseModels:
    """Test suite for database models."""

    @pytest.fixture(scope="function")
    def db_engine(self):
        engine = build_engine("sqlite://")
        create_tables(engine)

        yield engine

        drop_tables(engine)
        engine.dispose()

    @pytest.fixture(scope="function")
    def db_session(self, db_engine):
        """Create a fresh database session for each test."""
        session = sessionmaker(bind=db_engine)()

        yield session

        session.close()

    def test_tables_are_created(self, db_engine):
        tables = set(inspect(db_engine).get_table_names())
        assert {"investments", "retirement_scenarios", "planner_records"} <= tables

    def test_investment_row_roundtrip(self, db_session):
        investment = Investment(
            id="inv-1",
            user_id="user-1",
            type=InvestmentType.PPF,
            current_value=250000,
            yearly_contribution=150000,
        )
        db_session.add(
            InvestmentRow(
                id=investment.id,
                user_id=investment.user_id,
                type=investment.type.value,
                payload=investment.model_dump(mode="json"),
            )
        )
        db_session.commit()

        row = db_session.get(InvestmentRow, "inv-1")

        assert row.created_at is not None
        assert Investment.model_validate(row.payload) == investment
        assert "inv-1" in repr(row)

    def test_planner_record_row(self, db_session):
        db_session.add(
            PlannerRecordRow(
                id="rec-1", user_id="user-1", record_type="GOAL", payload={"name": "Car"}
            )
        )
        db_session.add(
            ScenarioRow(id="sc-1", user_id="user-1", name="Plan", payload={})
        )
        db_session.commit()

        assert db_session.get(PlannerRecordRow, "rec-1").record_type == "GOAL"
        assert db_session.get(ScenarioRow, "sc-1").is_default is False


class TestBuildEngine:
    """Test engine construction per database URL."""

    def test_in_memory_sqlite_shares_one_connection(self):
        engine = build_engine("sqlite://")
        create_tables(engine)

        assert "investments" in inspect(engine).get_table_names()
        engine.dispose()

    def test_file_sqlite(self, tmp_path):
        engine = build_engine(f"sqlite:///{tmp_path / 'planner.db'}")
        create_tables(engine)

        assert (tmp_path / "planner.db").exists()
        engine.dispose()

"""
Tests for planner repositories.

The same behaviour is checked against the in-memory store and the SQL store
backed by an in-memory SQLite database.
"""

import logging
from datetime import date
from typing import Optional

import pytest
from pydantic import BaseModel

from finplan.config import Settings
from finplan.database.models import InvestmentRow, PlannerRecordRow, ScenarioRow
from finplan.exceptions import DataInconsistencyError
from finplan.models.records import (
    Expense,
    Goal,
    Income,
    Insurance,
    Investment,
    InvestmentType,
    Loan,
    RetirementScenario,
)
from finplan.storage import (
    InMemoryRepository,
    SqlAlchemyRepository,
    StorageError,
    UnsupportedRecordError,
    create_repository,
)

USER_ID = "user-1"


class Note(BaseModel):
    id: Optional[str] = None
    user_id: str
    text: str = ""


def make_scenario(**overrides) -> RetirementScenario:
    fields = {
        "user_id": USER_ID,
        "current_age": 35,
        "retirement_age": 60,
        "life_expectancy": 85,
    }
    fields.update(overrides)
    return RetirementScenario(**fields)


@pytest.fixture(params=["memory", "sql"])
def store(request, sql_repository):
    """Run each test against both repository implementations."""
    if request.param == "memory":
        return InMemoryRepository()
    return sql_repository


class TestRepositoryBehaviour:
    """Behaviour shared by every repository."""

    def test_upsert_assigns_id(self, store):
        stored = store.upsert(
            Investment(user_id=USER_ID, type=InvestmentType.FD, current_value=1000)
        )
        assert stored.id is not None

    def test_list_investments_by_type(self, store):
        store.upsert(Investment(user_id=USER_ID, type=InvestmentType.FD, current_value=1000))
        store.upsert(Investment(user_id=USER_ID, type=InvestmentType.FD, current_value=2000))
        store.upsert(
            Investment(user_id=USER_ID, type=InvestmentType.STOCK, current_value=3000)
        )
        store.upsert(Investment(user_id="user-2", type=InvestmentType.FD, current_value=9))

        deposits = store.list_investments(USER_ID, InvestmentType.FD)
        everything = store.list_investments(USER_ID)

        assert sorted(i.current_value for i in deposits) == [1000, 2000]
        assert len(everything) == 3

    def test_upsert_updates_existing_record(self, store):
        stored = store.upsert(
            Investment(user_id=USER_ID, type=InvestmentType.CASH, current_value=1000)
        )
        store.upsert(stored.model_copy(update={"current_value": 5000}))

        holdings = store.list_investments(USER_ID)

        assert len(holdings) == 1
        assert holdings[0].current_value == 5000

    def test_fields_survive_storage(self, store):
        store.upsert(
            Investment(
                user_id=USER_ID,
                type=InvestmentType.RD,
                name="Bank RD",
                current_value=60000,
                monthly_sip=5000,
                maturity_date=date(2027, 5, 1),
                is_emergency_fund=True,
            )
        )

        [deposit] = store.list_investments(USER_ID, InvestmentType.RD)

        assert deposit.name == "Bank RD"
        assert deposit.maturity_date == date(2027, 5, 1)
        assert deposit.is_emergency_fund is True

    def test_records_are_listed_by_kind(self, store):
        store.upsert(
            Loan(
                user_id=USER_ID,
                original_amount=100000,
                outstanding_amount=50000,
                interest_rate=9,
                emi=2000,
                tenure_months=60,
            )
        )
        store.upsert(Income(user_id=USER_ID, monthly_amount=80000))
        store.upsert(Expense(user_id=USER_ID, name="Rent", amount=20000))
        store.upsert(Insurance(user_id=USER_ID, type="TERM_LIFE", annual_premium=15000))

        assert len(store.list_loans(USER_ID)) == 1
        assert store.list_loans(USER_ID)[0].remaining_months == 60
        assert store.list_incomes(USER_ID)[0].monthly_amount == 80000
        assert store.list_expenses(USER_ID)[0].name == "Rent"
        assert store.list_insurance(USER_ID)[0].type == "TERM_LIFE"
        assert store.list_loans("user-2") == []

    def test_goals_are_ordered_by_target_year(self, store):
        store.upsert(Goal(user_id=USER_ID, name="House", target_amount=1, target_year=2035))
        store.upsert(Goal(user_id=USER_ID, name="Car", target_amount=1, target_year=2027))

        assert [g.name for g in store.list_goals(USER_ID)] == ["Car", "House"]

    def test_find_scenario(self, store):
        stored = store.upsert(make_scenario(name="Plan A"))

        assert store.find_scenario(stored.id).name == "Plan A"
        assert store.find_scenario("missing") is None

    def test_only_one_default_scenario_per_user(self, store):
        first = store.upsert(make_scenario(name="First", is_default=True))
        other_user = store.upsert(make_scenario(user_id="user-2", is_default=True))
        second = store.upsert(make_scenario(name="Second", is_default=True))

        assert store.find_default_scenario(USER_ID).id == second.id
        assert store.find_scenario(first.id).is_default is False
        assert store.find_default_scenario("user-2").id == other_user.id

    def test_no_default_scenario(self, store):
        store.upsert(make_scenario(is_default=False))
        assert store.find_default_scenario(USER_ID) is None

    def test_unknown_record_type_is_rejected(self, store):
        with pytest.raises(UnsupportedRecordError):
            store.upsert(Note(user_id=USER_ID))

        assert issubclass(UnsupportedRecordError, StorageError)


class TestInMemoryRepository:
    """In-memory specifics."""

    def test_returned_records_are_copies(self):
        repository = InMemoryRepository()
        repository.upsert(Expense(user_id=USER_ID, name="Rent", amount=20000))

        first = repository.list_expenses(USER_ID)[0]
        first.amount = 1

        assert repository.list_expenses(USER_ID)[0].amount == 20000


class TestCreateRepository:
    """Test the repository factory."""

    def test_memory_storage(self, settings):
        assert isinstance(create_repository(settings), InMemoryRepository)

    def test_sql_storage(self, settings, db_session_factory):
        sql_settings = settings.model_copy(update={"storage_type": "sql"})

        repository = create_repository(sql_settings, session_factory=db_session_factory)

        assert isinstance(repository, SqlAlchemyRepository)

    def test_sql_storage_from_db_url(self):
        settings = Settings(
            _env_file=None,
            SECRET_KEY="test-secret-key-123",
            STORAGE_TYPE="sql",
            DB_URL="sqlite://",
        )

        repository = create_repository(settings)
        repository.upsert(make_scenario(is_default=True))

        assert repository.find_default_scenario(USER_ID) is not None

    def test_unsupported_storage_type(self, settings):
        broken = settings.model_copy(update={"storage_type": "s3"})

        with pytest.raises(ValueError, match="Unsupported storage type"):
            create_repository(broken)


class TestSqlAlchemyRepository:
    """SQL store specifics."""

    def test_malformed_rows_are_skipped(self, sql_repository, db_session_factory, caplog):
        sql_repository.upsert(
            Investment(user_id=USER_ID, type=InvestmentType.FD, current_value=1000)
        )
        with db_session_factory() as session:
            session.add(
                InvestmentRow(
                    id="broken-fd",
                    user_id=USER_ID,
                    type="FD",
                    payload={"user_id": USER_ID, "type": "FD", "monthly_sip": -5},
                )
            )
            session.add(
                PlannerRecordRow(
                    id="broken-goal", user_id=USER_ID, record_type="GOAL", payload={}
                )
            )
            session.commit()

        with caplog.at_level(logging.WARNING, logger="finplan.storage.sql"):
            deposits = sql_repository.list_investments(USER_ID, InvestmentType.FD)
            goals = sql_repository.list_goals(USER_ID)

        assert [d.current_value for d in deposits] == [1000]
        assert goals == []
        assert "broken-fd" in caplog.text
        assert "broken-goal" in caplog.text

    def test_malformed_scenario_is_reported(self, sql_repository, db_session_factory):
        with db_session_factory() as session:
            session.add(
                ScenarioRow(
                    id="broken-plan",
                    user_id=USER_ID,
                    name="Broken",
                    is_default=True,
                    payload={"user_id": USER_ID, "current_age": 70, "retirement_age": 60},
                )
            )
            session.commit()

        with pytest.raises(DataInconsistencyError) as exc_info:
            sql_repository.find_default_scenario(USER_ID)

        assert exc_info.value.record_id == "broken-plan"

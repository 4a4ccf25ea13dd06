"""
SQLAlchemy repository implementation.

Stores every record as a JSON payload in one of three tables: holdings in
`investments`, scenarios in `retirement_scenarios`, and everything else in
`planner_records` keyed by record type.
"""

import logging
import uuid
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Type

from pydantic import BaseModel, ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

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

from .base import PlannerRecord, PlannerRepository, StorageError, UnsupportedRecordError

logger = logging.getLogger(__name__)

RECORD_TYPE_NAMES: Dict[Type, str] = {
    Loan: "LOAN",
    Income: "INCOME",
    Expense: "EXPENSE",
    Goal: "GOAL",
    Insurance: "INSURANCE",
}


class SqlAlchemyRepository(PlannerRepository):
    """Repository backed by a relational database through SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker):
        """
        Initialize the repository.

        Args:
            session_factory: Factory for sessions bound to a database whose
                tables already exist
        """
        self.session_factory = session_factory

    def _parse_rows(self, model: Type[BaseModel], rows) -> List:
        """Validate stored payloads, skipping rows that no longer parse."""
        records = []
        for row in rows:
            try:
                records.append(model.model_validate(row.payload))
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed {model.__name__} record {row.id}: "
                    f"{e.error_count()} validation errors"
                )
        return records

    def _parse_scenario(self, row: Optional[ScenarioRow]) -> Optional[RetirementScenario]:
        if row is None:
            return None
        try:
            return RetirementScenario.model_validate(row.payload)
        except ValidationError as e:
            raise DataInconsistencyError(
                f"Stored retirement scenario {row.id} is malformed: {str(e)}",
                record_id=row.id,
            ) from e

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database operation failed: {str(e)}")
            raise StorageError(f"Database operation failed: {str(e)}") from e
        finally:
            session.close()

    def list_investments(
        self, user_id: str, investment_type: Optional[InvestmentType] = None
    ) -> List[Investment]:
        query = select(InvestmentRow).where(InvestmentRow.user_id == user_id)
        if investment_type is not None:
            query = query.where(InvestmentRow.type == investment_type.value)
        with self._session() as session:
            rows = session.scalars(query.order_by(InvestmentRow.created_at)).all()
            return self._parse_rows(Investment, rows)

    def _list_records(self, record_type: Type, user_id: str) -> List:
        query = (
            select(PlannerRecordRow)
            .where(PlannerRecordRow.user_id == user_id)
            .where(PlannerRecordRow.record_type == RECORD_TYPE_NAMES[record_type])
            .order_by(PlannerRecordRow.created_at)
        )
        with self._session() as session:
            rows = session.scalars(query).all()
            return self._parse_rows(record_type, rows)

    def list_loans(self, user_id: str) -> List[Loan]:
        return self._list_records(Loan, user_id)

    def list_incomes(self, user_id: str) -> List[Income]:
        return self._list_records(Income, user_id)

    def list_expenses(self, user_id: str) -> List[Expense]:
        return self._list_records(Expense, user_id)

    def list_goals(self, user_id: str) -> List[Goal]:
        goals = self._list_records(Goal, user_id)
        return sorted(goals, key=lambda goal: goal.target_year)

    def list_insurance(self, user_id: str) -> List[Insurance]:
        return self._list_records(Insurance, user_id)

    def find_default_scenario(self, user_id: str) -> Optional[RetirementScenario]:
        query = (
            select(ScenarioRow)
            .where(ScenarioRow.user_id == user_id)
            .where(ScenarioRow.is_default.is_(True))
        )
        with self._session() as session:
            row = session.scalars(query).first()
            return self._parse_scenario(row)

    def find_scenario(self, scenario_id: str) -> Optional[RetirementScenario]:
        with self._session() as session:
            row = session.get(ScenarioRow, scenario_id)
            return self._parse_scenario(row)

    def upsert(self, record: PlannerRecord) -> PlannerRecord:
        if record.id is None:
            record = record.model_copy(update={"id": str(uuid.uuid4())})
        payload = record.model_dump(mode="json")

        with self._session() as session:
            if isinstance(record, Investment):
                row = session.get(InvestmentRow, record.id) or InvestmentRow(id=record.id)
                row.type = record.type.value
            elif isinstance(record, RetirementScenario):
                if record.is_default:
                    self._clear_other_defaults(session, record)
                row = session.get(ScenarioRow, record.id) or ScenarioRow(id=record.id)
                row.name = record.name
                row.is_default = record.is_default
            elif type(record) in RECORD_TYPE_NAMES:
                row = session.get(PlannerRecordRow, record.id) or PlannerRecordRow(
                    id=record.id
                )
                row.record_type = RECORD_TYPE_NAMES[type(record)]
            else:
                raise UnsupportedRecordError(
                    f"Cannot store records of type {type(record).__name__}"
                )

            row.user_id = record.user_id
            row.payload = payload
            session.add(row)

        return record

    def _clear_other_defaults(
        self, session: Session, scenario: RetirementScenario
    ) -> None:
        others = session.scalars(
            select(ScenarioRow)
            .where(ScenarioRow.user_id == scenario.user_id)
            .where(ScenarioRow.id != scenario.id)
            .where(ScenarioRow.is_default.is_(True))
        ).all()
        for other in others:
            other.is_default = False
            # Reassign so the JSON column is flagged as changed
            other.payload = {**other.payload, "is_default": False}

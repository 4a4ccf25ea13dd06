"""
In-memory repository implementation.

Keeps records in process memory. Suitable for tests and for running the
projection engine without a database.
"""

import uuid
from typing import Dict, List, Optional, Type

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

from .base import PlannerRecord, PlannerRepository, UnsupportedRecordError

RECORD_TYPES = (Investment, Loan, Income, Expense, Goal, Insurance, RetirementScenario)


class InMemoryRepository(PlannerRepository):
    """
    Repository backed by plain dictionaries.

    Records are copied on the way in and on the way out, so a caller holding a
    record never sees later writes.
    """

    def __init__(self) -> None:
        self._records: Dict[Type, Dict[str, PlannerRecord]] = {
            record_type: {} for record_type in RECORD_TYPES
        }

    def _list(self, record_type: Type, user_id: str) -> List:
        return [
            record.model_copy(deep=True)
            for record in self._records[record_type].values()
            if record.user_id == user_id
        ]

    def list_investments(
        self, user_id: str, investment_type: Optional[InvestmentType] = None
    ) -> List[Investment]:
        investments = self._list(Investment, user_id)
        if investment_type is None:
            return investments
        return [i for i in investments if i.type == investment_type]

    def list_loans(self, user_id: str) -> List[Loan]:
        return self._list(Loan, user_id)

    def list_incomes(self, user_id: str) -> List[Income]:
        return self._list(Income, user_id)

    def list_expenses(self, user_id: str) -> List[Expense]:
        return self._list(Expense, user_id)

    def list_goals(self, user_id: str) -> List[Goal]:
        return sorted(self._list(Goal, user_id), key=lambda goal: goal.target_year)

    def list_insurance(self, user_id: str) -> List[Insurance]:
        return self._list(Insurance, user_id)

    def find_default_scenario(self, user_id: str) -> Optional[RetirementScenario]:
        for scenario in self._list(RetirementScenario, user_id):
            if scenario.is_default:
                return scenario
        return None

    def find_scenario(self, scenario_id: str) -> Optional[RetirementScenario]:
        scenario = self._records[RetirementScenario].get(scenario_id)
        return scenario.model_copy(deep=True) if scenario is not None else None

    def upsert(self, record: PlannerRecord) -> PlannerRecord:
        record_type = type(record)
        if record_type not in self._records:
            raise UnsupportedRecordError(
                f"Cannot store records of type {record_type.__name__}"
            )

        if record.id is None:
            record = record.model_copy(update={"id": str(uuid.uuid4())})

        if isinstance(record, RetirementScenario) and record.is_default:
            self._clear_other_defaults(record)

        self._records[record_type][record.id] = record.model_copy(deep=True)
        return record

    def _clear_other_defaults(self, scenario: RetirementScenario) -> None:
        scenarios = self._records[RetirementScenario]
        for scenario_id, existing in scenarios.items():
            if (
                scenario_id != scenario.id
                and existing.user_id == scenario.user_id
                and existing.is_default
            ):
                scenarios[scenario_id] = existing.model_copy(update={"is_default": False})

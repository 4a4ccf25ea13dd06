"""
Base repository interface and exceptions.

This module defines the abstract interface that every planner record store
must follow, along with common exceptions.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Union

from finplan.exceptions import FinPlanError
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

PlannerRecord = Union[
    Investment, Loan, Income, Expense, Goal, Insurance, RetirementScenario
]


class StorageError(FinPlanError):
    """Base exception for storage-related errors."""


class UnsupportedRecordError(StorageError):
    """Raised when a repository is asked to store an unknown record type."""


class PlannerRepository(ABC):
    """
    Abstract base class for planner record stores.

    Reads return fresh copies of the stored records; callers may not rely on
    later writes being visible through records they already hold.
    """

    @abstractmethod
    def list_investments(
        self, user_id: str, investment_type: Optional[InvestmentType] = None
    ) -> List[Investment]:
        """
        List a user's holdings.

        Args:
            user_id: Owner of the holdings
            investment_type: Optional category filter

        Returns:
            Holdings, all of them when no category is given
        """

    @abstractmethod
    def list_loans(self, user_id: str) -> List[Loan]:
        """List a user's loans."""

    @abstractmethod
    def list_incomes(self, user_id: str) -> List[Income]:
        """List a user's income sources."""

    @abstractmethod
    def list_expenses(self, user_id: str) -> List[Expense]:
        """List a user's expenses."""

    @abstractmethod
    def list_goals(self, user_id: str) -> List[Goal]:
        """List a user's goals ordered by target year."""

    @abstractmethod
    def list_insurance(self, user_id: str) -> List[Insurance]:
        """List a user's insurance policies."""

    @abstractmethod
    def find_default_scenario(self, user_id: str) -> Optional[RetirementScenario]:
        """
        Find the user's default retirement scenario.

        Returns:
            The scenario flagged as default, or None
        """

    @abstractmethod
    def find_scenario(self, scenario_id: str) -> Optional[RetirementScenario]:
        """
        Find a retirement scenario by id.

        Returns:
            The scenario, or None if no scenario has that id
        """

    @abstractmethod
    def upsert(self, record: PlannerRecord) -> PlannerRecord:
        """
        Insert or update a record.

        A record without an id gets a new one. Storing a default scenario
        clears the default flag on the user's other scenarios.

        Args:
            record: Record to store

        Returns:
            The stored record, with its id set

        Raises:
            UnsupportedRecordError: If the record type is not one the store keeps
            StorageError: If the record cannot be stored
        """

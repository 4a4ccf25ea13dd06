"""Exception hierarchy for the finplan projection core."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from finplan.models.amortization import AmortizationSchedule


class FinPlanError(Exception):
    """Base exception for all finplan errors."""


class InvalidInputError(FinPlanError, ValueError):
    """Raised when a formula receives a value outside its domain."""


class MissingConfigurationError(FinPlanError):
    """Raised when no retirement scenario can be resolved for a user."""


class DataInconsistencyError(FinPlanError):
    """Raised when a stored record cannot be counted during aggregation."""

    def __init__(self, message: str, record_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.record_id = record_id


class NegativeAmortizationError(FinPlanError):
    """Raised when a loan's EMI does not cover the interest accruing on it.

    The schedule built up to the offending month is attached so callers can
    still show what was computed.
    """

    def __init__(
        self,
        message: str,
        month: int,
        balance: float,
        partial_schedule: Optional["AmortizationSchedule"] = None,
    ) -> None:
        super().__init__(message)
        self.month = month
        self.balance = balance
        self.partial_schedule = partial_schedule

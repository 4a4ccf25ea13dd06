"""
Loan amortization schedules.

This module walks an amortizing loan month by month from its outstanding
balance, splitting each installment into interest and principal until the
balance is cleared or the remaining months run out. A loan whose installment
does not cover the interest accruing on it never reaches zero; that case is
reported through NegativeAmortizationError instead of looping.
"""

from typing import List

from pydantic import BaseModel, Field

from finplan.exceptions import NegativeAmortizationError

from .calculations import MONTHS_PER_YEAR
from .records import Loan

# Balances closer than this to zero are settled by the final installment
SETTLEMENT_TOLERANCE = 0.01


class PaymentBreakdown(BaseModel):
    """Breakdown of a single monthly installment."""

    month: int = Field(..., ge=1, description="Payment number (1-based)")
    opening_balance: float = Field(..., ge=0, description="Balance before payment")
    payment: float = Field(..., ge=0, description="Amount paid this month")
    interest: float = Field(..., ge=0, description="Interest portion")
    principal_paid: float = Field(..., ge=0, description="Principal portion")
    balance: float = Field(..., ge=0, description="Balance after payment")
    cumulative_interest: float = Field(..., ge=0, description="Interest paid so far")
    cumulative_principal: float = Field(
        ..., ge=0, description="Principal paid so far"
    )


class AmortizationSchedule(BaseModel):
    """Month-by-month repayment plan for a loan."""

    loan: Loan = Field(..., description="Loan being repaid")
    payments: List[PaymentBreakdown] = Field(
        default_factory=list, description="Installments in month order"
    )
    total_interest: float = Field(default=0, ge=0, description="Interest paid")
    total_principal: float = Field(default=0, ge=0, description="Principal paid")

    @property
    def total_payments(self) -> int:
        return len(self.payments)

    @property
    def residual_balance(self) -> float:
        """Balance left once the schedule ends."""
        return self.balance_after(len(self.payments))

    @property
    def fully_amortized(self) -> bool:
        return self.residual_balance == 0

    def balance_after(self, months: int) -> float:
        """Outstanding balance after `months` installments."""
        if months <= 0 or not self.payments:
            return self.loan.outstanding_amount
        index = min(months, len(self.payments)) - 1
        return self.payments[index].balance

    def payments_between(self, start_month: int, end_month: int) -> List[PaymentBreakdown]:
        """Installments for months start_month+1 .. end_month."""
        return [p for p in self.payments if start_month < p.month <= end_month]

    def paid_in_year(self, year: int) -> float:
        """Total paid in the given 1-based year of the schedule."""
        rows = self.payments_between((year - 1) * MONTHS_PER_YEAR, year * MONTHS_PER_YEAR)
        return sum(p.payment for p in rows)


def calculate_interest_payment(balance: float, annual_rate_pct: float) -> float:
    """Interest accruing on `balance` over one month."""
    return balance * annual_rate_pct / 100 / MONTHS_PER_YEAR


def generate_amortization_schedule(loan: Loan) -> AmortizationSchedule:
    """
    Generate the repayment schedule for the remaining life of a loan.

    Args:
        loan: Loan with its current outstanding balance and remaining months

    Returns:
        Schedule whose balances never increase

    Raises:
        NegativeAmortizationError: If an installment does not reduce the balance
    """
    schedule = AmortizationSchedule(loan=loan)
    balance = loan.outstanding_amount
    cumulative_interest = 0.0
    cumulative_principal = 0.0

    for month in range(1, loan.remaining_months + 1):
        if balance <= 0:
            break

        interest_payment = calculate_interest_payment(balance, loan.interest_rate)
        principal_payment = loan.emi - interest_payment

        if principal_payment <= 0:
            schedule.total_interest = cumulative_interest
            schedule.total_principal = cumulative_principal
            raise NegativeAmortizationError(
                f"EMI {loan.emi:.2f} does not cover interest {interest_payment:.2f} "
                f"in month {month} for loan {loan.name or loan.id}",
                month=month,
                balance=balance,
                partial_schedule=schedule,
            )

        # Final installment clears whatever is left
        if principal_payment >= balance - SETTLEMENT_TOLERANCE:
            principal_payment = balance

        ending_balance = balance - principal_payment
        cumulative_interest += interest_payment
        cumulative_principal += principal_payment

        schedule.payments.append(
            PaymentBreakdown(
                month=month,
                opening_balance=balance,
                payment=interest_payment + principal_payment,
                interest=interest_payment,
                principal_paid=principal_payment,
                balance=ending_balance,
                cumulative_interest=cumulative_interest,
                cumulative_principal=cumulative_principal,
            )
        )
        balance = ending_balance

    schedule.total_interest = cumulative_interest
    schedule.total_principal = cumulative_principal
    return schedule

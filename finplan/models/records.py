"""
Pydantic models for the records a user keeps in the planner.

This module defines investments, loans, incomes, expenses, goals, insurance
policies and retirement scenarios. The projection engine only reads these
records; they are created and updated through the storage layer.
"""

from datetime import date
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .calculations import calculate_future_value


class InvestmentType(str, Enum):
    """Closed set of holding categories tracked by the planner."""

    FD = "FD"
    RD = "RD"
    PPF = "PPF"
    EPF = "EPF"
    MUTUAL_FUND = "MUTUAL_FUND"
    NPS = "NPS"
    STOCK = "STOCK"
    CASH = "CASH"
    GOLD = "GOLD"
    REAL_ESTATE = "REAL_ESTATE"
    CRYPTO = "CRYPTO"

    @property
    def supports_emergency_tag(self) -> bool:
        """Only deposits can be set aside as an emergency reserve."""
        return self in (InvestmentType.FD, InvestmentType.RD)


class Investment(BaseModel):
    """A single holding owned by a user."""

    id: Optional[str] = Field(default=None, description="Record identifier")
    user_id: str = Field(..., min_length=1, description="Owner of the record")
    type: InvestmentType = Field(..., description="Holding category")
    name: str = Field(default="", description="Fund, stock or bank name")
    invested_amount: Optional[float] = Field(
        default=None, description="Total amount invested"
    )
    current_value: Optional[float] = Field(
        default=None, description="Current market value"
    )
    monthly_sip: float = Field(default=0, ge=0, description="Monthly SIP amount")
    yearly_contribution: float = Field(
        default=0, ge=0, description="Yearly contribution (PPF style)"
    )
    interest_rate: Optional[float] = Field(
        default=None, ge=0, le=100, description="Deposit interest rate (%)"
    )
    expected_return: Optional[float] = Field(
        default=None, ge=-50, le=100, description="Expected annual return (%)"
    )
    maturity_date: Optional[date] = Field(default=None, description="Maturity date")
    is_emergency_fund: bool = Field(
        default=False, description="Deposit set aside as an emergency reserve"
    )

    @property
    def value(self) -> Optional[float]:
        """Current value, falling back to the invested amount."""
        if self.current_value is not None:
            return self.current_value
        return self.invested_amount


class Loan(BaseModel):
    """An amortizing loan."""

    id: Optional[str] = Field(default=None, description="Record identifier")
    user_id: str = Field(..., min_length=1, description="Owner of the record")
    name: str = Field(default="", description="Lender or loan description")
    original_amount: float = Field(..., gt=0, description="Original loan amount")
    outstanding_amount: float = Field(
        ..., ge=0, description="Current outstanding balance"
    )
    interest_rate: float = Field(
        ..., ge=0, le=50, description="Annual nominal interest rate (%)"
    )
    emi: float = Field(..., gt=0, description="Fixed monthly installment")
    tenure_months: int = Field(..., ge=1, le=600, description="Original tenure")
    remaining_months: Optional[int] = Field(
        default=None, ge=0, description="Months left to pay"
    )
    start_date: Optional[date] = Field(default=None, description="Loan start date")

    @model_validator(mode="after")
    def validate_balances(self):
        if self.remaining_months is None:
            self.remaining_months = self.tenure_months
        if self.outstanding_amount > self.original_amount:
            raise ValueError(
                "Outstanding amount cannot exceed the original loan amount"
            )
        if self.remaining_months > self.tenure_months:
            raise ValueError("Remaining months cannot exceed the loan tenure")
        return self

    @property
    def is_closed(self) -> bool:
        """A loan is closed once nothing is owed or no months remain."""
        return self.outstanding_amount <= 0 or self.remaining_months == 0


class Income(BaseModel):
    """A recurring income source."""

    id: Optional[str] = Field(default=None, description="Record identifier")
    user_id: str = Field(..., min_length=1, description="Owner of the record")
    source: str = Field(default="", description="Employer or income source")
    monthly_amount: float = Field(..., ge=0, description="Current monthly income")
    annual_increment: float = Field(
        default=0, ge=0, le=100, description="Expected yearly increment (%)"
    )
    is_active: bool = Field(default=True, description="Whether income is active")

    def annual_amount_after(self, years: int) -> float:
        """Yearly income after `years` of increments."""
        if not self.is_active:
            return 0.0
        return calculate_future_value(
            self.monthly_amount * 12, self.annual_increment, years
        )


ExpenseFrequency = Literal["MONTHLY", "QUARTERLY", "HALF_YEARLY", "YEARLY", "ONE_TIME"]

MONTHS_PER_PERIOD = {
    "MONTHLY": 1,
    "QUARTERLY": 3,
    "HALF_YEARLY": 6,
    "YEARLY": 12,
}


class Expense(BaseModel):
    """A household expense, optionally ending at a known year."""

    id: Optional[str] = Field(default=None, description="Record identifier")
    user_id: str = Field(..., min_length=1, description="Owner of the record")
    name: str = Field(..., min_length=1, description="Expense description")
    category: str = Field(default="OTHER", description="Expense category")
    amount: float = Field(..., ge=0, description="Amount per frequency period")
    frequency: ExpenseFrequency = Field(default="MONTHLY", description="Frequency")
    is_time_bound: bool = Field(
        default=False, description="Whether the expense stops at some point"
    )
    start_date: Optional[date] = Field(default=None, description="First payment")
    end_date: Optional[date] = Field(default=None, description="Last payment")
    end_age: Optional[int] = Field(
        default=None, ge=0, le=120, description="Dependent age at which it stops"
    )
    dependent_current_age: Optional[int] = Field(
        default=None, ge=0, le=120, description="Current age of the dependent"
    )

    @property
    def monthly_equivalent(self) -> float:
        """Monthly cost implied by the amount and frequency."""
        if self.frequency == "ONE_TIME":
            return 0.0
        return self.amount / MONTHS_PER_PERIOD[self.frequency]

    @property
    def yearly_amount(self) -> float:
        """Amount paid in a full year (a one-time expense counts once)."""
        if self.frequency == "ONE_TIME":
            return self.amount
        return self.monthly_equivalent * 12

    def end_year(self, current_year: int) -> Optional[int]:
        """Calendar year in which the expense stops, if it ever does."""
        if not self.is_time_bound:
            return None
        if self.end_date is not None:
            return self.end_date.year
        if self.end_age is not None and self.dependent_current_age is not None:
            return current_year + (self.end_age - self.dependent_current_age)
        return None

    def is_active_in(self, year: int, current_year: int) -> bool:
        """Whether the expense is paid in the given calendar year."""
        if self.start_date is not None and self.start_date.year > year:
            return False
        end = self.end_year(current_year)
        return end is None or year <= end

    def amount_in_year(self, year: int, current_year: int) -> float:
        """Amount paid in a calendar year, in today's money.

        A one-time expense falls in the year of its start date, or in the
        current year when it has none.
        """
        if not self.is_active_in(year, current_year):
            return 0.0
        if self.frequency == "ONE_TIME":
            due_year = self.start_date.year if self.start_date else current_year
            return self.amount if year == due_year else 0.0
        return self.yearly_amount


class Goal(BaseModel):
    """A financial goal funded from the corpus in its target year."""

    id: Optional[str] = Field(default=None, description="Record identifier")
    user_id: str = Field(..., min_length=1, description="Owner of the record")
    name: str = Field(..., min_length=1, description="Goal name")
    target_amount: float = Field(..., ge=0, description="Target in today's value")
    target_year: int = Field(..., ge=1900, le=2200, description="Target year")
    priority: Literal["HIGH", "MEDIUM", "LOW"] = Field(
        default="MEDIUM", description="Goal priority"
    )


InsuranceType = Literal[
    "TERM_LIFE", "HEALTH", "ULIP", "ENDOWMENT", "MONEY_BACK", "ANNUITY", "VEHICLE", "OTHER"
]

MATURITY_POLICY_TYPES = ("ULIP", "ENDOWMENT", "MONEY_BACK")


class Insurance(BaseModel):
    """An insurance policy, protection or investment linked."""

    id: Optional[str] = Field(default=None, description="Record identifier")
    user_id: str = Field(..., min_length=1, description="Owner of the record")
    type: InsuranceType = Field(..., description="Policy type")
    health_type: Optional[Literal["GROUP", "PERSONAL", "FAMILY_FLOATER"]] = Field(
        default=None, description="Health cover type"
    )
    policy_name: str = Field(default="", description="Policy name")
    annual_premium: float = Field(default=0, ge=0, description="Yearly premium")
    continues_after_retirement: Optional[bool] = Field(
        default=None, description="Explicit override for premium continuation"
    )
    maturity_date: Optional[date] = Field(default=None, description="Maturity date")
    maturity_benefit: Optional[float] = Field(
        default=None, ge=0, description="Expected maturity payout"
    )
    fund_value: Optional[float] = Field(
        default=None, ge=0, description="Current fund value (ULIP)"
    )

    @property
    def has_maturity(self) -> bool:
        return self.type in MATURITY_POLICY_TYPES

    @property
    def maturity_amount(self) -> float:
        if self.maturity_benefit is not None:
            return self.maturity_benefit
        return self.fund_value or 0.0

    def premium_due_in(self, year: int) -> bool:
        """Premiums are paid every year up to the maturity year."""
        return self.maturity_date is None or year <= self.maturity_date.year

    def matures_in(self, year: int) -> bool:
        return (
            self.has_maturity
            and self.maturity_date is not None
            and self.maturity_date.year == year
        )

    def premium_continues_after_retirement(self) -> bool:
        """Whether the premium is still paid once the holder retires.

        An explicit flag wins. Otherwise term cover and personal or family
        health cover keep running; employer group health cover, vehicle and
        maturity-bearing policies stop.
        """
        if self.continues_after_retirement is not None:
            return self.continues_after_retirement
        if self.type == "TERM_LIFE":
            return True
        if self.type == "HEALTH":
            return self.health_type != "GROUP"
        return False


IncomeStrategy = Literal["SUSTAINABLE", "SAFE_4_PERCENT", "SIMPLE_DEPLETION"]


class RetirementScenario(BaseModel):
    """Assumptions for one retirement projection."""

    id: Optional[str] = Field(default=None, description="Record identifier")
    user_id: str = Field(..., min_length=1, description="Owner of the record")
    name: str = Field(default="Default", description="Scenario name")
    current_age: int = Field(..., ge=0, le=120, description="Current age")
    retirement_age: int = Field(..., ge=0, le=120, description="Retirement age")
    life_expectancy: int = Field(..., ge=0, le=120, description="Life expectancy")
    inflation_rate: Optional[float] = Field(
        default=None, ge=0, le=50, description="Annual inflation (%)"
    )
    corpus_return_rate: Optional[float] = Field(
        default=None, ge=-50, le=100, description="Annual corpus return (%)"
    )
    sip_step_up_percent: Optional[float] = Field(
        default=None, ge=0, le=100, description="Yearly SIP increase (%)"
    )
    lumpsum_amount: float = Field(
        default=0, ge=0, description="Extra lumpsum invested every year"
    )
    income_strategy: IncomeStrategy = Field(
        default="SUSTAINABLE", description="How retirement income is drawn"
    )
    withdrawal_rate: Optional[float] = Field(
        default=None, ge=0, le=100, description="Yearly withdrawal rate (%)"
    )
    is_default: bool = Field(default=False, description="User's default scenario")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return v.strip() or "Default"

    @model_validator(mode="after")
    def validate_age_order(self):
        if not self.current_age <= self.retirement_age <= self.life_expectancy:
            raise ValueError(
                "Ages must satisfy current_age <= retirement_age <= life_expectancy"
            )
        return self

    @property
    def years_to_retirement(self) -> int:
        return self.retirement_age - self.current_age

    @property
    def retirement_years(self) -> int:
        return self.life_expectancy - self.retirement_age

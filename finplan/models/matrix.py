"""
Retirement matrix result model.

The RetirementMatrix is the single output of a projection run. It holds the
opening balances, one row per age from the current age to life expectancy,
the gap between the projected and the required corpus, and the retirement
income each withdrawal strategy would give.

All models here are frozen and serialize with camelCase keys:

    ```python
    matrix.model_dump(by_alias=True)["summary"]["startingBalances"]["emergencyFund"]
    ```
"""

from datetime import date
from typing import Dict, Literal, Optional, Tuple

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .records import IncomeStrategy, InvestmentType
from .timeline import Phase


class MatrixModel(BaseModel):
    """Immutable model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="forbid"
    )


class StartingBalances(MatrixModel):
    """Holdings at the start of the projection, by category."""

    fd: float = Field(default=0, description="Fixed deposits not set aside")
    rd: float = Field(default=0, description="Recurring deposits not set aside")
    ppf: float = Field(default=0, description="Public Provident Fund")
    epf: float = Field(default=0, description="Employee Provident Fund")
    mutual_fund: float = Field(default=0, description="Mutual funds")
    nps: float = Field(default=0, description="National Pension System")
    stock: float = Field(default=0, description="Direct equity")
    cash: float = Field(default=0, description="Cash and savings")
    gold: float = Field(default=0, description="Gold")
    real_estate: float = Field(default=0, description="Real estate")
    crypto: float = Field(default=0, description="Crypto assets")
    emergency_fund: float = Field(
        default=0, description="Deposits tagged as emergency reserve"
    )
    investable_corpus: float = Field(
        default=0, description="Sum of every category except the emergency fund"
    )

    def by_category(self) -> Dict[InvestmentType, float]:
        return {t: getattr(self, t.value.lower()) for t in InvestmentType}


class ProjectionYear(MatrixModel):
    """One row of the retirement matrix, at the end of a year of age."""

    year_index: int = Field(..., ge=0, description="0 for the opening snapshot")
    age: int = Field(..., description="Age at the end of the year")
    calendar_year: int = Field(..., description="Calendar year of the row")
    phase: Phase = Field(..., description="ACCUMULATION or RETIREMENT")
    opening_corpus: float = Field(default=0, description="Corpus at start of year")
    growth: float = Field(default=0, description="Return earned on the corpus")
    monthly_sip: float = Field(default=0, ge=0, description="Monthly SIP this year")
    contributions: float = Field(
        default=0, ge=0, description="Value added by SIPs, yearly and lumpsum amounts"
    )
    income: float = Field(default=0, ge=0, description="Income earned this year")
    expenses: float = Field(default=0, ge=0, description="Inflated living expenses")
    insurance_premiums: float = Field(default=0, ge=0, description="Premiums paid")
    loan_emi: float = Field(default=0, ge=0, description="Loan installments paid")
    outstanding_loans: float = Field(
        default=0, ge=0, description="Loan balance at the end of the year"
    )
    goal_outflow: float = Field(default=0, ge=0, description="Goals funded this year")
    goals_this_year: Tuple[str, ...] = Field(default=(), description="Goal names")
    insurance_inflow: float = Field(
        default=0, ge=0, description="Policy maturity payouts"
    )
    maturing_policies: Tuple[str, ...] = Field(default=(), description="Policy names")
    withdrawal: float = Field(default=0, ge=0, description="Drawn from the corpus")
    annual_surplus: float = Field(
        default=0, description="Income left after expenses and contributions"
    )
    shortfall: float = Field(default=0, ge=0, description="Outflow the corpus missed")
    corpus: float = Field(default=0, ge=0, description="Corpus at the end of year")
    emergency_fund: float = Field(default=0, ge=0, description="Emergency reserve")


class MatrixSummary(MatrixModel):
    """Inputs and headline results of a projection."""

    user_id: str
    scenario_id: Optional[str] = None
    scenario_name: str
    as_of: date
    current_age: int
    retirement_age: int
    life_expectancy: int
    years_to_retirement: int
    retirement_years: int
    inflation_rate: float
    corpus_return_rate: float
    sip_step_up_percent: float
    withdrawal_rate: float
    starting_balances: StartingBalances
    monthly_sip: float = Field(default=0, description="Monthly SIP at the start")
    yearly_contribution: float = Field(default=0, description="Yearly contributions")
    corpus_at_retirement: float
    final_corpus: float
    corpus_depleted_age: Optional[int] = Field(
        default=None, description="Age at which the corpus runs out"
    )
    flagged_loans: Tuple[str, ...] = Field(
        default=(), description="Loans whose EMI does not cover interest"
    )
    excluded_records: Tuple[str, ...] = Field(
        default=(), description="Holdings left out because their data is inconsistent"
    )
    unscheduled_goals: Tuple[str, ...] = Field(
        default=(), description="Goals dated outside the projected years"
    )


class GapAnalysis(MatrixModel):
    """Projected corpus against the corpus the chosen strategy requires."""

    income_strategy: IncomeStrategy
    monthly_expense_at_retirement: float
    yearly_expense_at_retirement: float
    required_corpus: float
    projected_corpus: float
    corpus_gap: float
    gap_percent: float
    is_on_track: bool
    additional_monthly_sip: float = Field(
        default=0, ge=0, description="Extra SIP that closes the gap"
    )
    total_goal_outflow: float = Field(
        default=0, ge=0, description="Goal outflows already taken from the corpus"
    )
    monthly_freed_before_retirement: float = Field(
        default=0, ge=0, description="Time-bound expenses ending before retirement"
    )


class IncomeMilestone(MatrixModel):
    years_into_retirement: int
    age: int
    corpus: float
    monthly_income: float


class RetirementIncome(MatrixModel):
    """Monthly income the corpus at retirement supports under each strategy."""

    income_strategy: IncomeStrategy
    monthly_simple_depletion: float
    monthly_safe_4_percent: float
    monthly_sustainable: float
    selected_monthly_income: float
    milestones: Tuple[IncomeMilestone, ...] = ()


class StepUpStopOption(MatrixModel):
    """Corpus at retirement if the SIP stops stepping up after a given year."""

    stop_year: int = Field(..., ge=1, description="Last projection year with a step-up")
    age: int = Field(..., description="Age at the end of the stop year")
    calendar_year: int
    final_monthly_sip: float = Field(..., description="Monthly SIP held from then on")
    projected_corpus: float
    meets_target: bool
    surplus: float = Field(..., description="Projected minus required corpus")


class StepUpOptimization(MatrixModel):
    """Earliest year the SIP step-up can stop with the required corpus still met."""

    step_up_percent: float
    can_stop_early: bool = False
    optimal_stop_year: Optional[int] = None
    optimal_stop_age: Optional[int] = None
    required_corpus: float
    projected_corpus: float = Field(..., description="Corpus with step-up until retirement")
    corpus_at_optimal_stop: Optional[float] = None
    monthly_sip_at_start: float = 0
    monthly_sip_at_full_step_up: float = 0
    monthly_sip_at_optimal_stop: Optional[float] = None
    monthly_relief: float = Field(
        default=0, ge=0, description="Lower monthly SIP in the final year if stopped early"
    )
    reason: str
    options: Tuple[StepUpStopOption, ...] = ()


class MaturingItem(MatrixModel):
    """A holding or policy that pays out before retirement."""

    record_id: Optional[str] = None
    name: str
    kind: Literal["INVESTMENT", "INSURANCE"]
    type: str
    maturity_date: date
    years_to_maturity: int
    current_value: float = 0
    expected_maturity_value: float = 0


class MaturingBeforeRetirement(MatrixModel):
    """Money that frees up for reinvestment before the retirement date."""

    retirement_date: date
    investments: Tuple[MaturingItem, ...] = ()
    insurance: Tuple[MaturingItem, ...] = ()
    total_maturing_value: float = 0

    @property
    def investment_count(self) -> int:
        return len(self.investments)

    @property
    def insurance_count(self) -> int:
        return len(self.insurance)


class RetirementMatrix(MatrixModel):
    """Result of one retirement projection."""

    summary: MatrixSummary
    projection: Tuple[ProjectionYear, ...]
    gap_analysis: GapAnalysis
    retirement_income: RetirementIncome
    step_up_optimization: StepUpOptimization
    maturing_before_retirement: MaturingBeforeRetirement

    def row_for_age(self, age: int) -> Optional[ProjectionYear]:
        for row in self.projection:
            if row.age == age:
                return row
        return None

    def corpus_series(self) -> NDArray[np.float64]:
        """Year-end corpus for every row, in age order."""
        return np.array([row.corpus for row in self.projection], dtype=np.float64)

    def total_goal_outflow(self) -> float:
        return float(sum(row.goal_outflow for row in self.projection))

    def to_dict(self) -> dict:
        """Serialize to JSON-ready camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")

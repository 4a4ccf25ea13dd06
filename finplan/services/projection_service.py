"""
Retirement projection service.

This service loads a user's records from a repository, resolves the
retirement scenario to project, and simulates the investable corpus year by
year from the user's current age to their life expectancy. The result is a
freshly built, immutable RetirementMatrix.
"""

import logging
from datetime import date
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from finplan.config import Settings, get_global_settings
from finplan.exceptions import (
    DataInconsistencyError,
    MissingConfigurationError,
    NegativeAmortizationError,
)
from finplan.models.aggregation import (
    ContributionBaseline,
    contribution_baseline,
    partition_emergency_funds,
    summarize_holdings,
    validate_holding,
)
from finplan.models.amortization import (
    AmortizationSchedule,
    generate_amortization_schedule,
)
from finplan.models.calculations import (
    MONTHS_PER_YEAR,
    calculate_required_sip,
    calculate_sip_future_value,
)
from finplan.models.matrix import (
    GapAnalysis,
    IncomeMilestone,
    MaturingBeforeRetirement,
    MatrixSummary,
    ProjectionYear,
    RetirementIncome,
    RetirementMatrix,
    StartingBalances,
    StepUpOptimization,
    StepUpStopOption,
)
from finplan.models.maturity import add_years, maturing_before_retirement
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
from finplan.models.timeline import AgeTimeline, InflationAdjuster
from finplan.storage.base import PlannerRepository

logger = logging.getLogger(__name__)

# 4% rule: a corpus of 25 years of expenses
SAFE_WITHDRAWAL_RATE = 4.0
SAFE_WITHDRAWAL_MULTIPLE = 25

INCOME_MILESTONE_STEP = 5
INCOME_MILESTONE_HORIZON = 30


def _year_index_for(calendar_year: int, base_year: int) -> int:
    """Projection year in which something dated `calendar_year` is booked.

    Amounts due in the base year fall into the first projected year.
    """
    return max(calendar_year - base_year, 1)


def _maturity_year_index(policy: Insurance, as_of: date) -> Optional[int]:
    """Projection year a policy pays out in, or None if it never pays out."""
    if not policy.has_maturity or policy.maturity_date is None:
        return None
    if policy.maturity_date < as_of:
        return None
    return _year_index_for(policy.maturity_date.year, as_of.year)


class LoanRepayment:
    """Year-by-year repayments of one loan."""

    def __init__(self, loan: Loan, schedule: Optional[AmortizationSchedule]) -> None:
        """
        Args:
            loan: The loan being repaid
            schedule: Its amortization schedule, or None when the EMI does not
                cover the interest and the balance is held constant instead
        """
        self.loan = loan
        self.schedule = schedule

    @property
    def label(self) -> str:
        return self.loan.id or self.loan.name

    def emi_in_year(self, year: int) -> float:
        """Installments paid during the given 1-based projection year."""
        if self.schedule is not None:
            return self.schedule.paid_in_year(year)
        months_left = self.loan.remaining_months - (year - 1) * MONTHS_PER_YEAR
        return max(min(MONTHS_PER_YEAR, months_left), 0) * self.loan.emi

    def balance_after_year(self, year: int) -> float:
        if self.schedule is not None:
            return self.schedule.balance_after(year * MONTHS_PER_YEAR)
        return self.loan.outstanding_amount


class ProjectionAssumptions(BaseModel):
    """Rates used by a projection once scenario gaps are filled from settings."""

    inflation_rate: float = Field(..., description="Annual inflation (%)")
    corpus_return_rate: float = Field(..., description="Annual corpus return (%)")
    sip_step_up_percent: float = Field(..., description="Yearly SIP increase (%)")
    withdrawal_rate: float = Field(..., description="Yearly withdrawal rate (%)")


class ProjectionInputs(BaseModel):
    """Everything one projection run reads, loaded once up front."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    user_id: str
    as_of: date
    scenario: RetirementScenario
    assumptions: ProjectionAssumptions
    timeline: AgeTimeline
    inflation: InflationAdjuster
    balances: StartingBalances
    baseline: ContributionBaseline
    holdings: List[Investment] = Field(default_factory=list)
    incomes: List[Income] = Field(default_factory=list)
    expenses: List[Expense] = Field(default_factory=list)
    goals: List[Goal] = Field(default_factory=list)
    policies: List[Insurance] = Field(default_factory=list)
    repayments: List[LoanRepayment] = Field(default_factory=list)
    flagged_loans: List[str] = Field(default_factory=list)
    excluded_records: List[str] = Field(default_factory=list)
    unscheduled_goals: List[str] = Field(default_factory=list)


class RetirementProjectionService:
    """Service for projecting a user's retirement corpus."""

    def __init__(
        self, repository: PlannerRepository, settings: Optional[Settings] = None
    ) -> None:
        """Initialize the projection service.

        Args:
            repository: Store the user's records are read from
            settings: Source of default rates; the global settings when omitted
        """
        self.repository = repository
        self.settings = settings or get_global_settings()
        self.logger = logging.getLogger(__name__)

    def generate_retirement_matrix(
        self,
        user_id: str,
        scenario_id: Optional[str] = None,
        as_of: Optional[date] = None,
    ) -> RetirementMatrix:
        """Project a user's retirement corpus.

        Args:
            user_id: User whose records are projected
            scenario_id: Scenario to use; the user's default scenario when omitted
            as_of: Date the projection starts from; today when omitted

        Returns:
            The retirement matrix

        Raises:
            MissingConfigurationError: If no scenario can be resolved
        """
        as_of = as_of or date.today()
        scenario = self.resolve_scenario(user_id, scenario_id)
        self.logger.info(
            f"Generating retirement matrix for user {user_id} "
            f"with scenario {scenario.id or scenario.name}"
        )

        inputs = self._load_inputs(user_id, scenario, as_of)
        projection, depleted_age = self._simulate(inputs)
        if depleted_age is not None:
            self.logger.info(
                f"Corpus for user {user_id} runs out at age {depleted_age} "
                f"with a shortfall of {projection[-1].shortfall:.2f}"
            )

        timeline = inputs.timeline
        retirement_row = projection[timeline.get_year_index(timeline.retirement_age)]
        corpus_at_retirement = retirement_row.corpus
        final_corpus = projection[-1].corpus
        total_goal_outflow = sum(row.goal_outflow for row in projection)
        gap_analysis = self._analyze_gap(inputs, corpus_at_retirement, total_goal_outflow)

        summary = MatrixSummary(
            user_id=user_id,
            scenario_id=scenario.id,
            scenario_name=scenario.name,
            as_of=as_of,
            current_age=timeline.current_age,
            retirement_age=timeline.retirement_age,
            life_expectancy=timeline.life_expectancy,
            years_to_retirement=timeline.years_to_retirement,
            retirement_years=timeline.retirement_years,
            inflation_rate=inputs.assumptions.inflation_rate,
            corpus_return_rate=inputs.assumptions.corpus_return_rate,
            sip_step_up_percent=inputs.assumptions.sip_step_up_percent,
            withdrawal_rate=inputs.assumptions.withdrawal_rate,
            starting_balances=inputs.balances,
            monthly_sip=inputs.baseline.monthly_sip,
            yearly_contribution=inputs.baseline.yearly_contribution,
            corpus_at_retirement=corpus_at_retirement,
            final_corpus=final_corpus,
            corpus_depleted_age=depleted_age,
            flagged_loans=tuple(inputs.flagged_loans),
            excluded_records=tuple(inputs.excluded_records),
            unscheduled_goals=tuple(inputs.unscheduled_goals),
        )
        matrix = RetirementMatrix(
            summary=summary,
            projection=tuple(projection),
            gap_analysis=gap_analysis,
            retirement_income=self._retirement_income(inputs, corpus_at_retirement),
            step_up_optimization=self._optimize_step_up(
                inputs, corpus_at_retirement, gap_analysis.required_corpus
            ),
            maturing_before_retirement=self._maturing_before_retirement(inputs),
        )

        self.logger.info(
            f"Completed retirement matrix for user {user_id}: "
            f"corpus at retirement {corpus_at_retirement:.2f}, "
            f"final corpus {final_corpus:.2f}"
        )
        return matrix

    def resolve_scenario(
        self, user_id: str, scenario_id: Optional[str] = None
    ) -> RetirementScenario:
        """Find the scenario to project.

        Raises:
            MissingConfigurationError: If the requested scenario does not exist
                or belongs to someone else, or the user has no default scenario
        """
        if scenario_id is not None:
            scenario = self.repository.find_scenario(scenario_id)
            if scenario is None or scenario.user_id != user_id:
                raise MissingConfigurationError(
                    f"Retirement scenario {scenario_id} not found for user {user_id}"
                )
            return scenario

        scenario = self.repository.find_default_scenario(user_id)
        if scenario is None:
            raise MissingConfigurationError(
                f"No default retirement scenario configured for user {user_id}"
            )
        return scenario

    def resolve_assumptions(self, scenario: RetirementScenario) -> ProjectionAssumptions:
        """Fill rates the scenario leaves unset from the configured defaults."""

        def pick(value: Optional[float], default: float) -> float:
            return value if value is not None else default

        return ProjectionAssumptions(
            inflation_rate=pick(
                scenario.inflation_rate, self.settings.default_inflation_rate
            ),
            corpus_return_rate=pick(
                scenario.corpus_return_rate, self.settings.default_corpus_return_rate
            ),
            sip_step_up_percent=pick(
                scenario.sip_step_up_percent, self.settings.default_sip_step_up_percent
            ),
            withdrawal_rate=pick(
                scenario.withdrawal_rate, self.settings.default_withdrawal_rate
            ),
        )

    def _load_inputs(
        self, user_id: str, scenario: RetirementScenario, as_of: date
    ) -> ProjectionInputs:
        holdings, excluded = self._load_holdings(user_id)
        corpus_eligible, emergency_reserve = partition_emergency_funds(holdings)
        repayments, flagged = self._plan_loans(self.repository.list_loans(user_id))

        assumptions = self.resolve_assumptions(scenario)
        timeline = AgeTimeline.from_scenario(scenario, as_of)
        goals, unscheduled_goals = self._schedule_goals(
            self.repository.list_goals(user_id), timeline
        )
        return ProjectionInputs(
            user_id=user_id,
            as_of=as_of,
            scenario=scenario,
            assumptions=assumptions,
            timeline=timeline,
            inflation=InflationAdjuster(
                inflation_rate=assumptions.inflation_rate, base_year=timeline.base_year
            ),
            balances=summarize_holdings(corpus_eligible, emergency_reserve),
            baseline=contribution_baseline(corpus_eligible),
            holdings=holdings,
            incomes=self.repository.list_incomes(user_id),
            expenses=self.repository.list_expenses(user_id),
            goals=goals,
            policies=self.repository.list_insurance(user_id),
            repayments=repayments,
            flagged_loans=flagged,
            excluded_records=excluded,
            unscheduled_goals=unscheduled_goals,
        )

    def _schedule_goals(
        self, goals: List[Goal], timeline: AgeTimeline
    ) -> Tuple[List[Goal], List[str]]:
        """Split goals into those the projection covers and those it cannot."""
        first_year = timeline.base_year
        last_year = timeline.calendar_year_at(len(timeline) - 1)
        scheduled: List[Goal] = []
        unscheduled: List[str] = []
        for goal in goals:
            if len(timeline) > 1 and first_year <= goal.target_year <= last_year:
                scheduled.append(goal)
                continue
            self.logger.warning(
                f"Goal {goal.name} targets {goal.target_year}, outside the "
                f"projected years {first_year}-{last_year}; leaving it out"
            )
            unscheduled.append(goal.name)
        return scheduled, unscheduled

    def _load_holdings(self, user_id: str) -> Tuple[List[Investment], List[str]]:
        """Fetch holdings category by category, leaving out inconsistent ones."""
        holdings: List[Investment] = []
        excluded: List[str] = []
        for investment_type in InvestmentType:
            for investment in self.repository.list_investments(user_id, investment_type):
                try:
                    holdings.append(validate_holding(investment))
                except DataInconsistencyError as e:
                    self.logger.warning(f"Excluding holding from projection: {str(e)}")
                    excluded.append(
                        e.record_id or investment.name or investment_type.value
                    )
        return holdings, excluded

    def _plan_loans(self, loans: List[Loan]) -> Tuple[List[LoanRepayment], List[str]]:
        repayments: List[LoanRepayment] = []
        flagged: List[str] = []
        for loan in loans:
            if loan.is_closed:
                continue
            try:
                schedule = generate_amortization_schedule(loan)
            except NegativeAmortizationError as e:
                self.logger.warning(
                    f"Loan {loan.id or loan.name} does not amortize, "
                    f"holding its balance at {loan.outstanding_amount:.2f}: {str(e)}"
                )
                flagged.append(loan.id or loan.name)
                schedule = None
            repayments.append(LoanRepayment(loan, schedule))
        return repayments, flagged

    def _opening_row(self, inputs: ProjectionInputs) -> ProjectionYear:
        corpus = inputs.balances.investable_corpus
        return ProjectionYear(
            year_index=0,
            age=inputs.timeline.current_age,
            calendar_year=inputs.timeline.base_year,
            phase=inputs.timeline.phase_at(0),
            opening_corpus=corpus,
            monthly_sip=inputs.baseline.monthly_sip,
            outstanding_loans=sum(r.loan.outstanding_amount for r in inputs.repayments),
            corpus=corpus,
            emergency_fund=inputs.balances.emergency_fund,
        )

    def _simulate(
        self, inputs: ProjectionInputs, step_up_stop_year: Optional[int] = None
    ) -> Tuple[List[ProjectionYear], Optional[int]]:
        """Run the year-by-year projection.

        Args:
            inputs: Loaded projection inputs
            step_up_stop_year: Last year whose SIP is stepped up; the SIP stays
                flat after it. Steps up until retirement when omitted.

        Returns:
            Rows in age order, and the age at which the corpus ran out during
            retirement (None if it lasts)
        """
        timeline = inputs.timeline
        inflation = inputs.inflation
        rates = inputs.assumptions
        base_year = timeline.base_year

        rows = [self._opening_row(inputs)]
        corpus = inputs.balances.investable_corpus

        for year_index in range(1, len(timeline)):
            age = timeline.age_at(year_index)
            year = timeline.calendar_year_at(year_index)
            accumulating = timeline.is_accumulation_year(year_index)

            growth = corpus * rates.corpus_return_rate / 100

            goals = [
                g for g in inputs.goals
                if _year_index_for(g.target_year, base_year) == year_index
            ]
            goal_outflow = sum(
                inflation.to_nominal_value(g.target_amount, g.target_year) for g in goals
            )
            maturing = [
                p for p in inputs.policies
                if _maturity_year_index(p, inputs.as_of) == year_index
            ]
            insurance_inflow = sum(p.maturity_amount for p in maturing)

            loan_emi = sum(r.emi_in_year(year_index) for r in inputs.repayments)
            outstanding = sum(r.balance_after_year(year_index) for r in inputs.repayments)
            expenses = sum(
                inflation.to_nominal_value(e.amount_in_year(year, base_year), year)
                for e in inputs.expenses
            )

            if accumulating:
                premiums = sum(
                    inflation.to_nominal_value(p.annual_premium, year)
                    for p in inputs.policies
                    if p.premium_due_in(year)
                )
                step_ups = year_index - 1
                if step_up_stop_year is not None:
                    step_ups = min(year_index, step_up_stop_year) - 1
                monthly_sip = inputs.baseline.monthly_sip * (
                    1 + rates.sip_step_up_percent / 100
                ) ** step_ups
                yearly_amounts = (
                    inputs.baseline.yearly_contribution + inputs.scenario.lumpsum_amount
                )
                contributions = (
                    calculate_sip_future_value(monthly_sip, rates.corpus_return_rate, 1)
                    + yearly_amounts
                )
                income = sum(i.annual_amount_after(year_index) for i in inputs.incomes)
                invested = monthly_sip * MONTHS_PER_YEAR + yearly_amounts
                annual_surplus = income - expenses - premiums - loan_emi - invested
                withdrawal = 0.0
            else:
                premiums = sum(
                    inflation.to_nominal_value(p.annual_premium, year)
                    for p in inputs.policies
                    if p.premium_due_in(year) and p.premium_continues_after_retirement()
                )
                monthly_sip = contributions = income = annual_surplus = 0.0
                withdrawal = expenses + premiums + loan_emi

            closing = (
                corpus + growth + contributions + insurance_inflow
                - goal_outflow - withdrawal
            )
            shortfall = max(-closing, 0.0)
            closing = max(closing, 0.0)

            rows.append(
                ProjectionYear(
                    year_index=year_index,
                    age=age,
                    calendar_year=year,
                    phase=timeline.phase_at(year_index),
                    opening_corpus=corpus,
                    growth=growth,
                    monthly_sip=monthly_sip,
                    contributions=contributions,
                    income=income,
                    expenses=expenses,
                    insurance_premiums=premiums,
                    loan_emi=loan_emi,
                    outstanding_loans=outstanding,
                    goal_outflow=goal_outflow,
                    goals_this_year=tuple(g.name for g in goals),
                    insurance_inflow=insurance_inflow,
                    maturing_policies=tuple(p.policy_name for p in maturing),
                    withdrawal=withdrawal,
                    annual_surplus=annual_surplus,
                    shortfall=shortfall,
                    corpus=closing,
                    emergency_fund=inputs.balances.emergency_fund,
                )
            )

            if not accumulating and closing == 0 and (corpus > 0 or shortfall > 0):
                return rows, age

            corpus = closing

        return rows, None

    def _yearly_expense_at_retirement(self, inputs: ProjectionInputs) -> float:
        """Recurring expenses and continuing premiums, priced in the retirement year."""
        retirement_year = inputs.timeline.retirement_year
        base_year = inputs.timeline.base_year
        yearly_today = sum(
            e.yearly_amount
            for e in inputs.expenses
            if e.frequency != "ONE_TIME" and e.is_active_in(retirement_year, base_year)
        )
        yearly_today += sum(
            p.annual_premium
            for p in inputs.policies
            if p.premium_continues_after_retirement() and p.premium_due_in(retirement_year)
        )
        return inputs.inflation.to_nominal_value(yearly_today, retirement_year)

    def _required_corpus(self, inputs: ProjectionInputs, yearly_expense: float) -> float:
        strategy = inputs.scenario.income_strategy
        if strategy == "SIMPLE_DEPLETION":
            return sum(
                inputs.inflation.inflate_by(yearly_expense, year)
                for year in range(inputs.timeline.retirement_years)
            )
        if strategy == "SAFE_4_PERCENT":
            return yearly_expense * SAFE_WITHDRAWAL_MULTIPLE
        withdrawal_rate = inputs.assumptions.withdrawal_rate
        if withdrawal_rate > 0:
            return yearly_expense / (withdrawal_rate / 100)
        return yearly_expense * SAFE_WITHDRAWAL_MULTIPLE

    def _analyze_gap(
        self,
        inputs: ProjectionInputs,
        corpus_at_retirement: float,
        total_goal_outflow: float,
    ) -> GapAnalysis:
        """Compare the projected corpus with what the income strategy needs.

        Goals are already taken out of the corpus in the projection, so they
        are reported but not added to the required corpus.
        """
        timeline = inputs.timeline
        yearly_expense = self._yearly_expense_at_retirement(inputs)
        required_corpus = self._required_corpus(inputs, yearly_expense)
        corpus_gap = required_corpus - corpus_at_retirement

        additional_monthly_sip = 0.0
        if corpus_gap > 0:
            additional_monthly_sip = calculate_required_sip(
                corpus_gap,
                inputs.assumptions.corpus_return_rate,
                timeline.years_to_retirement,
            )

        monthly_freed = 0.0
        for expense in inputs.expenses:
            end_year = expense.end_year(timeline.base_year)
            if end_year is not None and end_year < timeline.retirement_year:
                monthly_freed += expense.monthly_equivalent

        return GapAnalysis(
            income_strategy=inputs.scenario.income_strategy,
            monthly_expense_at_retirement=yearly_expense / MONTHS_PER_YEAR,
            yearly_expense_at_retirement=yearly_expense,
            required_corpus=required_corpus,
            projected_corpus=corpus_at_retirement,
            corpus_gap=corpus_gap,
            gap_percent=corpus_gap / required_corpus * 100 if required_corpus > 0 else 0.0,
            is_on_track=corpus_gap <= 0,
            additional_monthly_sip=additional_monthly_sip,
            total_goal_outflow=total_goal_outflow,
            monthly_freed_before_retirement=monthly_freed,
        )

    def _retirement_income(
        self, inputs: ProjectionInputs, corpus_at_retirement: float
    ) -> RetirementIncome:
        """Monthly income the corpus at retirement supports under each strategy."""
        strategy = inputs.scenario.income_strategy
        retirement_years = inputs.timeline.retirement_years
        return_rate = inputs.assumptions.corpus_return_rate / 100
        withdrawal_rate = inputs.assumptions.withdrawal_rate / 100

        simple_depletion = (
            corpus_at_retirement / retirement_years / MONTHS_PER_YEAR
            if retirement_years > 0
            else 0.0
        )
        safe_4_percent = corpus_at_retirement * SAFE_WITHDRAWAL_RATE / 100 / MONTHS_PER_YEAR
        sustainable = corpus_at_retirement * withdrawal_rate / MONTHS_PER_YEAR
        selected = {
            "SIMPLE_DEPLETION": simple_depletion,
            "SAFE_4_PERCENT": safe_4_percent,
            "SUSTAINABLE": sustainable,
        }[strategy]

        milestones: List[IncomeMilestone] = []
        corpus = corpus_at_retirement
        horizon = min(retirement_years, INCOME_MILESTONE_HORIZON)
        for year in range(0, horizon + 1, INCOME_MILESTONE_STEP):
            remaining = retirement_years - year
            if strategy == "SIMPLE_DEPLETION":
                monthly_income = corpus / remaining / MONTHS_PER_YEAR if remaining > 0 else 0.0
            elif strategy == "SAFE_4_PERCENT":
                monthly_income = safe_4_percent
            else:
                monthly_income = corpus * withdrawal_rate / MONTHS_PER_YEAR
            milestones.append(
                IncomeMilestone(
                    years_into_retirement=year,
                    age=inputs.timeline.retirement_age + year,
                    corpus=corpus,
                    monthly_income=monthly_income,
                )
            )

            for _ in range(min(INCOME_MILESTONE_STEP, remaining)):
                if strategy == "SIMPLE_DEPLETION":
                    corpus -= monthly_income * MONTHS_PER_YEAR
                elif strategy == "SAFE_4_PERCENT":
                    corpus = corpus * (1 + return_rate) - monthly_income * MONTHS_PER_YEAR
                else:
                    corpus = corpus * (1 + return_rate) - corpus * withdrawal_rate
                corpus = max(corpus, 0.0)

        return RetirementIncome(
            income_strategy=strategy,
            monthly_simple_depletion=simple_depletion,
            monthly_safe_4_percent=safe_4_percent,
            monthly_sustainable=sustainable,
            selected_monthly_income=selected,
            milestones=tuple(milestones),
        )

    def _optimize_step_up(
        self,
        inputs: ProjectionInputs,
        projected_corpus: float,
        required_corpus: float,
    ) -> StepUpOptimization:
        """Find the earliest year the SIP step-up can stop with the target still met.

        Each candidate stop year reruns the projection with the SIP held flat
        after that year and compares the corpus at retirement with the
        required corpus.
        """
        timeline = inputs.timeline
        years = timeline.years_to_retirement
        step_up_percent = inputs.assumptions.sip_step_up_percent
        start_sip = inputs.baseline.monthly_sip

        def sip_held_after(stop_year: int) -> float:
            return start_sip * (1 + step_up_percent / 100) ** max(stop_year - 1, 0)

        common = dict(
            step_up_percent=step_up_percent,
            required_corpus=required_corpus,
            projected_corpus=projected_corpus,
            monthly_sip_at_start=start_sip,
            monthly_sip_at_full_step_up=sip_held_after(years),
        )
        if step_up_percent <= 0 or years <= 0 or start_sip <= 0:
            return StepUpOptimization(reason="No SIP step-up to optimize", **common)
        if projected_corpus < required_corpus:
            return StepUpOptimization(
                reason="Projected corpus is below the required corpus; keep stepping up",
                **common,
            )

        options: List[StepUpStopOption] = []
        for stop_year in range(1, years + 1):
            if stop_year == years:
                corpus = projected_corpus
            else:
                rows, _ = self._simulate(inputs, step_up_stop_year=stop_year)
                corpus = rows[years].corpus
            options.append(
                StepUpStopOption(
                    stop_year=stop_year,
                    age=timeline.age_at(stop_year),
                    calendar_year=timeline.calendar_year_at(stop_year),
                    final_monthly_sip=sip_held_after(stop_year),
                    projected_corpus=corpus,
                    meets_target=corpus >= required_corpus,
                    surplus=corpus - required_corpus,
                )
            )

        # The last option is the full step-up, which meets the target here
        optimal = next(option for option in options if option.meets_target)
        can_stop_early = optimal.stop_year < years
        if can_stop_early:
            reason = (
                f"Step-up can stop after year {optimal.stop_year} "
                f"(age {optimal.age}) and the required corpus is still met"
            )
        else:
            reason = "Keep stepping up until retirement to meet the required corpus"

        return StepUpOptimization(
            can_stop_early=can_stop_early,
            optimal_stop_year=optimal.stop_year,
            optimal_stop_age=optimal.age,
            corpus_at_optimal_stop=optimal.projected_corpus,
            monthly_sip_at_optimal_stop=optimal.final_monthly_sip,
            monthly_relief=sip_held_after(years) - optimal.final_monthly_sip,
            reason=reason,
            options=tuple(options),
            **common,
        )

    def _maturing_before_retirement(
        self, inputs: ProjectionInputs
    ) -> MaturingBeforeRetirement:
        retirement_date = add_years(inputs.as_of, inputs.timeline.years_to_retirement)
        return maturing_before_retirement(
            inputs.holdings, inputs.policies, inputs.as_of, retirement_date
        )

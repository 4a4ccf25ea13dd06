"""Data models and formulas for financial planning."""

from .records import (
    Expense,
    Goal,
    Income,
    Insurance,
    Investment,
    InvestmentType,
    Loan,
    RetirementScenario,
)
from .amortization import (
    AmortizationSchedule,
    PaymentBreakdown,
    generate_amortization_schedule,
)
from .aggregation import (
    ContributionBaseline,
    contribution_baseline,
    partition_emergency_funds,
    summarize_holdings,
    validate_holding,
)
from .timeline import AgeTimeline, InflationAdjuster
from .matrix import (
    GapAnalysis,
    IncomeMilestone,
    MaturingBeforeRetirement,
    MaturingItem,
    MatrixSummary,
    ProjectionYear,
    RetirementIncome,
    RetirementMatrix,
    StartingBalances,
    StepUpOptimization,
    StepUpStopOption,
)
from .maturity import expected_maturity_value, maturing_before_retirement

__all__ = [
    "Expense",
    "Goal",
    "Income",
    "Insurance",
    "Investment",
    "InvestmentType",
    "Loan",
    "RetirementScenario",
    "AmortizationSchedule",
    "PaymentBreakdown",
    "generate_amortization_schedule",
    "ContributionBaseline",
    "contribution_baseline",
    "partition_emergency_funds",
    "summarize_holdings",
    "validate_holding",
    "AgeTimeline",
    "InflationAdjuster",
    "GapAnalysis",
    "IncomeMilestone",
    "MatrixSummary",
    "ProjectionYear",
    "RetirementIncome",
    "RetirementMatrix",
    "StartingBalances",
    "MaturingBeforeRetirement",
    "MaturingItem",
    "StepUpOptimization",
    "StepUpStopOption",
    "expected_maturity_value",
    "maturing_before_retirement",
]

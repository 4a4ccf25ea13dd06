"""
Holding aggregation for retirement projections.

Turns a user's holdings into the opening balances of a projection. Deposits
tagged as an emergency reserve are kept out of the investable corpus; that
rule lives in partition_emergency_funds and nowhere else.
"""

from typing import Dict, Iterable, List, Tuple

from pydantic import BaseModel, Field

from finplan.exceptions import DataInconsistencyError

from .matrix import StartingBalances
from .records import Investment, InvestmentType


class ContributionBaseline(BaseModel):
    """Recurring contributions into the corpus at the start of the projection."""

    monthly_sip: float = Field(default=0, ge=0, description="Total monthly SIPs")
    yearly_contribution: float = Field(
        default=0, ge=0, description="Total yearly contributions"
    )


def validate_holding(investment: Investment) -> Investment:
    """
    Check that a holding can be counted.

    Args:
        investment: Holding as stored

    Returns:
        The same holding

    Raises:
        DataInconsistencyError: If the value is missing or negative, or the
            holding carries an emergency tag its type cannot have
    """
    value = investment.value
    label = investment.id or investment.name or investment.type.value
    if value is None:
        raise DataInconsistencyError(
            f"Holding {label} has neither a current value nor an invested amount",
            record_id=investment.id,
        )
    if value < 0:
        raise DataInconsistencyError(
            f"Holding {label} has a negative value {value}", record_id=investment.id
        )
    if investment.is_emergency_fund and not investment.type.supports_emergency_tag:
        raise DataInconsistencyError(
            f"Holding {label} of type {investment.type.value} cannot be an emergency fund",
            record_id=investment.id,
        )
    return investment


def is_emergency_reserve(investment: Investment) -> bool:
    return investment.is_emergency_fund and investment.type.supports_emergency_tag


def partition_emergency_funds(
    investments: Iterable[Investment],
) -> Tuple[List[Investment], List[Investment]]:
    """Split holdings into (corpus_eligible, emergency_reserve)."""
    corpus_eligible: List[Investment] = []
    emergency_reserve: List[Investment] = []
    for investment in investments:
        if is_emergency_reserve(investment):
            emergency_reserve.append(investment)
        else:
            corpus_eligible.append(investment)
    return corpus_eligible, emergency_reserve


def summarize_holdings(
    corpus_eligible: Iterable[Investment], emergency_reserve: Iterable[Investment]
) -> StartingBalances:
    """
    Total the partitioned holdings by category.

    Args:
        corpus_eligible: Holdings that make up the investable corpus
        emergency_reserve: Deposits set aside as an emergency fund

    Returns:
        Starting balances with the emergency fund reported on its own
    """
    totals: Dict[str, float] = {t.value.lower(): 0.0 for t in InvestmentType}
    for investment in corpus_eligible:
        totals[investment.type.value.lower()] += investment.value or 0.0

    emergency_fund = sum(investment.value or 0.0 for investment in emergency_reserve)
    return StartingBalances(
        **totals,
        emergency_fund=emergency_fund,
        investable_corpus=sum(totals.values()),
    )


def contribution_baseline(corpus_eligible: Iterable[Investment]) -> ContributionBaseline:
    """Sum SIPs and yearly contributions of the corpus-eligible holdings."""
    monthly_sip = 0.0
    yearly_contribution = 0.0
    for investment in corpus_eligible:
        monthly_sip += investment.monthly_sip
        yearly_contribution += investment.yearly_contribution
    return ContributionBaseline(
        monthly_sip=monthly_sip, yearly_contribution=yearly_contribution
    )

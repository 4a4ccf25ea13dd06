"""
Holdings and policies that mature before retirement.

Deposits, PPF accounts and investment-linked policies pay out on a fixed
date. Anything paying out between the projection date and the retirement
date frees up money the user has to reinvest, so it is listed separately
from the corpus projection with the value expected on the maturity date.
"""

from datetime import date
from typing import Iterable, List

from .calculations import (
    calculate_future_value,
    calculate_ppf_maturity,
    calculate_sip_future_value,
)
from .matrix import MaturingBeforeRetirement, MaturingItem
from .records import Insurance, Investment, InvestmentType

# Growth assumed when a holding carries no rate of its own (%)
DEFAULT_FD_RATE = 7.0
DEFAULT_RD_RATE = 6.5
DEFAULT_PPF_RATE = 7.1
DEFAULT_HOLDING_RETURN = 7.0
DEFAULT_ULIP_RETURN = 8.0


def add_years(start: date, years: int) -> date:
    """Same day `years` later; 29 February falls back to the 28th."""
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        return start.replace(year=start.year + years, day=28)


def whole_years_between(start: date, end: date) -> int:
    """Completed years from `start` to `end`."""
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return years


def expected_maturity_value(investment: Investment, as_of: date) -> float:
    """Value of a holding on its maturity date.

    Fixed deposits compound at their interest rate. Recurring deposits add
    the future value of their remaining installments, and PPF accounts keep
    receiving their yearly contribution. Anything else grows at its expected
    return.
    """
    current = investment.value or 0.0
    if investment.maturity_date is None:
        return current
    years = whole_years_between(as_of, investment.maturity_date)
    if years <= 0:
        return current

    if investment.type == InvestmentType.FD:
        rate = investment.interest_rate if investment.interest_rate is not None else DEFAULT_FD_RATE
        return calculate_future_value(current, rate, years)
    if investment.type == InvestmentType.RD:
        rate = investment.interest_rate if investment.interest_rate is not None else DEFAULT_RD_RATE
        return calculate_future_value(current, rate, years) + calculate_sip_future_value(
            investment.monthly_sip, rate, years
        )
    if investment.type == InvestmentType.PPF:
        rate = (
            investment.expected_return
            if investment.expected_return is not None
            else DEFAULT_PPF_RATE
        )
        return calculate_ppf_maturity(current, investment.yearly_contribution, rate, years)

    rate = (
        investment.expected_return
        if investment.expected_return is not None
        else DEFAULT_HOLDING_RETURN
    )
    return calculate_future_value(current, rate, years)


def expected_policy_payout(policy: Insurance, as_of: date) -> float:
    """Payout of an investment-linked policy on its maturity date.

    A stated maturity benefit wins; otherwise a ULIP's fund value is grown
    to the maturity date.
    """
    if policy.maturity_benefit is not None:
        return policy.maturity_benefit
    if policy.type == "ULIP" and policy.fund_value and policy.maturity_date is not None:
        years = whole_years_between(as_of, policy.maturity_date)
        return calculate_future_value(policy.fund_value, DEFAULT_ULIP_RETURN, max(years, 0))
    return policy.maturity_amount


def _matures_between(maturity_date, as_of: date, retirement_date: date) -> bool:
    return maturity_date is not None and as_of < maturity_date < retirement_date


def maturing_before_retirement(
    holdings: Iterable[Investment],
    policies: Iterable[Insurance],
    as_of: date,
    retirement_date: date,
) -> MaturingBeforeRetirement:
    """
    Collect holdings and policies paying out strictly between two dates.

    Args:
        holdings: Validated holdings, emergency deposits included
        policies: The user's insurance policies
        as_of: Projection date
        retirement_date: Date the user retires

    Returns:
        Maturing items in date order with their total expected value
    """
    investments: List[MaturingItem] = []
    for investment in holdings:
        if not _matures_between(investment.maturity_date, as_of, retirement_date):
            continue
        investments.append(
            MaturingItem(
                record_id=investment.id,
                name=investment.name or investment.type.value,
                kind="INVESTMENT",
                type=investment.type.value,
                maturity_date=investment.maturity_date,
                years_to_maturity=whole_years_between(as_of, investment.maturity_date),
                current_value=investment.value or 0.0,
                expected_maturity_value=expected_maturity_value(investment, as_of),
            )
        )

    insurance: List[MaturingItem] = []
    for policy in policies:
        if not policy.has_maturity:
            continue
        if not _matures_between(policy.maturity_date, as_of, retirement_date):
            continue
        insurance.append(
            MaturingItem(
                record_id=policy.id,
                name=policy.policy_name or policy.type,
                kind="INSURANCE",
                type=policy.type,
                maturity_date=policy.maturity_date,
                years_to_maturity=whole_years_between(as_of, policy.maturity_date),
                current_value=policy.fund_value or 0.0,
                expected_maturity_value=expected_policy_payout(policy, as_of),
            )
        )

    investments.sort(key=lambda item: item.maturity_date)
    insurance.sort(key=lambda item: item.maturity_date)
    return MaturingBeforeRetirement(
        retirement_date=retirement_date,
        investments=tuple(investments),
        insurance=tuple(insurance),
        total_maturing_value=sum(
            item.expected_maturity_value for item in investments + insurance
        ),
    )

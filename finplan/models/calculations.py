"""
Financial formulas used by the planner.

Every function here is pure: no I/O and no shared state. Rates are annual
percentages (8.5 means 8.5%). A non-positive time horizon is treated as the
identity case rather than an error, because zero-duration projections are a
normal input. Values outside a formula's domain raise InvalidInputError.
Results are never rounded.
"""

import math

import numpy as np

from finplan.exceptions import InvalidInputError

MONTHS_PER_YEAR = 12


def _require_finite(**values: float) -> None:
    for name, value in values.items():
        if value is None or not math.isfinite(value):
            raise InvalidInputError(f"{name} must be a finite number, got {value!r}")


def _require_rate(name: str, rate_pct: float) -> None:
    if rate_pct <= -100:
        raise InvalidInputError(f"{name} must be greater than -100%, got {rate_pct}")


def _monthly_rate(annual_rate_pct: float) -> float:
    return annual_rate_pct / 100 / MONTHS_PER_YEAR


def _annuity_due_factor(monthly_rate: float, months: int) -> float:
    """Future value of 1 paid at the start of each of `months` periods."""
    if monthly_rate == 0:
        return float(months)
    growth = (1 + monthly_rate) ** months
    return ((growth - 1) / monthly_rate) * (1 + monthly_rate)


def calculate_future_value(principal: float, annual_rate_pct: float, years: float) -> float:
    """
    Future value of a lumpsum compounded yearly.

    Args:
        principal: Amount invested today
        annual_rate_pct: Annual return (%)
        years: Investment horizon in years

    Returns:
        principal * (1 + rate) ** years
    """
    _require_finite(principal=principal, annual_rate_pct=annual_rate_pct, years=years)
    if years <= 0:
        return principal
    _require_rate("annual_rate_pct", annual_rate_pct)
    if annual_rate_pct == 0:
        return principal
    return principal * (1 + annual_rate_pct / 100) ** years


def calculate_sip_future_value(
    monthly_amount: float, annual_rate_pct: float, years: int
) -> float:
    """
    Future value of a level monthly SIP.

    Contributions are made at the start of each month and compounded monthly,
    i.e. the future value of an annuity due.

    Args:
        monthly_amount: Amount invested every month
        annual_rate_pct: Annual return (%)
        years: Number of years of contributions

    Returns:
        monthly_amount * [((1 + r) ** n - 1) / r] * (1 + r)
    """
    _require_finite(
        monthly_amount=monthly_amount, annual_rate_pct=annual_rate_pct, years=years
    )
    if monthly_amount < 0:
        raise InvalidInputError(f"monthly_amount cannot be negative, got {monthly_amount}")
    if years <= 0 or monthly_amount == 0:
        return 0.0
    _require_rate("annual_rate_pct", annual_rate_pct)
    months = int(years * MONTHS_PER_YEAR)
    return monthly_amount * _annuity_due_factor(_monthly_rate(annual_rate_pct), months)


def calculate_step_up_sip_future_value(
    monthly_amount: float, annual_rate_pct: float, step_up_pct: float, years: int
) -> float:
    """
    Future value of a SIP whose monthly amount rises every year.

    The first year's contribution is `monthly_amount`; each following year
    contributes `step_up_pct` more per month than the year before. Every
    monthly contribution is grown to the end of the horizon and summed.

    Steps happen once a year, so a one-year horizon has no step and equals
    the level SIP; for `years >= 2` and `step_up_pct > 0` the value is
    strictly greater.

    Args:
        monthly_amount: Monthly amount in the first year
        annual_rate_pct: Annual return (%)
        step_up_pct: Yearly increase of the monthly amount (%)
        years: Number of years of contributions

    Returns:
        Terminal value of all contributions
    """
    _require_finite(
        monthly_amount=monthly_amount,
        annual_rate_pct=annual_rate_pct,
        step_up_pct=step_up_pct,
        years=years,
    )
    if monthly_amount < 0:
        raise InvalidInputError(f"monthly_amount cannot be negative, got {monthly_amount}")
    if years <= 0 or monthly_amount == 0:
        return 0.0
    _require_rate("annual_rate_pct", annual_rate_pct)
    _require_rate("step_up_pct", step_up_pct)
    if step_up_pct == 0:
        return calculate_sip_future_value(monthly_amount, annual_rate_pct, years)

    months = int(years * MONTHS_PER_YEAR)
    month_index = np.arange(months)
    contributions = monthly_amount * (1 + step_up_pct / 100) ** (
        month_index // MONTHS_PER_YEAR
    )
    growth = (1 + _monthly_rate(annual_rate_pct)) ** (months - month_index)
    return float(np.sum(contributions * growth))


def calculate_required_sip(target_amount: float, annual_rate_pct: float, years: int) -> float:
    """
    Monthly SIP needed to reach a target, the inverse of the level SIP formula.

    Args:
        target_amount: Amount needed at the end of the horizon
        annual_rate_pct: Annual return (%)
        years: Years available to invest

    Returns:
        Monthly contribution; the full target when no time is left
    """
    _require_finite(
        target_amount=target_amount, annual_rate_pct=annual_rate_pct, years=years
    )
    if target_amount < 0:
        raise InvalidInputError(f"target_amount cannot be negative, got {target_amount}")
    if years <= 0:
        return target_amount
    _require_rate("annual_rate_pct", annual_rate_pct)
    months = int(years * MONTHS_PER_YEAR)
    return target_amount / _annuity_due_factor(_monthly_rate(annual_rate_pct), months)


def calculate_inflated_value(amount: float, inflation_rate_pct: float, years: float) -> float:
    """Future cost of `amount` after `years` of inflation."""
    return calculate_future_value(amount, inflation_rate_pct, years)


def calculate_cagr(begin_value: float, end_value: float, years: float) -> float:
    """
    Compound annual growth rate between two values.

    Args:
        begin_value: Value at the start
        end_value: Value at the end
        years: Duration in years

    Returns:
        CAGR in percent; 0 when the duration or the starting value is not positive
    """
    _require_finite(begin_value=begin_value, end_value=end_value, years=years)
    if years <= 0 or begin_value <= 0:
        return 0.0
    if end_value < 0:
        raise InvalidInputError(f"end_value cannot be negative, got {end_value}")
    return ((end_value / begin_value) ** (1 / years) - 1) * 100


def calculate_absolute_returns(invested: float, current_value: float) -> float:
    """Simple percentage gain or loss on the invested amount."""
    _require_finite(invested=invested, current_value=current_value)
    if invested <= 0:
        return 0.0
    return ((current_value - invested) / invested) * 100


def calculate_emi(principal: float, annual_rate_pct: float, tenure_months: int) -> float:
    """
    Equated monthly installment that fully repays a loan.

    Args:
        principal: Loan amount
        annual_rate_pct: Annual nominal interest rate (%)
        tenure_months: Number of monthly installments

    Returns:
        P * r * (1 + r) ** n / ((1 + r) ** n - 1)
    """
    _require_finite(
        principal=principal, annual_rate_pct=annual_rate_pct, tenure_months=tenure_months
    )
    if principal <= 0:
        return 0.0
    if tenure_months <= 0:
        return principal
    if annual_rate_pct < 0:
        raise InvalidInputError(f"annual_rate_pct cannot be negative, got {annual_rate_pct}")
    if annual_rate_pct == 0:
        return principal / tenure_months

    monthly_rate = _monthly_rate(annual_rate_pct)
    growth = (1 + monthly_rate) ** tenure_months
    return principal * monthly_rate * growth / (growth - 1)


def calculate_ppf_maturity(
    current_balance: float,
    yearly_contribution: float,
    annual_rate_pct: float,
    years: int,
) -> float:
    """
    Maturity value of a PPF account.

    Each year the contribution is deposited first and the whole balance then
    earns a year's interest.

    Args:
        current_balance: Balance today
        yearly_contribution: Amount deposited at the start of every year
        annual_rate_pct: Annual interest rate (%)
        years: Years until maturity

    Returns:
        Balance at maturity
    """
    _require_finite(
        current_balance=current_balance,
        yearly_contribution=yearly_contribution,
        annual_rate_pct=annual_rate_pct,
        years=years,
    )
    if years <= 0:
        return current_balance
    if yearly_contribution < 0:
        raise InvalidInputError(
            f"yearly_contribution cannot be negative, got {yearly_contribution}"
        )
    _require_rate("annual_rate_pct", annual_rate_pct)

    growth = 1 + annual_rate_pct / 100
    balance = current_balance
    for _ in range(int(years)):
        balance = (balance + yearly_contribution) * growth
    return balance

"""
Tests for maturity values and the maturing-before-retirement summary.
"""

from datetime import date

import pytest

from finplan.models.calculations import (
    calculate_future_value,
    calculate_sip_future_value,
)
from finplan.models.maturity import (
    add_years,
    expected_maturity_value,
    expected_policy_payout,
    maturing_before_retirement,
    whole_years_between,
)
from finplan.models.records import Insurance, Investment, InvestmentType

USER_ID = "user-1"
AS_OF = date(2025, 1, 1)
RETIREMENT = date(2030, 1, 1)


def make_holding(investment_type, value=100000.0, **extra) -> Investment:
    return Investment(
        user_id=USER_ID, type=investment_type, current_value=value, **extra
    )


def make_policy(policy_type, **extra) -> Insurance:
    return Insurance(user_id=USER_ID, type=policy_type, **extra)


class TestDates:
    """Test calendar helpers."""

    def test_leap_day_falls_back_to_28th(self):
        assert add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)
        assert add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)

    def test_whole_years_between(self):
        assert whole_years_between(AS_OF, date(2027, 1, 1)) == 2
        assert whole_years_between(AS_OF, date(2026, 12, 31)) == 1
        assert whole_years_between(date(2025, 6, 1), date(2025, 12, 1)) == 0


class TestExpectedMaturityValue:
    """Test the value a holding is expected to reach on its maturity date."""

    def test_fixed_deposit_compounds_at_its_rate(self):
        fd = make_holding(
            InvestmentType.FD, interest_rate=8.0, maturity_date=date(2027, 1, 1)
        )
        assert expected_maturity_value(fd, AS_OF) == pytest.approx(116640)

    def test_recurring_deposit_adds_remaining_installments(self):
        rd = make_holding(
            InvestmentType.RD,
            value=10000.0,
            monthly_sip=1000,
            maturity_date=date(2027, 1, 1),
        )
        expected = calculate_future_value(10000, 6.5, 2) + calculate_sip_future_value(
            1000, 6.5, 2
        )
        assert expected_maturity_value(rd, AS_OF) == pytest.approx(expected)

    def test_ppf_keeps_receiving_contributions(self):
        ppf = make_holding(
            InvestmentType.PPF,
            yearly_contribution=150000,
            maturity_date=date(2026, 1, 1),
        )
        assert expected_maturity_value(ppf, AS_OF) == pytest.approx(267750)

    def test_other_holdings_grow_at_expected_return(self):
        fund = make_holding(
            InvestmentType.MUTUAL_FUND,
            expected_return=10.0,
            maturity_date=date(2027, 3, 1),
        )
        assert expected_maturity_value(fund, AS_OF) == pytest.approx(121000)

    @pytest.mark.parametrize("maturity_date", [None, date(2025, 9, 1)])
    def test_no_full_year_left_keeps_current_value(self, maturity_date):
        fd = make_holding(InvestmentType.FD, maturity_date=maturity_date)
        assert expected_maturity_value(fd, AS_OF) == 100000


class TestExpectedPolicyPayout:
    """Test policy payouts on maturity."""

    def test_stated_benefit_wins(self):
        policy = make_policy(
            "ULIP",
            maturity_benefit=500000,
            fund_value=100000,
            maturity_date=date(2027, 1, 1),
        )
        assert expected_policy_payout(policy, AS_OF) == 500000

    def test_ulip_fund_value_grows_to_maturity(self):
        policy = make_policy(
            "ULIP", fund_value=100000, maturity_date=date(2027, 1, 1)
        )
        assert expected_policy_payout(policy, AS_OF) == pytest.approx(116640)


class TestMaturingBeforeRetirement:
    """Test the summary of payouts due before retirement."""

    def test_window_excludes_both_ends(self):
        holdings = [
            make_holding(InvestmentType.FD, name="Today", maturity_date=AS_OF),
            make_holding(InvestmentType.FD, name="Inside", maturity_date=date(2026, 5, 1)),
            make_holding(InvestmentType.FD, name="Retirement", maturity_date=RETIREMENT),
            make_holding(InvestmentType.MUTUAL_FUND, name="Open ended"),
        ]

        summary = maturing_before_retirement(holdings, [], AS_OF, RETIREMENT)

        assert [item.name for item in summary.investments] == ["Inside"]
        assert summary.investments[0].kind == "INVESTMENT"
        assert summary.retirement_date == RETIREMENT

    def test_items_are_sorted_and_totalled(self):
        holdings = [
            make_holding(
                InvestmentType.RD,
                name="Later",
                value=20000.0,
                maturity_date=date(2025, 11, 1),
            ),
            make_holding(
                InvestmentType.FD,
                name="Sooner",
                value=30000.0,
                maturity_date=date(2025, 7, 1),
            ),
        ]
        policies = [
            make_policy(
                "MONEY_BACK",
                policy_name="Money back",
                maturity_date=date(2028, 4, 1),
                maturity_benefit=250000,
            ),
            make_policy(
                "ENDOWMENT",
                policy_name="Endowment",
                maturity_date=date(2026, 4, 1),
                maturity_benefit=150000,
            ),
            make_policy("TERM_LIFE", maturity_date=date(2027, 1, 1), annual_premium=12000),
        ]

        summary = maturing_before_retirement(holdings, policies, AS_OF, RETIREMENT)

        assert [item.name for item in summary.investments] == ["Sooner", "Later"]
        assert [item.name for item in summary.insurance] == ["Endowment", "Money back"]
        assert summary.investment_count == 2
        assert summary.insurance_count == 2
        assert summary.insurance[1].years_to_maturity == 3
        assert summary.total_maturing_value == pytest.approx(450000)

    def test_nothing_maturing(self):
        summary = maturing_before_retirement([], [], AS_OF, RETIREMENT)

        assert summary.investments == ()
        assert summary.insurance == ()
        assert summary.total_maturing_value == 0

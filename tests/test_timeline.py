"""Tests for the age timeline and inflation adjuster."""

from datetime import date

import pytest
from pydantic import ValidationError

from finplan.models.records import RetirementScenario
from finplan.models.timeline import AgeTimeline, InflationAdjuster


@pytest.fixture
def timeline():
    return AgeTimeline(current_age=58, retirement_age=60, life_expectancy=63, base_year=2025)


class TestAgeTimeline:
    """Test cases for AgeTimeline."""

    def test_from_scenario(self):
        scenario = RetirementScenario(
            user_id="user-1", current_age=35, retirement_age=60, life_expectancy=85
        )
        timeline = AgeTimeline.from_scenario(scenario, date(2025, 7, 1))

        assert timeline.base_year == 2025
        assert timeline.years_to_retirement == 25
        assert timeline.retirement_years == 25
        assert timeline.retirement_year == 2050
        assert len(timeline) == 51

    def test_rows_map_to_ages_and_years(self, timeline):
        assert timeline.get_ages() == [58, 59, 60, 61, 62, 63]
        assert timeline.age_at(2) == 60
        assert timeline.calendar_year_at(2) == 2027
        assert timeline.get_year_index(61) == 3

    def test_age_outside_range(self, timeline):
        with pytest.raises(ValueError, match="outside the projection range"):
            timeline.get_year_index(64)

    def test_phases(self, timeline):
        assert [timeline.phase_at(i) for i in range(len(timeline))] == [
            "ACCUMULATION",
            "ACCUMULATION",
            "ACCUMULATION",
            "RETIREMENT",
            "RETIREMENT",
            "RETIREMENT",
        ]

    def test_retired_user_starts_in_retirement(self):
        timeline = AgeTimeline(
            current_age=60, retirement_age=60, life_expectancy=80, base_year=2025
        )
        assert timeline.phase_at(0) == "RETIREMENT"
        assert not timeline.is_accumulation_year(1)

    def test_age_order_is_enforced(self):
        with pytest.raises(ValidationError):
            AgeTimeline(current_age=61, retirement_age=60, life_expectancy=85, base_year=2025)


class TestInflationAdjuster:
    """Test cases for InflationAdjuster."""

    def test_to_nominal_value(self):
        adjuster = InflationAdjuster(inflation_rate=10.0, base_year=2025)

        assert adjuster.to_nominal_value(1000, 2025) == 1000
        assert adjuster.to_nominal_value(1000, 2027) == pytest.approx(1210)
        assert adjuster.inflate_by(1000, 1) == pytest.approx(1100)

    def test_past_years_are_not_deflated(self):
        adjuster = InflationAdjuster(inflation_rate=10.0, base_year=2025)
        assert adjuster.to_nominal_value(1000, 2020) == 1000

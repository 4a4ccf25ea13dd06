"""
Age timeline and inflation helpers for retirement projections.

The projection runs one row per age, from the user's current age to their
life expectancy. Each row after the first covers one year of the user's life;
the timeline maps rows to ages, calendar years and phases, and the inflation
adjuster moves today's amounts to a future calendar year.
"""

from datetime import date
from typing import List, Literal

from pydantic import BaseModel, Field, model_validator

from .calculations import calculate_inflated_value
from .records import RetirementScenario

Phase = Literal["ACCUMULATION", "RETIREMENT"]


class AgeTimeline(BaseModel):
    """Ages and calendar years covered by a projection."""

    current_age: int = Field(..., ge=0, le=120, description="Age at the first row")
    retirement_age: int = Field(..., ge=0, le=120, description="Retirement age")
    life_expectancy: int = Field(..., ge=0, le=120, description="Age at the last row")
    base_year: int = Field(
        ..., ge=1900, le=2200, description="Calendar year of the first row"
    )

    @model_validator(mode="after")
    def validate_ages(self):
        if not self.current_age <= self.retirement_age <= self.life_expectancy:
            raise ValueError(
                "Ages must satisfy current_age <= retirement_age <= life_expectancy"
            )
        return self

    @classmethod
    def from_scenario(cls, scenario: RetirementScenario, as_of: date) -> "AgeTimeline":
        return cls(
            current_age=scenario.current_age,
            retirement_age=scenario.retirement_age,
            life_expectancy=scenario.life_expectancy,
            base_year=as_of.year,
        )

    @property
    def years_to_retirement(self) -> int:
        return self.retirement_age - self.current_age

    @property
    def retirement_years(self) -> int:
        return self.life_expectancy - self.retirement_age

    @property
    def retirement_year(self) -> int:
        return self.base_year + self.years_to_retirement

    def get_ages(self) -> List[int]:
        """Get list of ages, one per projection row."""
        return list(range(self.current_age, self.life_expectancy + 1))

    def age_at(self, year_index: int) -> int:
        return self.current_age + year_index

    def calendar_year_at(self, year_index: int) -> int:
        return self.base_year + year_index

    def get_year_index(self, age: int) -> int:
        """Get the row index of an age."""
        if not self.current_age <= age <= self.life_expectancy:
            raise ValueError(f"Age {age} is outside the projection range")
        return age - self.current_age

    def is_accumulation_year(self, year_index: int) -> bool:
        """Whether the year ending at row `year_index` starts before retirement."""
        return self.current_age + year_index - 1 < self.retirement_age

    def phase_at(self, year_index: int) -> Phase:
        """Phase label for a row; the opening row takes the phase of the first year."""
        if year_index == 0:
            year_index = 1
        return "ACCUMULATION" if self.is_accumulation_year(year_index) else "RETIREMENT"

    def __len__(self) -> int:
        """Get the number of rows in the timeline."""
        return self.life_expectancy - self.current_age + 1


class InflationAdjuster(BaseModel):
    """Moves amounts in today's money to a future calendar year."""

    inflation_rate: float = Field(..., ge=0, le=50, description="Annual inflation (%)")
    base_year: int = Field(
        ..., ge=1900, le=2200, description="Year whose prices amounts are quoted in"
    )

    def to_nominal_value(self, amount: float, year: int) -> float:
        """Cost in `year` of something that costs `amount` in the base year."""
        return calculate_inflated_value(
            amount, self.inflation_rate, year - self.base_year
        )

    def inflate_by(self, amount: float, years: int) -> float:
        return calculate_inflated_value(amount, self.inflation_rate, years)

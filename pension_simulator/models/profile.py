"""
Person and employment history models.

These pydantic models describe the insured person and the ordered employment
periods their notional retirement capital is built from. They are frozen:
scenario derivation produces modified copies and never mutates a profile.
"""

from typing import Literal, Optional, Tuple, get_args

from pydantic import BaseModel, ConfigDict, Field, model_validator

ContractType = Literal[
    "employment", "business_invoice", "mandate", "specific_task", "custom"
]

CONTRACT_TYPES: Tuple[str, ...] = get_args(ContractType)

Gender = Literal["male", "female"]


class EmploymentPeriod(BaseModel):
    """A contiguous stretch of work under one contract type."""

    model_config = ConfigDict(frozen=True)

    start_year: int = Field(..., ge=1900, le=2100, description="First year worked")
    end_year: int = Field(
        ..., ge=1900, le=2100, description="Last year worked (inclusive)"
    )
    start_month: int = Field(default=1, ge=1, le=12, description="First month worked")
    end_month: int = Field(default=12, ge=1, le=12, description="Last month worked")
    # Validated against CONTRACT_TYPES by the orchestrator.
    contract_type: str = Field(..., description="Contract type tag")
    monthly_income: float = Field(
        ...,
        le=1e9,
        allow_inf_nan=False,
        description="Gross monthly income at the start of the period",
    )
    income_growth_rate: float = Field(
        default=0.0,
        gt=-1,
        le=1,
        allow_inf_nan=False,
        description="Annual income growth rate",
    )
    part_time_factor: float = Field(
        default=1.0, gt=0, le=1, description="Fraction of a full-time position"
    )
    sick_leave_days: float = Field(
        default=0.0, ge=0, description="Assumed sick-leave days per year"
    )
    custom_contribution_rate: Optional[float] = Field(
        default=None, ge=0, le=1, description="Contribution rate for custom contracts"
    )

    @model_validator(mode="after")
    def validate_period_bounds(self):
        if self.end_year < self.start_year:
            raise ValueError("End year must be >= start year")
        if self.end_year == self.start_year and self.end_month < self.start_month:
            raise ValueError("End month must be >= start month within a single year")
        return self

    @property
    def first_month_index(self) -> int:
        """Absolute month index of the first active month."""
        return self.start_year * 12 + self.start_month - 1

    @property
    def last_month_index(self) -> int:
        """Absolute month index of the last active month."""
        return self.end_year * 12 + self.end_month - 1

    def covers(self, year: int) -> bool:
        """Check if the period is active at any point in a year."""
        return self.start_year <= year <= self.end_year

    def months_active_in(self, year: int) -> int:
        """Number of months the period is active in a calendar year."""
        if not self.covers(year):
            return 0
        first = self.start_month if year == self.start_year else 1
        last = self.end_month if year == self.end_year else 12
        return last - first + 1

    def overlaps(self, other: "EmploymentPeriod") -> bool:
        """Check if two periods share at least one month."""
        return (
            self.first_month_index <= other.last_month_index
            and other.first_month_index <= self.last_month_index
        )

    def monthly_income_in(self, year: int) -> float:
        """Gross monthly income in a year, compounded from the period start."""
        return self.monthly_income * (1 + self.income_growth_rate) ** (
            year - self.start_year
        )

    def annual_income_in(self, year: int) -> float:
        """Full-year gross income equivalent for a year."""
        return self.monthly_income_in(year) * 12


class PersonProfile(BaseModel):
    """The insured person and their employment history."""

    model_config = ConfigDict(frozen=True)

    birth_year: int = Field(..., ge=1900, le=2100, description="Year of birth")
    gender: Gender = Field(..., description="Gender used for the divisor lookup")
    current_age: int = Field(..., ge=0, le=120, description="Age in the simulation year")
    target_retirement_age: int = Field(
        ..., ge=0, le=120, description="Planned retirement age"
    )
    employment_periods: Tuple[EmploymentPeriod, ...] = Field(
        default=(), description="Employment history, ordered by start"
    )

    @property
    def simulation_year(self) -> int:
        """Calendar year the profile describes as 'now'."""
        return self.birth_year + self.current_age

    @property
    def retirement_year(self) -> int:
        """Calendar year in which the person retires."""
        return self.birth_year + self.target_retirement_age

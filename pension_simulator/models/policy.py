"""
Statutory policy parameters for a calculation run.

The policy is passed explicitly into every engine call; no engine component
reads process-wide settings. ``pension_simulator.config.build_calculation_policy``
builds one from environment settings.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .indexation import GapPolicy


class ContributionPolicy(BaseModel):
    """Contribution base and rate rules shared by the contract types."""

    model_config = ConfigDict(frozen=True)

    standard_rate: float = Field(
        default=0.1952, ge=0, le=1, description="Pension contribution rate"
    )
    declared_monthly_base: float = Field(
        default=4694.40,
        ge=0,
        description="Declared monthly base for business-invoice contracts "
        "in reference-year money",
    )
    mandate_base_share: float = Field(
        default=1.0,
        ge=0,
        le=1,
        description="Share of mandate-contract income that is contribution-bearing",
    )
    custom_rate: float = Field(
        default=0.1952,
        ge=0,
        le=1,
        description="Fallback rate for custom contracts without their own rate",
    )
    annual_base_cap: Optional[float] = Field(
        default=None,
        gt=0,
        description="Annual contribution base cap in reference-year money",
    )


class SickLeavePolicy(BaseModel):
    """Treatment of sick-leave days in the contribution base."""

    model_config = ConfigDict(frozen=True)

    sick_pay_rate: float = Field(
        default=0.8, ge=0, le=1, description="Sick pay as a share of full salary"
    )
    sick_pay_contributable: bool = Field(
        default=True, description="Whether sick pay is contribution-bearing"
    )

    @property
    def effective_rate(self) -> float:
        """Share of full salary a sick-leave day contributes."""
        return self.sick_pay_rate if self.sick_pay_contributable else 0.0


class CalculationPolicy(BaseModel):
    """All policy parameters the engine needs for one run."""

    model_config = ConfigDict(frozen=True)

    min_retirement_age: int = Field(default=60, ge=0, le=120)
    max_retirement_age: int = Field(default=70, ge=0, le=120)
    working_days_per_year: int = Field(default=250, gt=0, le=366)
    contributions: ContributionPolicy = Field(default_factory=ContributionPolicy)
    sick_leave: SickLeavePolicy = Field(default_factory=SickLeavePolicy)
    indexation_gap_policy: GapPolicy = Field(
        default="strict",
        description="'strict' fails on missing years, 'extrapolate_last' reuses "
        "the last known year",
    )
    max_scenario_workers: int = Field(default=4, ge=1, le=64)

    @model_validator(mode="after")
    def validate_retirement_bounds(self):
        if self.max_retirement_age < self.min_retirement_age:
            raise ValueError("Maximum retirement age must be >= minimum")
        return self

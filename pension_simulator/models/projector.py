"""
Conversion of a notional capital balance into a monthly benefit.

The monthly benefit is the final valorized balance divided by a
life-expectancy divisor (expected months of benefit payment) looked up by
retirement age and gender. The divisor table is an external, static
collaborator behind the ``LifeExpectancyProvider`` protocol; the engine never
computes divisors itself.
"""

import json
from importlib import resources
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidDivisor
from .ledger import ContributionLedger
from .profile import Gender


class LifeExpectancyProvider(Protocol):
    """Provides life-expectancy divisors for benefit conversion."""

    def get_divisor(self, age: int, gender: str) -> Optional[float]:
        """
        Get the divisor for a retirement age and gender.

        Args:
            age: Retirement age in whole years
            gender: Gender of the insured person

        Returns:
            Expected months of benefit payment, or None if the pair is
            outside the table's domain
        """
        ...


class LifeExpectancyTable(BaseModel):
    """Static life-expectancy divisor table in months, keyed by gender and age."""

    model_config = ConfigDict(frozen=True)

    divisors: Dict[Gender, Dict[int, float]] = Field(
        ..., description="Divisor in months by gender, then retirement age"
    )
    source: str = Field(default="", description="Where the table comes from")

    def get_divisor(self, age: int, gender: str) -> Optional[float]:
        by_age = self.divisors.get(gender)
        if by_age is None:
            return None
        return by_age.get(age)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "LifeExpectancyTable":
        """Load a table from a JSON file."""
        with open(path, "r") as f:
            return cls.model_validate(json.load(f))

    @classmethod
    def default(cls) -> "LifeExpectancyTable":
        """Load the sample table bundled with the package."""
        data = (
            resources.files("pension_simulator")
            .joinpath("data")
            .joinpath("life_expectancy.json")
            .read_text()
        )
        return cls.model_validate(json.loads(data))


class PensionProjection(BaseModel):
    """Projected benefit derived from a ledger."""

    model_config = ConfigDict(frozen=True)

    final_balance: float = Field(..., description="Final valorized balance")
    retirement_age: int = Field(..., description="Retirement age used for the divisor")
    gender: Gender = Field(..., description="Gender used for the divisor")
    divisor: float = Field(..., gt=0, description="Life-expectancy divisor (months)")
    monthly_benefit: float = Field(..., description="Projected monthly benefit")
    last_monthly_income: Optional[float] = Field(
        default=None, description="Last known gross monthly income"
    )
    replacement_rate: Optional[float] = Field(
        default=None, description="Monthly benefit / last gross monthly income"
    )


class PensionProjector:
    """Projects monthly benefits using a life-expectancy provider."""

    def __init__(self, life_expectancy: LifeExpectancyProvider):
        self.life_expectancy = life_expectancy

    def divisor_for(self, age: int, gender: str) -> float:
        """
        Look up a usable divisor.

        Raises:
            InvalidDivisor: If the pair is unknown or the divisor is not positive
        """
        divisor = self.life_expectancy.get_divisor(age, gender)
        if divisor is None:
            raise InvalidDivisor(age, gender)
        if divisor <= 0:
            raise InvalidDivisor(age, gender, divisor)
        return divisor

    def project_balance(
        self,
        final_balance: float,
        retirement_age: int,
        gender: Gender,
        last_monthly_income: Optional[float] = None,
    ) -> PensionProjection:
        """
        Convert a final balance into a monthly benefit.

        Args:
            final_balance: Valorized balance at retirement
            retirement_age: Age at retirement
            gender: Gender of the insured person
            last_monthly_income: Last gross monthly income, for the
                replacement rate

        Returns:
            PensionProjection with benefit and replacement rate
        """
        divisor = self.divisor_for(retirement_age, gender)
        monthly_benefit = final_balance / divisor

        replacement_rate = None
        if last_monthly_income is not None and last_monthly_income > 0:
            replacement_rate = monthly_benefit / last_monthly_income

        return PensionProjection(
            final_balance=final_balance,
            retirement_age=retirement_age,
            gender=gender,
            divisor=divisor,
            monthly_benefit=monthly_benefit,
            last_monthly_income=last_monthly_income,
            replacement_rate=replacement_rate,
        )

    def project(
        self, ledger: ContributionLedger, retirement_age: int, gender: Gender
    ) -> PensionProjection:
        """Project the benefit of a ledger's final balance."""
        return self.project_balance(
            ledger.final_balance,
            retirement_age,
            gender,
            ledger.last_monthly_income(),
        )

"""
Year-keyed macroeconomic indexation data.

The indexation table holds, for every calendar year, the wage growth rate, the
valorization rate applied to the notional capital balance and the inflation
rate used for real-value reporting. The engine treats a table as an immutable
value passed into every calculation; nothing here fetches or caches data.
"""

import logging
from typing import Dict, List, Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import IndexationGap

logger = logging.getLogger(__name__)

GapPolicy = Literal["strict", "extrapolate_last"]
RateName = Literal["wage_growth", "valorization_rate", "inflation_rate"]


class YearIndexation(BaseModel):
    """Macroeconomic parameters for a single year."""

    model_config = ConfigDict(frozen=True)

    wage_growth: float = Field(..., gt=-1, le=1, description="Average wage growth rate")
    valorization_rate: float = Field(
        ..., gt=-1, le=1, description="Capital valorization rate"
    )
    inflation_rate: float = Field(..., gt=-1, le=1, description="Consumer inflation rate")


class IndexationTable(BaseModel):
    """Read-only mapping from calendar year to indexation parameters."""

    model_config = ConfigDict(frozen=True)

    years: Dict[int, YearIndexation] = Field(
        ..., description="Indexation parameters keyed by calendar year"
    )

    @field_validator("years")
    @classmethod
    def validate_years(cls, v: Dict[int, YearIndexation]) -> Dict[int, YearIndexation]:
        if not v:
            raise ValueError("Indexation table cannot be empty")
        for year in v:
            if not 1900 <= year <= 2200:
                raise ValueError(f"Year {year} is outside the supported range")
        return v

    @property
    def first_year(self) -> int:
        return min(self.years)

    @property
    def last_year(self) -> int:
        return max(self.years)

    def get(self, year: int) -> YearIndexation:
        """
        Get the parameters for a year.

        Raises:
            IndexationGap: If the table has no entry for the year
        """
        try:
            return self.years[year]
        except KeyError:
            raise IndexationGap(year) from None

    def resolve(self, year: int, gap_policy: GapPolicy = "strict") -> YearIndexation:
        """
        Get the parameters for a year, applying the gap policy if it is missing.

        With ``"extrapolate_last"`` the closest earlier year's parameters are
        reused; years before the first entry are still a gap.

        Raises:
            IndexationGap: If the year is missing and cannot be extrapolated
        """
        if year in self.years:
            return self.years[year]
        if gap_policy == "extrapolate_last":
            earlier = [known for known in self.years if known < year]
            if earlier:
                source_year = max(earlier)
                logger.warning(
                    f"Extrapolating indexation for {year} from {source_year}"
                )
                return self.years[source_year]
        raise IndexationGap(year)

    def missing_years(self, start_year: int, end_year: int) -> List[int]:
        """List the years in an inclusive range with no entry."""
        return [year for year in range(start_year, end_year + 1) if year not in self.years]

    def cumulative_factors(
        self,
        rate: RateName,
        base_year: int,
        start_year: int,
        end_year: int,
        gap_policy: GapPolicy = "strict",
    ) -> Dict[int, float]:
        """
        Compounded growth factors of one rate relative to a base year.

        The factor of year ``y`` is the product of ``1 + rate`` for every year
        after the base year up to ``y`` (or the reciprocal for years before
        the base year). The base year's factor is exactly 1.0, and the rate of
        the earliest year in the range is never needed.

        Args:
            rate: Which rate to compound
            base_year: Year whose factor is 1.0
            start_year: First year to produce a factor for
            end_year: Last year to produce a factor for
            gap_policy: How to treat years missing from the table

        Returns:
            Dictionary mapping every year in the range (and the base year) to
            its cumulative factor

        Raises:
            IndexationGap: If a needed year is missing under the strict policy
        """
        low = min(base_year, start_year)
        high = max(base_year, end_year)
        growth = np.ones(high - low + 1, dtype=np.float64)
        for offset, year in enumerate(range(low + 1, high + 1), start=1):
            growth[offset] = 1 + getattr(self.resolve(year, gap_policy), rate)

        cumulative = np.cumprod(growth)
        base_factor = cumulative[base_year - low]
        return {
            year: float(cumulative[year - low] / base_factor)
            for year in range(low, high + 1)
        }

    def deflators(
        self,
        base_year: int,
        start_year: int,
        end_year: int,
        gap_policy: GapPolicy = "strict",
    ) -> Dict[int, float]:
        """
        Cumulative inflation factors relative to a base year.

        Dividing a nominal amount of year ``y`` by ``deflators[y]`` expresses it
        in base-year money.
        """
        return self.cumulative_factors(
            "inflation_rate", base_year, start_year, end_year, gap_policy
        )

    def wage_indexes(
        self,
        base_year: int,
        start_year: int,
        end_year: int,
        gap_policy: GapPolicy = "strict",
    ) -> Dict[int, float]:
        """Cumulative average-wage growth factors relative to a base year."""
        return self.cumulative_factors(
            "wage_growth", base_year, start_year, end_year, gap_policy
        )


def create_flat_indexation(
    start_year: int,
    end_year: int,
    wage_growth: float = 0.0,
    valorization_rate: float = 0.0,
    inflation_rate: float = 0.0,
) -> IndexationTable:
    """
    Create an indexation table with the same parameters for every year.

    Args:
        start_year: First covered year
        end_year: Last covered year (inclusive)
        wage_growth: Annual wage growth rate
        valorization_rate: Annual valorization rate
        inflation_rate: Annual inflation rate

    Returns:
        IndexationTable covering the range
    """
    if end_year < start_year:
        raise ValueError("End year must be >= start year")

    parameters = YearIndexation(
        wage_growth=wage_growth,
        valorization_rate=valorization_rate,
        inflation_rate=inflation_rate,
    )
    return IndexationTable(
        years={year: parameters for year in range(start_year, end_year + 1)}
    )

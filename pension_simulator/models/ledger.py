"""
Contribution ledger: the year-by-year notional capital state machine.

For every calendar year from the first active employment year through the
retirement year, the ledger records the contributions paid and the balance
after valorization:

    balance[y] = (balance[y-1] + contribution[y]) * (1 + valorization[y])

with a zero balance before the first year. A ledger is built by a pure fold
over an employment history and an indexation table and is immutable once
built, so ledgers of different scenarios never share records.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from .contracts import ContractProfile
from .indexation import IndexationTable
from .policy import CalculationPolicy
from .profile import EmploymentPeriod
from .sick_leave import SickLeaveAdjustor

logger = logging.getLogger(__name__)

NO_CONTRACT = "none"


class YearRecord(BaseModel):
    """Contributions and balances of one ledger year."""

    model_config = ConfigDict(frozen=True)

    year: int = Field(..., description="Calendar year")
    contract_type: str = Field(
        ..., description="Dominant contract type of the year, or 'none'"
    )
    months_active: int = Field(..., ge=0, le=12, description="Months with active work")
    gross_income: float = Field(..., ge=0, description="Gross income earned")
    contribution_base: float = Field(
        ..., ge=0, description="Sick-leave adjusted contributable base"
    )
    contribution: float = Field(..., ge=0, description="Contribution paid")
    valorization_rate: float = Field(..., description="Valorization rate applied")
    balance_before_valorization: float = Field(
        ..., description="Previous balance plus this year's contribution"
    )
    balance: float = Field(..., description="Balance after valorization")

    @property
    def monthly_income(self) -> float:
        """Average gross income per active month."""
        if self.months_active == 0:
            return 0.0
        return self.gross_income / self.months_active


class ContributionLedger(BaseModel):
    """Ordered year records of one employment-history variant."""

    model_config = ConfigDict(frozen=True)

    records: Tuple[YearRecord, ...] = Field(..., description="One record per year")

    @property
    def first_year(self) -> int:
        return self.records[0].year

    @property
    def last_year(self) -> int:
        return self.records[-1].year

    @property
    def years(self) -> List[int]:
        return [record.year for record in self.records]

    @property
    def final_balance(self) -> float:
        """Valorized balance at the end of the retirement year."""
        return self.records[-1].balance

    @property
    def total_contributions(self) -> float:
        return sum(record.contribution for record in self.records)

    def __len__(self) -> int:
        return len(self.records)

    def get_record(self, year: int) -> YearRecord:
        """Get the record of a calendar year."""
        if not self.first_year <= year <= self.last_year:
            raise ValueError(f"Year {year} is outside the ledger range")
        return self.records[year - self.first_year]

    def last_monthly_income(self) -> Optional[float]:
        """Gross monthly income of the last year with active work, if any."""
        for record in reversed(self.records):
            if record.months_active > 0:
                return record.monthly_income
        return None

    def balance_series(self) -> NDArray[np.float64]:
        """Year-end balances as an array."""
        return np.array([record.balance for record in self.records], dtype=np.float64)

    def contribution_series(self) -> NDArray[np.float64]:
        """Yearly contributions as an array."""
        return np.array(
            [record.contribution for record in self.records], dtype=np.float64
        )


def _dominant_contract(activity: Sequence[Tuple[str, int]]) -> str:
    """Contract with the most active months; later periods win ties."""
    dominant = NO_CONTRACT
    dominant_months = 0
    for contract_type, months in activity:
        if months >= dominant_months:
            dominant, dominant_months = contract_type, months
    return dominant


def build_ledger(
    periods: Sequence[EmploymentPeriod],
    indexation: IndexationTable,
    retirement_year: int,
    policy: Optional[CalculationPolicy] = None,
    reference_year: Optional[int] = None,
) -> ContributionLedger:
    """
    Build the contribution ledger for one employment history.

    Args:
        periods: Non-overlapping employment periods
        indexation: Indexation table covering the ledger years
        retirement_year: Last ledger year (inclusive)
        policy: Statutory policy (defaults apply when omitted)
        reference_year: Year whose money declared bases and caps are stated
            in (defaults to the first ledger year)

    Returns:
        ContributionLedger from the first active year to the retirement year

    Raises:
        IndexationGap: If a needed year is missing under the strict policy
        InvalidSickLeaveAssumption: If a period's sick-leave days are invalid
        UnknownContractType: If a period's contract type is not enumerated
    """
    if not periods:
        raise ValueError("At least one employment period is required")

    policy = policy or CalculationPolicy()
    first_year = min(period.start_year for period in periods)
    if first_year > retirement_year:
        raise ValueError(
            f"First employment year {first_year} is after retirement year "
            f"{retirement_year}"
        )
    if reference_year is None:
        reference_year = first_year

    gap_policy = policy.indexation_gap_policy
    contract_profile = ContractProfile(policy.contributions)
    adjustor = SickLeaveAdjustor(policy.sick_leave)
    wage_indexes: Dict[int, float] = indexation.wage_indexes(
        reference_year, first_year, retirement_year, gap_policy
    )

    records: List[YearRecord] = []
    balance = 0.0
    for year in range(first_year, retirement_year + 1):
        parameters = indexation.resolve(year, gap_policy)

        gross_income = 0.0
        contribution_base = 0.0
        contribution = 0.0
        months_active = 0
        activity: List[Tuple[str, int]] = []
        for period in periods:
            months = period.months_active_in(year)
            if months == 0:
                continue
            share = months / 12
            annual_income = period.annual_income_in(year)
            adjusted_income = adjustor.adjust(
                annual_income, policy.working_days_per_year, period.sick_leave_days
            )
            assessment = contract_profile.assess(
                period.contract_type,
                adjusted_income,
                period.part_time_factor,
                wage_indexes[year],
                period.custom_contribution_rate,
            )
            gross_income += annual_income * period.part_time_factor * share
            contribution_base += assessment.base * share
            contribution += assessment.contribution * share
            months_active += months
            activity.append((period.contract_type, months))

        balance_before_valorization = balance + contribution
        balance = balance_before_valorization * (1 + parameters.valorization_rate)
        records.append(
            YearRecord(
                year=year,
                contract_type=_dominant_contract(activity),
                months_active=months_active,
                gross_income=gross_income,
                contribution_base=contribution_base,
                contribution=contribution,
                valorization_rate=parameters.valorization_rate,
                balance_before_valorization=balance_before_valorization,
                balance=balance,
            )
        )

    logger.debug(
        f"Built ledger {first_year}-{retirement_year} with final balance {balance:.2f}"
    )
    return ContributionLedger(records=tuple(records))

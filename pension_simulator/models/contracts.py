"""
Contribution rules per contract type.

Each enumerated contract type maps to one rule function in a closed dispatch
table. A rule turns a full year of (sick-leave adjusted) income into a
contribution base and rate; the ledger prorates the result by active months.
Adding a contract type means adding a rule and a table entry.
"""

from typing import Callable, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .errors import UnknownContractType
from .policy import ContributionPolicy


class ContributionAssessment(BaseModel):
    """Contribution base, rate and amount for one full year."""

    model_config = ConfigDict(frozen=True)

    contract_type: str = Field(..., description="Contract type tag")
    base: float = Field(..., ge=0, description="Contributable base")
    rate: float = Field(..., ge=0, le=1, description="Contribution rate")
    contribution: float = Field(..., ge=0, description="Contribution amount")


# (policy, annual income, part-time factor, wage index, custom rate) -> (base, rate)
ContributionRule = Callable[
    [ContributionPolicy, float, float, float, Optional[float]], Tuple[float, float]
]


def _employment_rule(
    policy: ContributionPolicy,
    income: float,
    part_time_factor: float,
    wage_index: float,
    custom_rate: Optional[float],
) -> Tuple[float, float]:
    return income * part_time_factor, policy.standard_rate


def _business_invoice_rule(
    policy: ContributionPolicy,
    income: float,
    part_time_factor: float,
    wage_index: float,
    custom_rate: Optional[float],
) -> Tuple[float, float]:
    # Declared base: independent of invoiced income and working time.
    return policy.declared_monthly_base * 12 * wage_index, policy.standard_rate


def _mandate_rule(
    policy: ContributionPolicy,
    income: float,
    part_time_factor: float,
    wage_index: float,
    custom_rate: Optional[float],
) -> Tuple[float, float]:
    return income * part_time_factor * policy.mandate_base_share, policy.standard_rate


def _specific_task_rule(
    policy: ContributionPolicy,
    income: float,
    part_time_factor: float,
    wage_index: float,
    custom_rate: Optional[float],
) -> Tuple[float, float]:
    return 0.0, 0.0


def _custom_rule(
    policy: ContributionPolicy,
    income: float,
    part_time_factor: float,
    wage_index: float,
    custom_rate: Optional[float],
) -> Tuple[float, float]:
    rate = custom_rate if custom_rate is not None else policy.custom_rate
    return income * part_time_factor, rate


CONTRIBUTION_RULES: Dict[str, ContributionRule] = {
    "employment": _employment_rule,
    "business_invoice": _business_invoice_rule,
    "mandate": _mandate_rule,
    "specific_task": _specific_task_rule,
    "custom": _custom_rule,
}


def is_known_contract_type(contract_type: str) -> bool:
    """Check if a tag belongs to the enumerated contract types."""
    return contract_type in CONTRIBUTION_RULES


class ContractProfile:
    """Applies the contribution rules of a ContributionPolicy."""

    def __init__(self, policy: Optional[ContributionPolicy] = None):
        self.policy = policy or ContributionPolicy()

    def assess(
        self,
        contract_type: str,
        annual_income: float,
        part_time_factor: float = 1.0,
        wage_index: float = 1.0,
        custom_rate: Optional[float] = None,
    ) -> ContributionAssessment:
        """
        Assess one full year of contributions under a contract type.

        Args:
            contract_type: Contract type tag
            annual_income: Full-year gross income after sick-leave adjustment
            part_time_factor: Fraction of a full-time position
            wage_index: Cumulative wage growth since the reference year, used
                to index declared bases and the base cap
            custom_rate: Period-specific rate for custom contracts

        Returns:
            ContributionAssessment with base, rate and contribution

        Raises:
            UnknownContractType: If the tag is not enumerated
        """
        rule = CONTRIBUTION_RULES.get(contract_type)
        if rule is None:
            raise UnknownContractType(contract_type)

        base, rate = rule(
            self.policy, annual_income, part_time_factor, wage_index, custom_rate
        )
        base = max(base, 0.0)
        if self.policy.annual_base_cap is not None:
            base = min(base, self.policy.annual_base_cap * wage_index)

        return ContributionAssessment(
            contract_type=contract_type,
            base=base,
            rate=rate,
            contribution=base * rate,
        )

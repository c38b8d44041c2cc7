"""
Calculation result models.

``SimulationResult`` is the single, immutable output of a calculation run. It
holds the baseline outcome, one ``ScenarioResult`` per requested scenario (in
request order, either computed or carrying a failure record) and a run
summary. Every monetary figure is reported nominally and deflated to the
simulation year's money.
"""

import json
from typing import Any, Dict, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .errors import PensionEngineError
from .ledger import ContributionLedger


class RealYearRecord(BaseModel):
    """Inflation-adjusted monetary figures of one ledger year."""

    model_config = ConfigDict(frozen=True)

    year: int
    deflator: float = Field(..., description="Cumulative inflation since the base year")
    gross_income: float
    contribution_base: float
    contribution: float
    balance: float


class BenefitKPI(BaseModel):
    """Headline figures of one projection."""

    model_config = ConfigDict(frozen=True)

    retirement_age: int
    retirement_year: int
    divisor: float = Field(..., description="Life-expectancy divisor (months)")
    final_balance: float
    total_contributions: float
    monthly_benefit: float
    replacement_rate: Optional[float] = None
    real_final_balance: float
    real_total_contributions: float
    real_monthly_benefit: float


class ProjectionOutcome(BaseModel):
    """Ledger, deflated ledger figures and KPIs of one employment history."""

    model_config = ConfigDict(frozen=True)

    ledger: ContributionLedger
    real_records: Tuple[RealYearRecord, ...]
    kpi: BenefitKPI


class ScenarioDelta(BaseModel):
    """Scenario KPIs relative to the baseline."""

    model_config = ConfigDict(frozen=True)

    monthly_benefit_change: float
    monthly_benefit_change_pct: Optional[float] = None
    real_monthly_benefit_change: float
    final_balance_change: float
    retirement_age_change: int


class ErrorRecord(BaseModel):
    """Serialized engine error."""

    model_config = ConfigDict(frozen=True)

    kind: str
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: PensionEngineError) -> "ErrorRecord":
        return cls(**exc.to_dict())


class ScenarioResult(BaseModel):
    """Outcome of one requested scenario."""

    model_config = ConfigDict(frozen=True)

    scenario_id: str
    kind: str
    status: Literal["ok", "failed"]
    outcome: Optional[ProjectionOutcome] = None
    delta: Optional[ScenarioDelta] = None
    error: Optional[ErrorRecord] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "ok"


class RunSummary(BaseModel):
    """Run-level nominal and inflation-adjusted summary."""

    model_config = ConfigDict(frozen=True)

    base_year: int = Field(..., description="Year whose money real figures use")
    baseline_monthly_benefit: float
    baseline_real_monthly_benefit: float
    baseline_replacement_rate: Optional[float] = None
    scenarios_succeeded: int
    scenarios_failed: int
    best_scenario_id: Optional[str] = None
    best_monthly_benefit: Optional[float] = None
    best_real_monthly_benefit: Optional[float] = None


class SimulationResult(BaseModel):
    """Immutable result of one calculation run."""

    model_config = ConfigDict(frozen=True)

    input_hash: str = Field(..., description="SHA-256 of the canonical request")
    configuration_hash: str = Field(
        ..., description="SHA-256 of the policy and divisor table used"
    )
    baseline: ProjectionOutcome
    scenarios: Tuple[ScenarioResult, ...] = ()
    summary: RunSummary

    def get_scenario(self, scenario_id: str) -> ScenarioResult:
        """Get a scenario result by identifier."""
        for scenario in self.scenarios:
            if scenario.scenario_id == scenario_id:
                return scenario
        raise KeyError(f"No scenario {scenario_id!r} in result")

    def failed_scenarios(self) -> Tuple[ScenarioResult, ...]:
        return tuple(scenario for scenario in self.scenarios if not scenario.succeeded)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary with named fields."""
        return self.model_dump(mode="json")

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def deflate_ledger(
    ledger: ContributionLedger, deflators: Mapping[int, float]
) -> Tuple[RealYearRecord, ...]:
    """
    Express every monetary ledger figure in base-year money.

    Args:
        ledger: Nominal ledger
        deflators: Cumulative inflation factor by year (must cover the ledger)

    Returns:
        One RealYearRecord per ledger year
    """
    return tuple(
        RealYearRecord(
            year=record.year,
            deflator=deflators[record.year],
            gross_income=record.gross_income / deflators[record.year],
            contribution_base=record.contribution_base / deflators[record.year],
            contribution=record.contribution / deflators[record.year],
            balance=record.balance / deflators[record.year],
        )
        for record in ledger.records
    )

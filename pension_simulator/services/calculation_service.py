"""
Calculation service coordinating one pension forecasting run.

The orchestrator validates a request, builds the baseline ledger and
projection, evaluates every scenario on a thread pool and assembles an
immutable ``SimulationResult``. Scenario failures are recorded per scenario;
baseline failures stop the run. Cancellation and timeouts abort the whole run
with ``AbortedRun`` and never return a partial result.
"""

import logging
import math
import threading
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel

from pension_simulator.config import Settings, build_calculation_policy
from pension_simulator.models.contracts import is_known_contract_type
from pension_simulator.models.errors import (
    AbortedRun,
    IndexationGap,
    PensionEngineError,
    ScenarioComputationError,
    ValidationError,
)
from pension_simulator.models.ledger import build_ledger
from pension_simulator.models.policy import CalculationPolicy
from pension_simulator.models.projector import (
    LifeExpectancyProvider,
    LifeExpectancyTable,
    PensionProjector,
)
from pension_simulator.models.request import CalculationRequest, canonical_hash
from pension_simulator.models.results import (
    BenefitKPI,
    ErrorRecord,
    ProjectionOutcome,
    RunSummary,
    ScenarioDelta,
    ScenarioResult,
    SimulationResult,
    deflate_ledger,
)
from pension_simulator.models.scenarios import EmploymentHistory, Scenario, ScenarioEngine

logger = logging.getLogger(__name__)

# How often the waiting thread re-checks the cancellation token.
_POLL_INTERVAL_SECONDS = 0.05


class CancellationToken:
    """Thread-safe flag a caller sets to abort a running calculation."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


class CalculationOrchestrator:
    """Runs baseline and scenario calculations for a request."""

    def __init__(
        self,
        policy: Optional[CalculationPolicy] = None,
        life_expectancy: Optional[LifeExpectancyProvider] = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            policy: Statutory policy for every run (defaults apply when omitted)
            life_expectancy: Divisor provider (bundled sample table when omitted)
        """
        self.policy = policy or CalculationPolicy()
        self.life_expectancy = life_expectancy or LifeExpectancyTable.default()
        self.projector = PensionProjector(self.life_expectancy)
        self.scenario_engine = ScenarioEngine(self.policy)
        self.configuration_hash = _configuration_hash(self.policy, self.life_expectancy)

    def validate(self, request: CalculationRequest) -> None:
        """Check a request against the policy before any calculation.

        Args:
            request: Calculation request

        Raises:
            ValidationError: If the request is malformed or out of policy
            IndexationGap: If the indexation table does not cover the run
        """
        person = request.person
        policy = self.policy

        age = person.target_retirement_age
        if not policy.min_retirement_age <= age <= policy.max_retirement_age:
            raise ValidationError(
                "person.target_retirement_age",
                f"must be between {policy.min_retirement_age} and "
                f"{policy.max_retirement_age}, got {age}",
            )
        if age < person.current_age:
            raise ValidationError(
                "person.target_retirement_age",
                f"must not be below the current age {person.current_age}",
            )

        periods = person.employment_periods
        if not periods:
            raise ValidationError(
                "person.employment_periods", "at least one employment period is required"
            )

        retirement_year = person.retirement_year
        for i, period in enumerate(periods):
            field = f"person.employment_periods[{i}]"
            income = period.monthly_income
            if not math.isfinite(income) or income <= 0:
                raise ValidationError(
                    f"{field}.monthly_income", f"must be a positive number, got {income}"
                )
            if not is_known_contract_type(period.contract_type):
                raise ValidationError(
                    f"{field}.contract_type",
                    f"unknown contract type {period.contract_type!r}",
                )
            if period.start_year > retirement_year:
                raise ValidationError(
                    f"{field}.start_year",
                    f"starts after the retirement year {retirement_year}",
                )
            for j in range(i):
                if periods[j].overlaps(period):
                    raise ValidationError(field, f"overlaps employment period {j}")

        seen_ids = set()
        for i, scenario in enumerate(request.scenarios):
            if scenario.identity in seen_ids:
                raise ValidationError(
                    f"scenarios[{i}].scenario_id",
                    f"duplicate scenario id {scenario.identity!r}",
                )
            seen_ids.add(scenario.identity)

        self._check_indexation_coverage(request)

    def _check_indexation_coverage(self, request: CalculationRequest) -> None:
        person = request.person
        indexation = request.indexation
        first_year = min(period.start_year for period in person.employment_periods)
        # Deflation and wage indexing compound every year after the earlier of
        # the simulation year and the first employment year.
        start_year = min(first_year, person.simulation_year + 1)
        missing = indexation.missing_years(start_year, person.retirement_year)
        if not missing:
            return
        if self.policy.indexation_gap_policy == "extrapolate_last":
            missing = [year for year in missing if year < indexation.first_year]
            if not missing:
                return
        raise IndexationGap(missing[0])

    def run(
        self,
        request: CalculationRequest,
        timeout: Optional[float] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SimulationResult:
        """Run a complete calculation.

        Args:
            request: Calculation request
            timeout: Overall time limit in seconds (no limit when None)
            cancel_token: Token the caller may set to abort the run

        Returns:
            SimulationResult with baseline, scenarios in request order and summary

        Raises:
            ValidationError: If the request is malformed or out of policy
            IndexationGap: If indexation data is missing for the baseline
            InvalidSickLeaveAssumption: If baseline sick-leave days are invalid
            InvalidDivisor: If no divisor exists for the baseline retirement
            AbortedRun: If the run is cancelled or times out
        """
        token = cancel_token or CancellationToken()
        deadline = None if timeout is None else time.monotonic() + timeout
        input_hash = request.content_hash()
        logger.info(
            f"Starting calculation run {input_hash[:12]} with "
            f"{len(request.scenarios)} scenarios"
        )

        _check_aborted(token, deadline)
        self.validate(request)

        base_year = request.person.simulation_year
        baseline_history = EmploymentHistory.from_profile(request.person)
        baseline = self._compute_outcome(baseline_history, request, base_year)
        _check_aborted(token, deadline)

        scenarios = self._run_scenarios(
            request, baseline_history, baseline, base_year, token, deadline
        )
        summary = _summarize(baseline, scenarios, base_year)

        logger.info(
            f"Completed calculation run {input_hash[:12]}: "
            f"{summary.scenarios_succeeded} scenarios ok, "
            f"{summary.scenarios_failed} failed"
        )
        return SimulationResult(
            input_hash=input_hash,
            configuration_hash=self.configuration_hash,
            baseline=baseline,
            scenarios=tuple(scenarios),
            summary=summary,
        )

    def _run_scenarios(
        self,
        request: CalculationRequest,
        baseline_history: EmploymentHistory,
        baseline: ProjectionOutcome,
        base_year: int,
        token: CancellationToken,
        deadline: Optional[float],
    ) -> List[ScenarioResult]:
        if not request.scenarios:
            return []

        workers = min(self.policy.max_scenario_workers, len(request.scenarios))
        executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="scenario"
        )
        futures: List[Future] = [
            executor.submit(
                self._run_scenario,
                request,
                baseline_history,
                baseline,
                scenario,
                base_year,
                token,
                deadline,
            )
            for scenario in request.scenarios
        ]
        try:
            _wait_all(futures, token, deadline)
        except Exception:
            # Abandon queued scenarios; running ones see the token and stop.
            token.cancel()
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)
        return [future.result() for future in futures]

    def _run_scenario(
        self,
        request: CalculationRequest,
        baseline_history: EmploymentHistory,
        baseline: ProjectionOutcome,
        scenario: Scenario,
        base_year: int,
        token: CancellationToken,
        deadline: Optional[float],
    ) -> ScenarioResult:
        scenario_id = scenario.identity
        _check_aborted(token, deadline)
        try:
            history = self.scenario_engine.derive(baseline_history, scenario)
            _check_aborted(token, deadline)
            outcome = self._compute_outcome(history, request, base_year)
        except AbortedRun:
            raise
        except PensionEngineError as exc:
            if not isinstance(exc, ScenarioComputationError):
                exc = ScenarioComputationError(scenario_id, exc.message, exc.kind)
            logger.warning(f"Scenario {scenario_id!r} failed: {exc.reason}")
            return ScenarioResult(
                scenario_id=scenario_id,
                kind=scenario.kind,
                status="failed",
                error=ErrorRecord.from_exception(exc),
            )

        return ScenarioResult(
            scenario_id=scenario_id,
            kind=scenario.kind,
            status="ok",
            outcome=outcome,
            delta=_delta(baseline, outcome),
        )

    def _compute_outcome(
        self, history: EmploymentHistory, request: CalculationRequest, base_year: int
    ) -> ProjectionOutcome:
        indexation = request.indexation
        ledger = build_ledger(
            history.periods,
            indexation,
            history.retirement_year,
            self.policy,
            reference_year=base_year,
        )
        projection = self.projector.project(
            ledger, history.retirement_age, request.person.gender
        )
        deflators = indexation.deflators(
            base_year,
            ledger.first_year,
            ledger.last_year,
            self.policy.indexation_gap_policy,
        )
        real_records = deflate_ledger(ledger, deflators)
        retirement_deflator = deflators[ledger.last_year]

        kpi = BenefitKPI(
            retirement_age=history.retirement_age,
            retirement_year=history.retirement_year,
            divisor=projection.divisor,
            final_balance=projection.final_balance,
            total_contributions=ledger.total_contributions,
            monthly_benefit=projection.monthly_benefit,
            replacement_rate=projection.replacement_rate,
            real_final_balance=projection.final_balance / retirement_deflator,
            real_total_contributions=sum(record.contribution for record in real_records),
            real_monthly_benefit=projection.monthly_benefit / retirement_deflator,
        )
        return ProjectionOutcome(ledger=ledger, real_records=real_records, kpi=kpi)


def create_orchestrator(settings: Settings) -> CalculationOrchestrator:
    """Create an orchestrator configured from application settings."""
    if settings.life_expectancy_table_path:
        table = LifeExpectancyTable.from_json_file(settings.life_expectancy_table_path)
    else:
        table = LifeExpectancyTable.default()
    return CalculationOrchestrator(build_calculation_policy(settings), table)


def _configuration_hash(
    policy: CalculationPolicy, life_expectancy: LifeExpectancyProvider
) -> str:
    """Fingerprint of everything besides the request that shapes a result."""
    if isinstance(life_expectancy, BaseModel):
        table: Any = life_expectancy.model_dump(mode="json")
    else:
        # Providers without a serializable table are told apart by type only.
        provider = type(life_expectancy)
        table = f"{provider.__module__}.{provider.__qualname__}"
    return canonical_hash(
        {"policy": policy.model_dump(mode="json"), "life_expectancy": table}
    )


def _check_aborted(token: CancellationToken, deadline: Optional[float]) -> None:
    if token.is_cancelled:
        raise AbortedRun("cancelled")
    if deadline is not None and time.monotonic() >= deadline:
        raise AbortedRun("timed out")


def _wait_all(
    futures: Sequence[Future], token: CancellationToken, deadline: Optional[float]
) -> None:
    """Block until every future is done, the token is set or the deadline passes."""
    pending = set(futures)
    while pending:
        _check_aborted(token, deadline)
        interval = _POLL_INTERVAL_SECONDS
        if deadline is not None:
            interval = max(0.0, min(interval, deadline - time.monotonic()))
        done, pending = wait(pending, timeout=interval, return_when=FIRST_EXCEPTION)
        for future in done:
            exc = future.exception()
            if exc is not None:
                raise exc


def _delta(baseline: ProjectionOutcome, outcome: ProjectionOutcome) -> ScenarioDelta:
    base_kpi = baseline.kpi
    kpi = outcome.kpi
    change_pct = None
    if base_kpi.monthly_benefit != 0:
        change_pct = (kpi.monthly_benefit - base_kpi.monthly_benefit) / base_kpi.monthly_benefit
    return ScenarioDelta(
        monthly_benefit_change=kpi.monthly_benefit - base_kpi.monthly_benefit,
        monthly_benefit_change_pct=change_pct,
        real_monthly_benefit_change=kpi.real_monthly_benefit
        - base_kpi.real_monthly_benefit,
        final_balance_change=kpi.final_balance - base_kpi.final_balance,
        retirement_age_change=kpi.retirement_age - base_kpi.retirement_age,
    )


def _summarize(
    baseline: ProjectionOutcome, scenarios: Sequence[ScenarioResult], base_year: int
) -> RunSummary:
    succeeded = [scenario for scenario in scenarios if scenario.succeeded]
    best = max(
        succeeded, key=lambda scenario: scenario.outcome.kpi.monthly_benefit, default=None
    )
    return RunSummary(
        base_year=base_year,
        baseline_monthly_benefit=baseline.kpi.monthly_benefit,
        baseline_real_monthly_benefit=baseline.kpi.real_monthly_benefit,
        baseline_replacement_rate=baseline.kpi.replacement_rate,
        scenarios_succeeded=len(succeeded),
        scenarios_failed=len(scenarios) - len(succeeded),
        best_scenario_id=best.scenario_id if best else None,
        best_monthly_benefit=best.outcome.kpi.monthly_benefit if best else None,
        best_real_monthly_benefit=best.outcome.kpi.real_monthly_benefit
        if best
        else None,
    )

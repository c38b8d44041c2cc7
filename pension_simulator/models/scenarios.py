"""
What-if scenarios derived from a baseline employment history.

A scenario is a pure description of a transformation.
``ScenarioEngine.derive`` applies it to a copy of the baseline history and
returns a new, independent ``EmploymentHistory``; the baseline periods are
frozen models and are never modified. An infeasible scenario raises
``ScenarioComputationError`` scoped to that scenario.
"""

from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import ScenarioComputationError
from .policy import CalculationPolicy
from .profile import EmploymentPeriod, PersonProfile


class ScenarioBase(BaseModel):
    """Fields shared by all scenario kinds."""

    model_config = ConfigDict(frozen=True)

    scenario_id: Optional[str] = Field(
        default=None, min_length=1, description="Caller-chosen scenario identifier"
    )

    @property
    def identity(self) -> str:
        """Scenario identifier, defaulting to the scenario kind."""
        return self.scenario_id or self.kind  # type: ignore[attr-defined]


class ExtendWorkScenario(ScenarioBase):
    """Work N more years under the last contract before retiring."""

    kind: Literal["extend_work"] = "extend_work"
    years: int = Field(..., ge=1, le=30, description="Additional working years")


class ReduceSickLeaveScenario(ScenarioBase):
    """Lower the assumed sick-leave days of every period to a target."""

    kind: Literal["reduce_sick_leave"] = "reduce_sick_leave"
    target_days: float = Field(..., ge=0, description="Sick-leave days per year")


class RaiseSalaryScenario(ScenarioBase):
    """Raise income from a given year onward."""

    kind: Literal["raise_salary"] = "raise_salary"
    from_year: int = Field(..., ge=1900, le=2100, description="First raised year")
    uplift_rate: float = Field(
        ..., ge=0, le=10, description="One-off income uplift (0.10 = 10%)"
    )
    additional_growth_rate: float = Field(
        default=0.0, ge=-0.5, le=1, description="Extra annual income growth"
    )


SimpleScenario = Annotated[
    Union[ExtendWorkScenario, ReduceSickLeaveScenario, RaiseSalaryScenario],
    Field(discriminator="kind"),
]


class CompositeScenario(ScenarioBase):
    """Several transformations applied in the given order."""

    kind: Literal["composite"] = "composite"
    steps: List[SimpleScenario] = Field(
        ..., min_length=1, description="Transformations in application order"
    )


Scenario = Annotated[
    Union[
        ExtendWorkScenario,
        ReduceSickLeaveScenario,
        RaiseSalaryScenario,
        CompositeScenario,
    ],
    Field(discriminator="kind"),
]


class EmploymentHistory(BaseModel):
    """Employment periods together with the retirement they lead to."""

    model_config = ConfigDict(frozen=True)

    periods: Tuple[EmploymentPeriod, ...] = Field(..., description="Employment periods")
    retirement_age: int = Field(..., description="Retirement age")
    retirement_year: int = Field(..., description="Retirement year")

    @classmethod
    def from_profile(cls, profile: PersonProfile) -> "EmploymentHistory":
        return cls(
            periods=profile.employment_periods,
            retirement_age=profile.target_retirement_age,
            retirement_year=profile.retirement_year,
        )


class ScenarioEngine:
    """Derives scenario employment histories from a baseline."""

    def __init__(self, policy: Optional[CalculationPolicy] = None):
        self.policy = policy or CalculationPolicy()

    def derive(self, baseline: EmploymentHistory, scenario: Scenario) -> EmploymentHistory:
        """
        Apply a scenario to a baseline history.

        Args:
            baseline: Baseline employment history (left untouched)
            scenario: Scenario to apply

        Returns:
            New EmploymentHistory reflecting the scenario

        Raises:
            ScenarioComputationError: If the scenario is infeasible
        """
        if isinstance(scenario, CompositeScenario):
            history = baseline
            for step in scenario.steps:
                history = self._apply(history, step, scenario.identity)
            return history
        return self._apply(baseline, scenario, scenario.identity)

    def _apply(
        self, history: EmploymentHistory, step: SimpleScenario, scenario_id: str
    ) -> EmploymentHistory:
        if isinstance(step, ExtendWorkScenario):
            return self._extend_work(history, step, scenario_id)
        if isinstance(step, ReduceSickLeaveScenario):
            return self._reduce_sick_leave(history, step)
        if isinstance(step, RaiseSalaryScenario):
            return self._raise_salary(history, step, scenario_id)
        raise ScenarioComputationError(
            scenario_id, f"Unsupported scenario step: {type(step).__name__}"
        )

    def _extend_work(
        self, history: EmploymentHistory, step: ExtendWorkScenario, scenario_id: str
    ) -> EmploymentHistory:
        new_age = history.retirement_age + step.years
        if new_age > self.policy.max_retirement_age:
            raise ScenarioComputationError(
                scenario_id,
                f"Retirement age {new_age} exceeds the legal maximum "
                f"{self.policy.max_retirement_age}",
            )

        # The extension starts right after the old retirement year.
        periods = _clip_to_year(history.periods, history.retirement_year)
        if not periods:
            raise ScenarioComputationError(
                scenario_id, "No employment before retirement to extend"
            )
        last = max(periods, key=lambda period: period.last_month_index)
        first_new_year = history.retirement_year + 1
        extension = last.model_copy(
            update={
                "start_year": first_new_year,
                "start_month": 1,
                "end_year": history.retirement_year + step.years,
                "end_month": 12,
                "monthly_income": last.monthly_income_in(first_new_year),
            }
        )
        return EmploymentHistory(
            periods=periods + (extension,),
            retirement_age=new_age,
            retirement_year=history.retirement_year + step.years,
        )

    def _reduce_sick_leave(
        self, history: EmploymentHistory, step: ReduceSickLeaveScenario
    ) -> EmploymentHistory:
        periods = tuple(
            period.model_copy(
                update={
                    "sick_leave_days": min(period.sick_leave_days, step.target_days)
                }
            )
            for period in history.periods
        )
        return history.model_copy(update={"periods": periods})

    def _raise_salary(
        self, history: EmploymentHistory, step: RaiseSalaryScenario, scenario_id: str
    ) -> EmploymentHistory:
        if step.from_year > history.retirement_year:
            raise ScenarioComputationError(
                scenario_id,
                f"Raise year {step.from_year} is after retirement year "
                f"{history.retirement_year}",
            )

        periods: List[EmploymentPeriod] = []
        for period in history.periods:
            if period.end_year < step.from_year:
                periods.append(period)
                continue

            new_growth = period.income_growth_rate + step.additional_growth_rate
            if new_growth <= -1:
                raise ScenarioComputationError(
                    scenario_id, f"Income growth rate {new_growth} must be > -1"
                )
            if period.start_year >= step.from_year:
                periods.append(
                    period.model_copy(
                        update={
                            "monthly_income": period.monthly_income
                            * (1 + step.uplift_rate),
                            "income_growth_rate": new_growth,
                        }
                    )
                )
                continue

            # The period spans the raise year: split it there.
            periods.append(
                period.model_copy(update={"end_year": step.from_year - 1, "end_month": 12})
            )
            periods.append(
                period.model_copy(
                    update={
                        "start_year": step.from_year,
                        "start_month": 1,
                        "monthly_income": period.monthly_income_in(step.from_year)
                        * (1 + step.uplift_rate),
                        "income_growth_rate": new_growth,
                    }
                )
            )
        return history.model_copy(update={"periods": tuple(periods)})


def _clip_to_year(
    periods: Tuple[EmploymentPeriod, ...], last_year: int
) -> Tuple[EmploymentPeriod, ...]:
    """Drop the parts of periods after a year."""
    clipped: List[EmploymentPeriod] = []
    for period in periods:
        if period.start_year > last_year:
            continue
        if period.end_year > last_year:
            period = period.model_copy(update={"end_year": last_year, "end_month": 12})
        clipped.append(period)
    return tuple(clipped)

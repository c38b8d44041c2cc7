"""Domain models and calculation engine for pension forecasting."""

from .contracts import ContractProfile, ContributionAssessment, is_known_contract_type
from .errors import (
    AbortedRun,
    IndexationGap,
    InvalidDivisor,
    InvalidSickLeaveAssumption,
    PensionEngineError,
    ScenarioComputationError,
    UnknownContractType,
    ValidationError,
)
from .indexation import IndexationTable, YearIndexation, create_flat_indexation
from .ledger import ContributionLedger, YearRecord, build_ledger
from .policy import CalculationPolicy, ContributionPolicy, SickLeavePolicy
from .profile import CONTRACT_TYPES, EmploymentPeriod, PersonProfile
from .projector import (
    LifeExpectancyProvider,
    LifeExpectancyTable,
    PensionProjection,
    PensionProjector,
)
from .request import CalculationRequest
from .results import (
    BenefitKPI,
    ErrorRecord,
    ProjectionOutcome,
    RealYearRecord,
    RunSummary,
    ScenarioDelta,
    ScenarioResult,
    SimulationResult,
    deflate_ledger,
)
from .scenarios import (
    CompositeScenario,
    EmploymentHistory,
    ExtendWorkScenario,
    RaiseSalaryScenario,
    ReduceSickLeaveScenario,
    Scenario,
    ScenarioEngine,
)
from .sick_leave import SickLeaveAdjustor

__all__ = [
    "AbortedRun",
    "BenefitKPI",
    "CONTRACT_TYPES",
    "CalculationPolicy",
    "CalculationRequest",
    "CompositeScenario",
    "ContractProfile",
    "ContributionAssessment",
    "ContributionLedger",
    "ContributionPolicy",
    "EmploymentHistory",
    "EmploymentPeriod",
    "ErrorRecord",
    "ExtendWorkScenario",
    "IndexationGap",
    "IndexationTable",
    "InvalidDivisor",
    "InvalidSickLeaveAssumption",
    "LifeExpectancyProvider",
    "LifeExpectancyTable",
    "PensionEngineError",
    "PensionProjection",
    "PensionProjector",
    "PersonProfile",
    "ProjectionOutcome",
    "RaiseSalaryScenario",
    "RealYearRecord",
    "ReduceSickLeaveScenario",
    "RunSummary",
    "Scenario",
    "ScenarioComputationError",
    "ScenarioDelta",
    "ScenarioEngine",
    "ScenarioResult",
    "SickLeaveAdjustor",
    "SickLeavePolicy",
    "SimulationResult",
    "UnknownContractType",
    "ValidationError",
    "YearIndexation",
    "YearRecord",
    "build_ledger",
    "create_flat_indexation",
    "deflate_ledger",
    "is_known_contract_type",
]

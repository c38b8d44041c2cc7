"""
Typed errors raised by the pension calculation engine.

Every failure that crosses the engine boundary is one of these exceptions.
Each carries a stable ``kind`` string and a ``context`` dictionary so the API
layer can turn it into a field-named error record without inspecting messages.
"""

from typing import Any, Dict, Optional


class PensionEngineError(Exception):
    """Base exception for all calculation engine errors."""

    kind = "engine_error"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error into a JSON-friendly record."""
        return {"kind": self.kind, "message": self.message, "context": self.context}


class ValidationError(PensionEngineError):
    """Raised when a calculation request is malformed or out of policy."""

    kind = "validation_error"

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}", {"field": field})
        self.field = field

    @classmethod
    def from_pydantic(cls, exc: Any) -> "ValidationError":
        """Build a field-attributed error from a pydantic ValidationError."""
        errors = exc.errors()
        if not errors:
            return cls("request", str(exc))
        first = errors[0]
        field = ""
        for part in first.get("loc", ()):
            if isinstance(part, int):
                field += f"[{part}]"
            else:
                field += f".{part}" if field else str(part)
        return cls(field or "request", first.get("msg", "invalid value"))


class UnknownContractType(PensionEngineError):
    """Raised when a contract-type tag is outside the enumerated set."""

    kind = "unknown_contract_type"

    def __init__(self, contract_type: str):
        super().__init__(
            f"Unknown contract type: {contract_type!r}",
            {"contract_type": contract_type},
        )
        self.contract_type = contract_type


class IndexationGap(PensionEngineError):
    """Raised when indexation data is missing for a required year."""

    kind = "indexation_gap"

    def __init__(self, year: int):
        super().__init__(f"No indexation data for year {year}", {"year": year})
        self.year = year


class InvalidSickLeaveAssumption(PensionEngineError):
    """Raised when assumed sick-leave days are negative or exceed working days."""

    kind = "invalid_sick_leave_assumption"

    def __init__(self, sick_leave_days: float, working_days: int):
        super().__init__(
            f"Sick-leave days {sick_leave_days} must be between 0 and "
            f"{working_days} working days",
            {"sick_leave_days": sick_leave_days, "working_days": working_days},
        )


class InvalidDivisor(PensionEngineError):
    """Raised when no usable life-expectancy divisor exists for an age/gender."""

    kind = "invalid_divisor"

    def __init__(self, age: int, gender: str, divisor: Optional[float] = None):
        if divisor is None:
            message = f"No life-expectancy divisor for age {age} ({gender})"
        else:
            message = (
                f"Life-expectancy divisor for age {age} ({gender}) must be "
                f"positive, got {divisor}"
            )
        super().__init__(message, {"age": age, "gender": gender, "divisor": divisor})


class ScenarioComputationError(PensionEngineError):
    """Raised when a single scenario cannot be derived or computed."""

    kind = "scenario_computation_error"

    def __init__(
        self, scenario_id: str, reason: str, cause_kind: Optional[str] = None
    ):
        super().__init__(
            f"Scenario {scenario_id!r} failed: {reason}",
            {"scenario_id": scenario_id, "reason": reason, "cause_kind": cause_kind},
        )
        self.scenario_id = scenario_id
        self.reason = reason
        self.cause_kind = cause_kind


class AbortedRun(PensionEngineError):
    """Raised when a calculation run is cancelled or times out."""

    kind = "aborted_run"

    def __init__(self, reason: str):
        super().__init__(f"Calculation run aborted: {reason}", {"reason": reason})
        self.reason = reason

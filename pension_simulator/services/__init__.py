"""Services coordinating calculation runs and result persistence."""

from .calculation_service import (
    CalculationOrchestrator,
    CancellationToken,
    create_orchestrator,
)
from .result_cache import ResultCache

__all__ = [
    "CalculationOrchestrator",
    "CancellationToken",
    "ResultCache",
    "create_orchestrator",
]

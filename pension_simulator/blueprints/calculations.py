"""
Calculations blueprint.

``POST /api/calculations`` runs a pension calculation for a JSON request and
returns the full result; ``GET /api/calculations/<input_hash>`` returns a
previously computed result from the result cache.
"""

from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, Response, current_app, jsonify, request
from pydantic import ValidationError as PydanticValidationError

from pension_simulator.models.errors import (
    AbortedRun,
    IndexationGap,
    InvalidDivisor,
    InvalidSickLeaveAssumption,
    PensionEngineError,
    UnknownContractType,
    ValidationError,
)
from pension_simulator.models.request import CalculationRequest
from pension_simulator.services.calculation_service import CalculationOrchestrator
from pension_simulator.services.result_cache import ResultCache
from pension_simulator.storage.base import StorageError

calculations_bp = Blueprint("calculations", __name__, url_prefix="/api")

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (IndexationGap, 422),
    (InvalidSickLeaveAssumption, 422),
    (InvalidDivisor, 422),
    (UnknownContractType, 422),
    (AbortedRun, 504),
)


def status_for(exc: PensionEngineError) -> int:
    """HTTP status code for an engine error."""
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 422


def _error_response(exc: PensionEngineError) -> Tuple[Response, int]:
    return jsonify({"error": exc.to_dict()}), status_for(exc)


def _orchestrator() -> CalculationOrchestrator:
    return current_app.extensions["calculation_orchestrator"]


def _cache() -> Optional[ResultCache]:
    return current_app.extensions.get("result_cache")


@calculations_bp.route("/calculations", methods=["POST"])
def create_calculation() -> Any:
    """Run a calculation.

    Returns:
        JSON result (200) or an error record with 400, 422 or 504
    """
    data: Optional[Dict[str, Any]] = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _error_response(
            ValidationError("request", "body must be a JSON object")
        )

    try:
        calculation_request = CalculationRequest.model_validate(data)
    except PydanticValidationError as e:
        return _error_response(ValidationError.from_pydantic(e))

    cache = _cache()
    input_hash = calculation_request.content_hash()
    if cache is not None:
        cached = cache.get(input_hash, _orchestrator().configuration_hash)
        if cached is not None:
            current_app.logger.info(f"Serving cached result {input_hash[:12]}")
            return jsonify(cached.to_dict())

    try:
        result = _orchestrator().run(
            calculation_request,
            timeout=current_app.config.get("CALCULATION_TIMEOUT_SECONDS"),
        )
    except PensionEngineError as e:
        current_app.logger.info(f"Calculation {input_hash[:12]} rejected: {e.message}")
        return _error_response(e)
    except Exception as e:
        current_app.logger.error(f"Error running calculation: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500

    if cache is not None:
        try:
            cache.put(result)
        except StorageError as e:
            current_app.logger.warning(f"Could not cache result {input_hash[:12]}: {e}")

    return jsonify(result.to_dict())


@calculations_bp.route("/calculations/<input_hash>", methods=["GET"])
def get_calculation(input_hash: str) -> Any:
    """Get a cached calculation result.

    Args:
        input_hash: SHA-256 content hash of the original request

    Returns:
        JSON result, or 404 if no result is cached under the hash
    """
    cache = _cache()
    result = (
        cache.get(input_hash, _orchestrator().configuration_hash)
        if cache is not None
        else None
    )
    if result is None:
        return jsonify({"error": "Calculation not found"}), 404
    return jsonify(result.to_dict())

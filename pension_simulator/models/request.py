"""
Calculation request: the complete engine input of one run.
"""

import hashlib
import json
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from .indexation import IndexationTable
from .profile import PersonProfile
from .scenarios import Scenario


def canonical_hash(data: Any) -> str:
    """SHA-256 of JSON data serialized with sorted keys and no whitespace."""
    payload = json.dumps(data, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class CalculationRequest(BaseModel):
    """Person, indexation data and what-if scenarios to evaluate."""

    model_config = ConfigDict(frozen=True)

    person: PersonProfile = Field(..., description="Insured person and work history")
    indexation: IndexationTable = Field(..., description="Year-keyed indexation data")
    scenarios: List[Scenario] = Field(
        default_factory=list, description="Scenarios in result order"
    )

    def canonical_json(self) -> str:
        """Serialize to JSON with sorted keys and no insignificant whitespace."""
        data: Dict[str, Any] = self.model_dump(mode="json")
        return json.dumps(data, sort_keys=True, separators=(",", ":"))

    def content_hash(self) -> str:
        """SHA-256 of the canonical JSON; equal requests hash equally."""
        return canonical_hash(self.model_dump(mode="json"))

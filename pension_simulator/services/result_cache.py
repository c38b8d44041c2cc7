"""
Result cache keyed by request content hash.

Results are stored verbatim as JSON under ``results/<input_hash>.json``. Equal
requests have equal hashes and, because runs are deterministic, equal results
as long as the policy and divisor table stay the same. Every result records the
configuration hash it was computed with, and a lookup under a different
configuration is a miss.
"""

import logging
import re
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from pension_simulator.models.results import SimulationResult
from pension_simulator.storage.base import StorageNotFoundError, StorageService

logger = logging.getLogger(__name__)

_HASH_PATTERN = re.compile(r"^[0-9a-f]{64}$")


class ResultCache:
    """Stores and looks up simulation results on a storage backend."""

    def __init__(self, storage: StorageService, prefix: str = "results"):
        self.storage = storage
        self.prefix = prefix.strip("/")

    @staticmethod
    def is_valid_hash(input_hash: str) -> bool:
        return bool(_HASH_PATTERN.match(input_hash))

    def _key(self, input_hash: str) -> str:
        if not self.is_valid_hash(input_hash):
            raise ValueError(f"Invalid input hash: {input_hash!r}")
        return f"{self.prefix}/{input_hash}.json"

    def put(self, result: SimulationResult) -> str:
        """Store a result under its input hash and return the storage key."""
        key = self._key(result.input_hash)
        self.storage.write_text(key, result.to_json(indent=None))
        logger.debug(f"Cached result {result.input_hash[:12]}")
        return key

    def get(
        self, input_hash: str, configuration_hash: Optional[str] = None
    ) -> Optional[SimulationResult]:
        """
        Look up a cached result.

        Args:
            input_hash: Content hash of the request
            configuration_hash: If given, only a result computed under this
                policy and divisor table is returned

        Returns:
            The cached SimulationResult, or None if absent, unreadable or
            computed under another configuration
        """
        if not self.is_valid_hash(input_hash):
            return None
        try:
            payload = self.storage.read_text(self._key(input_hash))
        except StorageNotFoundError:
            return None

        try:
            result = SimulationResult.model_validate_json(payload)
        except PydanticValidationError as e:
            logger.warning(f"Ignoring unreadable cached result {input_hash[:12]}: {e}")
            return None

        if configuration_hash is not None and result.configuration_hash != configuration_hash:
            logger.info(
                f"Ignoring cached result {input_hash[:12]} computed under "
                f"configuration {result.configuration_hash[:12]}"
            )
            return None
        return result

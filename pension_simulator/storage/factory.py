"""
Storage service factory for creating storage instances based on configuration.
"""

from pension_simulator.config import Settings

from .base import StorageService
from .local import LocalStorageService


def create_storage_service(settings: Settings) -> StorageService:
    """
    Create a storage service instance based on configuration.

    Args:
        settings: Application settings containing storage configuration

    Returns:
        StorageService: Configured storage service instance

    Raises:
        ValueError: If storage configuration is invalid
    """
    if settings.storage_type == "local":
        return LocalStorageService(base_path=settings.storage_base_path, create_dirs=True)

    raise ValueError(f"Unsupported storage type: {settings.storage_type}")

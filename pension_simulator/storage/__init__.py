"""
Storage backends for persisted calculation results.
"""

from .base import (
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageService,
)
from .factory import create_storage_service
from .local import LocalStorageService

__all__ = [
    "StorageService",
    "StorageError",
    "StorageNotFoundError",
    "StoragePermissionError",
    "LocalStorageService",
    "create_storage_service",
]

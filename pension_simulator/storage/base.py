"""
Base storage service interface and exceptions.

Storage backends hold opaque byte blobs under slash-separated keys. The result
cache is the only consumer; it stores serialized calculation results.
"""

from abc import ABC, abstractmethod
from typing import List


class StorageError(Exception):
    """Base exception for storage-related errors."""


class StorageNotFoundError(StorageError):
    """Raised when a requested key is not found in storage."""


class StoragePermissionError(StorageError):
    """Raised when there are permission issues with storage operations."""


class StorageService(ABC):
    """Abstract key/blob store."""

    @abstractmethod
    def write(self, key: str, content: bytes) -> str:
        """
        Store content under a key, replacing any previous content.

        Args:
            key: Slash-separated storage key
            content: Content as bytes

        Returns:
            str: The key the content was stored under

        Raises:
            StorageError: If the content cannot be stored
        """

    @abstractmethod
    def read(self, key: str) -> bytes:
        """
        Read the content stored under a key.

        Raises:
            StorageNotFoundError: If nothing is stored under the key
            StorageError: If the content cannot be read
        """

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            bool: True if the key existed, False otherwise
        """

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check whether content is stored under a key."""

    @abstractmethod
    def list_keys(self, prefix: str = "") -> List[str]:
        """List stored keys starting with a prefix, sorted."""

    def read_text(self, key: str, encoding: str = "utf-8") -> str:
        return self.read(key).decode(encoding)

    def write_text(self, key: str, text: str, encoding: str = "utf-8") -> str:
        return self.write(key, text.encode(encoding))

"""
Local filesystem storage service.

Each key maps to a file below a base directory. Writes go to a temporary file
that is then renamed over the target, so a reader never sees partial content.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import List

from .base import (
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageService,
)

logger = logging.getLogger(__name__)


class LocalStorageService(StorageService):
    """Storage service backed by a local directory."""

    def __init__(self, base_path: str = "storage", create_dirs: bool = True):
        """
        Initialize the local storage service.

        Args:
            base_path: Base directory for stored files
            create_dirs: Whether to create directories if they don't exist
        """
        self.base_path = Path(base_path)
        self.create_dirs = create_dirs

        if self.create_dirs:
            self.base_path.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        """
        Map a key to a path below the base directory.

        Raises:
            StorageError: If the key is empty or escapes the base directory
        """
        parts = [part for part in key.replace("\\", "/").split("/") if part not in ("", ".")]
        if not parts:
            raise StorageError(f"Invalid storage key: {key!r}")
        if ".." in parts:
            raise StorageError(f"Storage key may not contain '..': {key!r}")
        return self.base_path.joinpath(*parts)

    def write(self, key: str, content: bytes) -> str:
        path = self._path_for(key)
        try:
            if self.create_dirs:
                path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(content)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except PermissionError as e:
            raise StoragePermissionError(f"Permission denied storing {key}: {e}")
        except OSError as e:
            raise StorageError(f"Failed to store {key}: {e}")

        logger.debug(f"Stored {len(content)} bytes under {key}")
        return key

    def read(self, key: str) -> bytes:
        path = self._path_for(key)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            raise StorageNotFoundError(f"Key not found: {key}") from None
        except PermissionError as e:
            raise StoragePermissionError(f"Permission denied reading {key}: {e}")
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}")

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except PermissionError as e:
            raise StoragePermissionError(f"Permission denied deleting {key}: {e}")
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}")
        return True

    def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()

    def list_keys(self, prefix: str = "") -> List[str]:
        if not self.base_path.exists():
            return []
        keys = []
        for path in self.base_path.rglob("*"):
            if not path.is_file() or path.name.startswith(".tmp-"):
                continue
            key = path.relative_to(self.base_path).as_posix()
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)

"""
Tests for the storage backends and factory.
"""

import os
from unittest.mock import patch

import pytest

from pension_simulator.config import Settings
from pension_simulator.storage import (
    LocalStorageService,
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
    create_storage_service,
)


class TestLocalStorageService:
    """Test cases for local storage service."""

    @pytest.fixture
    def local_storage(self, tmp_path):
        """Create a local storage service instance."""
        return LocalStorageService(base_path=str(tmp_path / "store"), create_dirs=True)

    def test_write_and_read(self, local_storage):
        """Test storing and reading content."""
        key = local_storage.write("results/abc.json", b'{"a": 1}')

        assert key == "results/abc.json"
        assert local_storage.exists("results/abc.json")
        assert local_storage.read("results/abc.json") == b'{"a": 1}'

    def test_overwrite(self, local_storage):
        """Test that writing a key again replaces its content."""
        local_storage.write("k.txt", b"first")
        local_storage.write("k.txt", b"second")

        assert local_storage.read("k.txt") == b"second"
        assert local_storage.list_keys() == ["k.txt"]

    def test_text_helpers(self, local_storage):
        """Test text read and write."""
        local_storage.write_text("notes/a.txt", "zażółć")

        assert local_storage.read_text("notes/a.txt") == "zażółć"

    def test_read_missing(self, local_storage):
        """Test that reading a missing key raises StorageNotFoundError."""
        with pytest.raises(StorageNotFoundError):
            local_storage.read("missing.json")

    def test_delete(self, local_storage):
        """Test deleting keys."""
        local_storage.write("a.bin", b"x")

        assert local_storage.delete("a.bin") is True
        assert local_storage.delete("a.bin") is False
        assert not local_storage.exists("a.bin")

    def test_list_keys_with_prefix(self, local_storage):
        """Test listing keys by prefix."""
        local_storage.write("results/b.json", b"1")
        local_storage.write("results/a.json", b"2")
        local_storage.write("other/c.json", b"3")

        assert local_storage.list_keys("results/") == ["results/a.json", "results/b.json"]
        assert len(local_storage.list_keys()) == 3

    @pytest.mark.parametrize("key", ["", "/", "../escape.txt", "a/../../b"])
    def test_invalid_keys(self, local_storage, key):
        """Test that empty and escaping keys are rejected."""
        with pytest.raises(StorageError):
            local_storage.write(key, b"x")

    def test_leading_slash_stays_inside_base(self, local_storage):
        """Test that absolute-looking keys are relative to the base path."""
        local_storage.write("/abs/key.txt", b"x")

        assert (local_storage.base_path / "abs" / "key.txt").exists()

    def test_permission_error(self, local_storage):
        """Test that permission problems map to StoragePermissionError."""
        with patch("tempfile.mkstemp", side_effect=PermissionError("denied")):
            with pytest.raises(StoragePermissionError):
                local_storage.write("a.txt", b"x")

    def test_list_keys_missing_base(self, tmp_path):
        """Test listing when the base directory does not exist."""
        storage = LocalStorageService(base_path=str(tmp_path / "nowhere"), create_dirs=False)

        assert storage.list_keys() == []


class TestStorageFactory:
    """Test cases for the storage factory."""

    def test_create_local_storage(self, tmp_path):
        """Test creating local storage from settings."""
        with patch.dict(
            os.environ,
            {"SECRET_KEY": "valid-secret-key-123", "STORAGE_BASE_PATH": str(tmp_path / "s")},
            clear=True,
        ):
            storage = create_storage_service(Settings(_env_file=None))

        assert isinstance(storage, LocalStorageService)
        assert storage.base_path == tmp_path / "s"
        assert storage.base_path.exists()

"""Tests for storage and sync configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from gym_session_storage.config import (
    CosmosAuthMethod,
    StorageConfig,
    SyncConfig,
    load_settings,
    read_settings,
)
from gym_session_storage.exceptions import StorageIOError


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "GYM_LOCAL_PATH",
        "GYM_COSMOS_ENDPOINT",
        "GYM_COSMOS_KEY",
        "GYM_COSMOS_AUTH_METHOD",
        "GYM_COSMOS_DATABASE",
        "GYM_COSMOS_CONTAINER",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def write_settings(path: Path, data: dict) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestStorageConfig:
    """Tests for StorageConfig."""

    def test_defaults(self, clean_env) -> None:
        """Test default storage settings."""
        config = StorageConfig.from_environment()

        assert config.cosmos_database == "gym-tracker"
        assert config.cosmos_container == "user_data"
        assert config.cosmos_auth_method == CosmosAuthMethod.DEFAULT_CREDENTIAL
        assert not config.remote_enabled
        assert config.local_dir.name == "data"

    def test_from_environment(self, clean_env) -> None:
        """Test reading storage settings from GYM_* variables."""
        clean_env.setenv("GYM_COSMOS_ENDPOINT", "https://test.documents.azure.com:443/")
        clean_env.setenv("GYM_COSMOS_AUTH_METHOD", "KEY")
        clean_env.setenv("GYM_COSMOS_KEY", "secret")
        clean_env.setenv("GYM_LOCAL_PATH", "/tmp/gym")

        config = StorageConfig.from_environment()

        assert config.remote_enabled
        assert config.cosmos_auth_method == CosmosAuthMethod.KEY
        assert config.cosmos_key == "secret"
        assert config.local_dir == Path("/tmp/gym")

    def test_unknown_auth_method_falls_back(self, clean_env) -> None:
        """Test that an unknown auth method uses the default credential."""
        clean_env.setenv("GYM_COSMOS_AUTH_METHOD", "magic")

        config = StorageConfig.from_environment()

        assert config.cosmos_auth_method == CosmosAuthMethod.DEFAULT_CREDENTIAL

    def test_from_dict_ignores_unknown_keys(self) -> None:
        """Test that unknown settings keys are ignored."""
        config = StorageConfig.from_dict(
            {"cosmos_database": "other", "cosmos_auth_method": "key", "colour": "blue"}
        )

        assert config.cosmos_database == "other"
        assert config.cosmos_auth_method == CosmosAuthMethod.KEY


class TestSettingsFile:
    """Tests for YAML settings loading."""

    def test_missing_file_is_empty(self, temp_dir: Path) -> None:
        """Test that a missing settings file yields defaults."""
        assert read_settings(temp_dir / "missing.yaml") == {}

    def test_invalid_yaml_raises(self, temp_dir: Path) -> None:
        """Test that malformed YAML is reported."""
        path = temp_dir / "settings.yaml"
        path.write_text("storage: [unclosed", encoding="utf-8")

        with pytest.raises(StorageIOError):
            read_settings(path)

    def test_load_settings(self, temp_dir: Path, clean_env) -> None:
        """Test loading both sections from a settings file."""
        path = write_settings(
            temp_dir / "settings.yaml",
            {
                "storage": {"cosmos_endpoint": "https://file.documents.azure.com:443/"},
                "sync": {"debounce_seconds": 2.5, "unknown": True},
            },
        )

        storage, sync = load_settings(path)

        assert storage.cosmos_endpoint == "https://file.documents.azure.com:443/"
        assert sync.debounce_seconds == 2.5
        assert sync.pull_interval_seconds == 20.0

    def test_environment_overrides_file(self, temp_dir: Path, clean_env) -> None:
        """Test that environment variables win over the file."""
        path = write_settings(
            temp_dir / "settings.yaml",
            {"storage": {"cosmos_endpoint": "https://file.documents.azure.com:443/"}},
        )
        clean_env.setenv("GYM_COSMOS_ENDPOINT", "https://env.documents.azure.com:443/")

        storage, _ = load_settings(path)

        assert storage.cosmos_endpoint == "https://env.documents.azure.com:443/"


class TestSyncConfig:
    """Tests for SyncConfig."""

    def test_defaults(self) -> None:
        """Test default sync timings."""
        config = SyncConfig()

        assert config.debounce_seconds == 1.2
        assert config.pull_interval_seconds == 20.0
        assert config.flush_on_close is True

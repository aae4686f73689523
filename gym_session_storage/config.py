"""
Configuration for storage and sync.

Settings can come from a YAML file (``~/.gym-tracker/settings.yaml``),
from environment variables, or be built directly in code. Environment
variables override file values.

Example settings.yaml:

```yaml
identity:
  user_id: "4f1c..."
  email: "me@example.com"
storage:
  local_path: "~/.gym-tracker/data"
  cosmos_endpoint: "https://my-account.documents.azure.com:443/"
  cosmos_auth_method: "default_credential"
  cosmos_database: "gym-tracker"
  cosmos_container: "user_data"
sync:
  debounce_seconds: 1.2
  pull_interval_seconds: 20
```
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .exceptions import StorageIOError

DEFAULT_HOME = Path.home() / ".gym-tracker"
DEFAULT_SETTINGS_PATH = DEFAULT_HOME / "settings.yaml"


class CosmosAuthMethod(Enum):
    """Authentication method for Cosmos DB.

    KEY: Use the account key
    DEFAULT_CREDENTIAL: Use Azure DefaultAzureCredential
        (Azure CLI, Managed Identity, environment variables, ...)
    """

    KEY = "key"
    DEFAULT_CREDENTIAL = "default_credential"


@dataclass
class StorageConfig:
    """Where records live, locally and remotely.

    Environment Variables:
        GYM_LOCAL_PATH: Directory for the local slot files
        GYM_COSMOS_ENDPOINT: Cosmos DB endpoint URL
        GYM_COSMOS_KEY: Cosmos DB key (if using key auth)
        GYM_COSMOS_AUTH_METHOD: Auth method (default: default_credential)
        GYM_COSMOS_DATABASE: Database name (default: gym-tracker)
        GYM_COSMOS_CONTAINER: Container name (default: user_data)
    """

    local_path: str | None = None

    cosmos_endpoint: str | None = None
    cosmos_auth_method: CosmosAuthMethod = CosmosAuthMethod.DEFAULT_CREDENTIAL
    cosmos_key: str | None = None
    cosmos_database: str = "gym-tracker"
    cosmos_container: str = "user_data"

    max_retries: int = 3
    retry_delay: float = 1.0  # seconds, doubled per attempt

    @property
    def local_dir(self) -> Path:
        if self.local_path:
            return Path(self.local_path).expanduser()
        return DEFAULT_HOME / "data"

    @property
    def remote_enabled(self) -> bool:
        return bool(self.cosmos_endpoint)

    @classmethod
    def from_environment(cls, base: StorageConfig | None = None) -> StorageConfig:
        """Create configuration from environment variables.

        Args:
            base: Values to fall back on when a variable is unset

        Returns:
            StorageConfig populated from environment variables
        """
        base = base or cls()
        auth_method_str = os.environ.get("GYM_COSMOS_AUTH_METHOD")
        auth_method = base.cosmos_auth_method
        if auth_method_str:
            try:
                auth_method = CosmosAuthMethod(auth_method_str.lower())
            except ValueError:
                auth_method = CosmosAuthMethod.DEFAULT_CREDENTIAL

        return cls(
            local_path=os.environ.get("GYM_LOCAL_PATH", base.local_path),
            cosmos_endpoint=os.environ.get("GYM_COSMOS_ENDPOINT", base.cosmos_endpoint),
            cosmos_auth_method=auth_method,
            cosmos_key=os.environ.get("GYM_COSMOS_KEY", base.cosmos_key),
            cosmos_database=os.environ.get("GYM_COSMOS_DATABASE", base.cosmos_database),
            cosmos_container=os.environ.get("GYM_COSMOS_CONTAINER", base.cosmos_container),
            max_retries=base.max_retries,
            retry_delay=base.retry_delay,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StorageConfig:
        values = _known_fields(cls, data)
        if "cosmos_auth_method" in values:
            method = str(values["cosmos_auth_method"]).lower()
            values["cosmos_auth_method"] = CosmosAuthMethod(method)
        return cls(**values)


@dataclass
class SyncConfig:
    """Timing for the sync coordinator."""

    # Quiet period after the last local mutation before pushing
    debounce_seconds: float = 1.2
    # Background pull cadence while signed in
    pull_interval_seconds: float = 20.0
    # How long a transient status message stays visible
    status_ttl_seconds: float = 4.0
    # Push a still-pending debounced change when the coordinator closes
    flush_on_close: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncConfig:
        return cls(**_known_fields(cls, data))


def _known_fields(cls: type, data: dict[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in (data or {}).items() if k in names}


def read_settings(path: Path | None = None) -> dict[str, Any]:
    """Read the YAML settings file, returning {} if it does not exist."""
    path = path or DEFAULT_SETTINGS_PATH
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise StorageIOError("read_settings", str(path), e) from e


def load_settings(path: Path | None = None) -> tuple[StorageConfig, SyncConfig]:
    """Load storage and sync settings from file, then environment.

    Args:
        path: Settings file. Defaults to ~/.gym-tracker/settings.yaml

    Returns:
        (StorageConfig, SyncConfig)
    """
    settings = read_settings(path)
    storage = StorageConfig.from_environment(StorageConfig.from_dict(settings.get("storage", {})))
    sync = SyncConfig.from_dict(settings.get("sync", {}))
    return storage, sync

"""
Gym Session Storage

Local-first storage and cloud sync for workout sessions and exercise
templates.

Provides:
- Workout domain models (templates, sessions, per-set progress)
- Durable on-device storage that works offline
- A per-account remote row in Azure Cosmos DB
- Last-writer-wins reconciliation with debounced pushes and interval pulls

Usage:

    >>> from gym_session_storage import (
    ...     CosmosRemoteStore, LocalStore, SyncCoordinator, WorkoutSession, load_settings,
    ... )
    >>> storage_config, sync_config = load_settings()
    >>> async with SyncCoordinator(
    ...     LocalStore(storage_config.local_dir),
    ...     CosmosRemoteStore.from_config(storage_config),
    ...     sync_config,
    ... ) as sync:
    ...     await sync.sign_in(identity)
    ...     session = WorkoutSession.create("Push day", on="2024-05-01")
    ...     await sync.save_session(session)   # pushed after 1.2s of quiet
"""

# Configuration
from .config import CosmosAuthMethod, StorageConfig, SyncConfig, load_settings

# Remote storage
from .cosmos import CosmosClientWrapper, CosmosRemoteStore, RemoteSnapshot, RemoteStore

# Exceptions
from .exceptions import (
    AuthenticationError,
    GymStorageError,
    NotSignedInError,
    StorageConnectionError,
    StorageIOError,
    SyncError,
    ValidationError,
)

# Identity module
from .identity import ConfigFileIdentityProvider, IdentityProvider, UserIdentity

# Local storage
from .local import LocalSlot, LocalStore

# Domain models
from .models import (
    ExerciseTemplate,
    SessionExercise,
    SetProgress,
    Tempo,
    TrackingType,
    WorkoutSession,
    exercise_from_template,
    split_sessions,
)

# Sync
from .sync import (
    SyncCoordinator,
    SyncOperation,
    SyncOutcome,
    SyncResult,
    SyncState,
    SyncStatus,
    merge_records,
)

__all__ = [
    # Configuration
    "CosmosAuthMethod",
    "StorageConfig",
    "SyncConfig",
    "load_settings",
    # Storage
    "LocalStore",
    "LocalSlot",
    "RemoteStore",
    "RemoteSnapshot",
    "CosmosRemoteStore",
    "CosmosClientWrapper",
    # Models
    "TrackingType",
    "Tempo",
    "ExerciseTemplate",
    "SetProgress",
    "SessionExercise",
    "WorkoutSession",
    "exercise_from_template",
    "split_sessions",
    # Sync
    "SyncCoordinator",
    "SyncOperation",
    "SyncOutcome",
    "SyncResult",
    "SyncState",
    "SyncStatus",
    "merge_records",
    # Identity
    "IdentityProvider",
    "UserIdentity",
    "ConfigFileIdentityProvider",
    # Exceptions
    "GymStorageError",
    "StorageIOError",
    "StorageConnectionError",
    "AuthenticationError",
    "NotSignedInError",
    "ValidationError",
    "SyncError",
]

__version__ = "0.1.0"

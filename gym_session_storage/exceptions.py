"""
Exceptions raised by the workout stores and the sync coordinator.

Local and remote stores raise these so the coordinator can turn a
transport problem into a failed sync result while programming errors
still propagate.
"""

from typing import Any


def _compact(**fields: Any) -> dict[str, Any]:
    """Details dict without the fields that were not supplied."""
    return {
        key: str(value) if isinstance(value, BaseException) else value
        for key, value in fields.items()
        if value is not None
    }


class GymStorageError(Exception):
    """Base exception for all storage and sync errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class StorageIOError(GymStorageError):
    """A local file or remote store operation failed."""

    def __init__(self, operation: str, path: str | None = None, cause: Exception | None = None):
        where = f": {path}" if path else ""
        super().__init__(
            f"Storage I/O error during {operation}{where}",
            _compact(operation=operation, path=path, cause=cause),
        )
        self.operation = operation
        self.path = path
        self.cause = cause


class StorageConnectionError(GymStorageError):
    """The Cosmos endpoint could not be reached (not the builtin ConnectionError)."""

    def __init__(self, endpoint: str, cause: Exception | None = None):
        super().__init__(
            f"Connection failed to {endpoint}", _compact(endpoint=endpoint, cause=cause)
        )
        self.endpoint = endpoint
        self.cause = cause


class AuthenticationError(GymStorageError):
    """The remote store rejected the configured credentials."""

    def __init__(self, endpoint: str, reason: str | None = None):
        super().__init__(
            f"Authentication failed for {endpoint}", _compact(endpoint=endpoint, reason=reason)
        )
        self.endpoint = endpoint
        self.reason = reason


class NotSignedInError(GymStorageError):
    """A pull or push was requested while no account is signed in."""

    def __init__(self, operation: str):
        super().__init__(
            f"Cannot {operation}: no account is signed in", _compact(operation=operation)
        )
        self.operation = operation


class ValidationError(GymStorageError):
    """A record is missing a required field or has a malformed one."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        super().__init__(
            f"Validation failed for {field}: {reason}",
            _compact(field=field, reason=reason, value=value),
        )
        self.field = field
        self.reason = reason
        self.value = value


class SyncError(GymStorageError):
    """A sync step failed for a reason other than transport."""

    def __init__(self, message: str, account_id: str | None = None, cause: Exception | None = None):
        super().__init__(message, _compact(account_id=account_id, cause=cause))
        self.account_id = account_id
        self.cause = cause

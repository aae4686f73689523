"""
Result and status types returned by the sync coordinator.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ..exceptions import GymStorageError


class SyncOperation(Enum):
    PULL = "pull"
    PUSH = "push"


class SyncOutcome(Enum):
    """What a pull or push attempt ended up doing."""

    APPLIED = "applied"  # pull merged into local collections
    PUSHED = "pushed"  # push accepted by the remote store
    STALE = "stale"  # pull result not newer than the watermark
    EMPTY = "empty"  # no remote row exists yet
    SKIPPED = "skipped"  # another pull was already in flight
    COALESCED = "coalesced"  # folded into a push that is already waiting
    DISCARDED = "discarded"  # account changed while the call was in flight
    NOT_SIGNED_IN = "not_signed_in"
    FAILED = "failed"


@dataclass
class SyncResult:
    """Result of one pull or push attempt."""

    operation: SyncOperation
    outcome: SyncOutcome
    remote_updated_at: str | None = None
    adopted: int = 0
    replaced: int = 0
    error: GymStorageError | None = None

    @property
    def success(self) -> bool:
        return self.outcome not in (SyncOutcome.FAILED, SyncOutcome.NOT_SIGNED_IN)


class SyncState(Enum):
    """Coarse state of the coordinator."""

    SIGNED_OUT = "signed_out"
    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"


@dataclass
class SyncStatus:
    """Snapshot of the coordinator's status output for the view layer.

    ``message`` is transient: the coordinator clears it after the
    configured status TTL.
    """

    state: SyncState = SyncState.SIGNED_OUT
    message: str | None = None
    is_error: bool = False
    pulling: bool = False
    pushing: bool = False
    push_pending: bool = False
    last_pull_at: datetime | None = None
    last_push_at: datetime | None = None
    last_applied_remote_timestamp: str | None = None

    @property
    def busy(self) -> bool:
        return self.pulling or self.pushing

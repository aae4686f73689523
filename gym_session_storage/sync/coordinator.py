"""
Sync coordinator for local-first workout data.

Decides when to pull from and push to the remote store, folds pulled
rows into the local collections through the merge, and keeps the local
store up to date.

Triggers:
- Sign-in: one pull per authenticated session
- First user interaction after sign-in: one pull
- Interval: a pull every ``pull_interval_seconds`` while signed in
- Local mutation: a push after ``debounce_seconds`` of quiet
- Manual: ``manual_pull`` / ``manual_push`` run immediately

Guards:
- Single-flight pulls: a pull requested while one is running is dropped
- Single-flight pushes: a push requested while one is running waits and
  then sends the latest collections; extra requests fold into the waiter
- Watermark: a pulled row not newer than the last applied one is ignored
- Skip-next-auto-push: applying a pull does not schedule a push of the
  data that was just received
- Epoch: results of calls that were in flight across a sign-out or
  account switch are discarded

Failures never escape: they come back as SyncResult values and show up
as a transient status message.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from ..config import SyncConfig
from ..cosmos.store import RemoteSnapshot, RemoteStore
from ..exceptions import GymStorageError, NotSignedInError, SyncError, ValidationError
from ..id_utils import record_id, stamp, utc_now_iso
from ..identity.types import UserIdentity
from ..local.store import LocalSlot, LocalStore
from ..logging_utils import SyncLoggerAdapter
from ..models import ExerciseTemplate, WorkoutSession
from .merge import merge_with_report, parse_timestamp, record_timestamp
from .scheduler import RecurringTask, ScheduledTask
from .types import SyncOperation, SyncOutcome, SyncResult, SyncState, SyncStatus

logger = logging.getLogger(__name__)

Record = dict[str, Any]


def _to_record(obj: Any) -> Record:
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if isinstance(obj, dict):
        return copy.deepcopy(obj)
    raise ValidationError("record", f"unsupported record type {type(obj).__name__}")


def _upsert(records: list[Record], record: Record) -> list[Record]:
    key = record_id(record)
    if any(record_id(r) == key for r in records):
        return [record if record_id(r) == key else r for r in records]
    return [*records, record]


def _by_id(records: list[Record]) -> dict[str, Record]:
    return {key: r for r in records if (key := record_id(r)) is not None}


def _next_stamp(previous: Record | None) -> str:
    """A timestamp strictly newer than ``previous``'s, even if the clock lags."""
    now = utc_now_iso()
    if previous is None:
        return now
    before = record_timestamp(previous)
    if before < parse_timestamp(now):
        return now
    try:
        return datetime.fromtimestamp(before + 0.001, UTC).isoformat()
    except (OverflowError, OSError, ValueError):
        # Past the datetime range; nothing later is representable
        return now


class SyncCoordinator:
    """Owns the local collections and all sync state for one client.

    Usage:
        async with SyncCoordinator(LocalStore(path), CosmosRemoteStore.from_config(cfg)) as sync:
            await sync.sign_in(identity)
            await sync.save_session(session)
            ...
            await sync.sign_out()
    """

    def __init__(
        self,
        local_store: LocalStore,
        remote_store: RemoteStore,
        config: SyncConfig | None = None,
        on_change: Callable[[], None] | None = None,
        on_status: Callable[[SyncStatus], None] | None = None,
    ):
        """Initialize the coordinator.

        Args:
            local_store: On-device slot store
            remote_store: Account-scoped remote store
            config: Timing configuration
            on_change: Called after the collections change (local edit or pull)
            on_status: Called with a fresh SyncStatus whenever it changes
        """
        self.local = local_store
        self.remote = remote_store
        self.config = config or SyncConfig()
        self.on_change = on_change
        self.on_status = on_status

        self._sessions: list[Record] = []
        self._templates: list[Record] = []
        self._started = False

        self._identity: UserIdentity | None = None
        self._epoch = 0
        self._log = SyncLoggerAdapter.for_account(logger, None)

        # Pull state
        self._pull_token: object | None = None
        self._last_applied_remote_ts: str | None = None
        self._interaction_pull_done = False

        # Push state
        self._push_lock = asyncio.Lock()
        self._push_waiting = False
        self._pushing = False
        self._revision = 0
        self._pushed_revision = 0

        self._persist_lock = asyncio.Lock()

        # Status
        self._message: str | None = None
        self._is_error = False
        self._last_pull_at: datetime | None = None
        self._last_push_at: datetime | None = None

        self._push_timer = ScheduledTask(
            "debounced-push", self._debounced_push, delay=self.config.debounce_seconds
        )
        self._pull_timer = RecurringTask(
            "interval-pull", self._interval_tick, interval=self.config.pull_interval_seconds
        )
        self._status_timer = ScheduledTask(
            "status-clear", self._clear_message, delay=self.config.status_ttl_seconds
        )

    # =========================================================================
    # Outputs
    # =========================================================================

    @property
    def sessions(self) -> list[Record]:
        return copy.deepcopy(self._sessions)

    @property
    def templates(self) -> list[Record]:
        return copy.deepcopy(self._templates)

    def session_models(self) -> list[WorkoutSession]:
        return [WorkoutSession.from_dict(r) for r in self._sessions if record_id(r)]

    def template_models(self) -> list[ExerciseTemplate]:
        return [ExerciseTemplate.from_dict(r) for r in self._templates if record_id(r)]

    @property
    def identity(self) -> UserIdentity | None:
        return self._identity

    @property
    def account_id(self) -> str | None:
        return self._identity.user_id if self._identity else None

    @property
    def signed_in(self) -> bool:
        return self._identity is not None

    @property
    def pulling(self) -> bool:
        return self._pull_token is not None

    @property
    def last_applied_remote_timestamp(self) -> str | None:
        return self._last_applied_remote_ts

    @property
    def has_unpushed_changes(self) -> bool:
        return self._revision > self._pushed_revision

    @property
    def status(self) -> SyncStatus:
        if not self.signed_in:
            state = SyncState.SIGNED_OUT
        elif self.pulling or self._pushing:
            state = SyncState.SYNCING
        elif self._is_error:
            state = SyncState.ERROR
        else:
            state = SyncState.IDLE
        return SyncStatus(
            state=state,
            message=self._message,
            is_error=self._is_error,
            pulling=self.pulling,
            pushing=self._pushing,
            push_pending=self._push_timer.pending,
            last_pull_at=self._last_pull_at,
            last_push_at=self._last_push_at,
            last_applied_remote_timestamp=self._last_applied_remote_ts,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Load both collections from the local store."""
        if self._started:
            return
        await self.local.initialize()
        self._sessions = self._loaded(
            LocalSlot.SESSIONS, await self.local.get(LocalSlot.SESSIONS, [])
        )
        self._templates = self._loaded(
            LocalSlot.TEMPLATES, await self.local.get(LocalSlot.TEMPLATES, [])
        )
        # Whatever was on disk may never have reached the remote store
        if self._sessions or self._templates:
            self._revision = 1
        self._started = True
        self._log.info(
            f"Loaded {len(self._sessions)} sessions and {len(self._templates)} templates"
        )

    def _loaded(self, slot: LocalSlot, value: Any) -> list[Record]:
        if not isinstance(value, list):
            self._log.warning(f"Local slot {slot.value} does not hold a list; starting empty")
            return []
        return value

    async def close(self) -> None:
        """Stop timers, flush a pending debounced push, release the remote store."""
        await self._pull_timer.stop()
        had_pending_push = self._push_timer.cancel()
        if had_pending_push and self.config.flush_on_close and self.signed_in:
            await self.push(trigger="close")
        await self._push_timer.drain()
        await self._pull_timer.drain()
        self._status_timer.cancel()
        await self.remote.close()

    async def __aenter__(self) -> SyncCoordinator:
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # =========================================================================
    # Authentication boundary
    # =========================================================================

    async def sign_in(self, identity: UserIdentity) -> SyncResult | None:
        """Account became signed in: start timers and run the login pull.

        Returns the login pull result, or None if this account was
        already signed in (the login pull never repeats).
        """
        if not identity.is_authenticated():
            if self._identity is not None:
                await self.sign_out()
            self._show_message("Sign-in expired", is_error=True)
            return SyncResult(
                SyncOperation.PULL, SyncOutcome.NOT_SIGNED_IN, error=NotSignedInError("pull")
            )

        await self.start()

        if self._identity is not None:
            if self._identity.user_id == identity.user_id:
                self._identity = identity
                return None
            await self.sign_out()

        self._identity = identity
        self._epoch += 1
        self._log = SyncLoggerAdapter.for_account(logger, identity.user_id)
        self._log.info("Signed in; starting sync")
        self._pull_timer.start()
        self._emit_status()

        return await self.pull(trigger="login")

    async def sign_out(self) -> None:
        """Account signed out: stop timers and reset all sync state.

        Local collections are kept; a later sign-in re-runs the full
        bootstrap (login pull, interaction pull, interval).
        """
        await self._pull_timer.stop()
        self._push_timer.cancel()
        if self._identity is not None:
            self._log.info("Signed out; sync stopped")
        self._identity = None
        self._epoch += 1
        self._log = SyncLoggerAdapter.for_account(logger, None)

        self._pull_token = None
        self._last_applied_remote_ts = None
        self._interaction_pull_done = False
        self._push_waiting = False

        self._message = None
        self._is_error = False
        self._status_timer.cancel()
        self._emit_status()

    async def notify_user_interaction(self) -> SyncResult | None:
        """First pointer/key event after sign-in triggers one extra pull."""
        if not self.signed_in or self._interaction_pull_done:
            return None
        self._interaction_pull_done = True
        return await self.pull(trigger="interaction")

    # =========================================================================
    # View mutations
    # =========================================================================

    async def save_session(self, session: WorkoutSession | Record, touch: bool = True) -> Record:
        """Insert or replace a session by identity.

        Args:
            session: Session model or dict
            touch: Stamp a fresh ``updated_at`` so this write wins later merges

        Returns:
            The stored record
        """
        record = self._prepare(session, self._sessions, touch)
        self._sessions = _upsert(self._sessions, record)
        await self._local_mutation(LocalSlot.SESSIONS)
        return copy.deepcopy(record)

    async def delete_session(self, session_id: str) -> bool:
        """Remove a session locally.

        Deletions are not tombstoned: a copy still held remotely or on
        another device comes back with the next pull.
        """
        remaining = [r for r in self._sessions if record_id(r) != session_id]
        if len(remaining) == len(self._sessions):
            return False
        self._sessions = remaining
        await self._local_mutation(LocalSlot.SESSIONS)
        return True

    async def save_template(
        self, template: ExerciseTemplate | Record, touch: bool = True
    ) -> Record:
        """Insert or replace an exercise template by identity."""
        record = self._prepare(template, self._templates, touch)
        self._templates = _upsert(self._templates, record)
        await self._local_mutation(LocalSlot.TEMPLATES)
        return copy.deepcopy(record)

    async def delete_template(self, template_id: str) -> bool:
        """Remove a template locally. Not tombstoned, see delete_session."""
        remaining = [r for r in self._templates if record_id(r) != template_id]
        if len(remaining) == len(self._templates):
            return False
        self._templates = remaining
        await self._local_mutation(LocalSlot.TEMPLATES)
        return True

    async def manual_pull(self) -> SyncResult:
        """Explicit "sync now" from the user."""
        result = await self.pull(trigger="manual")
        if result.outcome == SyncOutcome.APPLIED:
            self._show_message("Synced from cloud")
        elif result.outcome in (SyncOutcome.STALE, SyncOutcome.EMPTY):
            self._show_message("Already up to date")
        elif result.outcome == SyncOutcome.NOT_SIGNED_IN:
            self._show_message("Sign in to sync", is_error=True)
        return result

    async def manual_push(self) -> SyncResult:
        """Explicit "save now" from the user."""
        result = await self.push(trigger="manual")
        if result.outcome == SyncOutcome.PUSHED:
            self._show_message("Saved to cloud")
        elif result.outcome == SyncOutcome.NOT_SIGNED_IN:
            self._show_message("Sign in to sync", is_error=True)
        return result

    def _prepare(self, obj: Any, collection: list[Record], touch: bool) -> Record:
        if not self._started:
            raise SyncError("Coordinator not started; call start() first")
        record = _to_record(obj)
        key = record_id(record)
        if key is None:
            raise ValidationError("id", "record has no identity")
        if touch:
            previous = next((r for r in collection if record_id(r) == key), None)
            record = stamp(record, _next_stamp(previous))
        return record

    async def _local_mutation(self, slot: LocalSlot) -> None:
        self._revision += 1
        self._collections_changed()
        await self._persist(slot)

    # =========================================================================
    # Pull
    # =========================================================================

    async def pull(self, trigger: str = "manual") -> SyncResult:
        """Fetch the remote row and merge it into the local collections."""
        if not self.signed_in:
            return SyncResult(
                SyncOperation.PULL, SyncOutcome.NOT_SIGNED_IN, error=NotSignedInError("pull")
            )
        if self._pull_token is not None:
            self._log.debug(f"Pull ({trigger}) dropped: another pull is in flight")
            return SyncResult(SyncOperation.PULL, SyncOutcome.SKIPPED)

        # The guard covers fetch, merge and the local write
        token = object()
        self._pull_token = token
        self._emit_status()
        try:
            return await self._pull_now(trigger, self._epoch)
        finally:
            if self._pull_token is token:
                self._pull_token = None
                self._emit_status()

    async def _pull_now(self, trigger: str, epoch: int) -> SyncResult:
        try:
            snapshot = await self.remote.pull(self.account_id)
        except GymStorageError as e:
            return self._failed(SyncOperation.PULL, e, epoch)

        if epoch != self._epoch:
            return SyncResult(SyncOperation.PULL, SyncOutcome.DISCARDED)

        self._last_pull_at = datetime.now(UTC)
        self._recovered()

        if not snapshot.exists:
            self._log.info(f"Pull ({trigger}): no remote row yet")
            if self._sessions or self._templates:
                self._arm_push()
            return SyncResult(SyncOperation.PULL, SyncOutcome.EMPTY)

        watermark = self._last_applied_remote_ts
        if watermark is not None and parse_timestamp(snapshot.updated_at) <= parse_timestamp(
            watermark
        ):
            self._log.debug(
                f"Pull ({trigger}): remote {snapshot.updated_at} not newer than {watermark}"
            )
            return SyncResult(
                SyncOperation.PULL, SyncOutcome.STALE, remote_updated_at=snapshot.updated_at
            )

        return await self._apply_snapshot(snapshot, trigger, epoch)

    async def _apply_snapshot(
        self, snapshot: RemoteSnapshot, trigger: str, epoch: int
    ) -> SyncResult:
        sessions = merge_with_report(self._sessions, snapshot.sessions)
        templates = merge_with_report(self._templates, snapshot.templates)

        self._sessions = sessions.records
        self._templates = templates.records
        in_sync = _by_id(self._sessions) == _by_id(snapshot.sessions) and _by_id(
            self._templates
        ) == _by_id(snapshot.templates)

        self._log.info(
            f"Pull ({trigger}) applied remote {snapshot.updated_at}: "
            f"sessions +{sessions.adopted}/~{sessions.replaced}, "
            f"templates +{templates.adopted}/~{templates.replaced}"
        )

        if in_sync:
            # Local now equals the remote row: this change event must not push it back
            self._push_timer.cancel()
            self._pushed_revision = self._revision
        else:
            self._revision += 1
        self._collections_changed(auto_push=not in_sync)

        try:
            await self._persist(LocalSlot.SESSIONS, raise_errors=True)
            await self._persist(LocalSlot.TEMPLATES, raise_errors=True)
        except GymStorageError as e:
            return self._failed(SyncOperation.PULL, e, epoch)

        if epoch != self._epoch:
            return SyncResult(SyncOperation.PULL, SyncOutcome.DISCARDED)
        self._advance_watermark(snapshot.updated_at)
        self._emit_status()
        return SyncResult(
            SyncOperation.PULL,
            SyncOutcome.APPLIED,
            remote_updated_at=snapshot.updated_at,
            adopted=sessions.adopted + templates.adopted,
            replaced=sessions.replaced + templates.replaced,
        )

    # =========================================================================
    # Push
    # =========================================================================

    async def push(self, trigger: str = "manual") -> SyncResult:
        """Upload the current collections, one push at a time."""
        if not self.signed_in:
            return SyncResult(
                SyncOperation.PUSH, SyncOutcome.NOT_SIGNED_IN, error=NotSignedInError("push")
            )

        waiting = self._push_lock.locked()
        if waiting:
            if self._push_waiting:
                self._log.debug(f"Push ({trigger}) folded into the waiting push")
                return SyncResult(SyncOperation.PUSH, SyncOutcome.COALESCED)
            self._push_waiting = True

        async with self._push_lock:
            if waiting:
                self._push_waiting = False
            return await self._push_now(trigger)

    async def _push_now(self, trigger: str) -> SyncResult:
        if not self.signed_in:
            return SyncResult(
                SyncOperation.PUSH, SyncOutcome.NOT_SIGNED_IN, error=NotSignedInError("push")
            )

        epoch = self._epoch
        account_id = self.account_id
        # This push carries whatever the pending debounce would have sent
        self._push_timer.cancel()
        revision = self._revision
        sessions = copy.deepcopy(self._sessions)
        templates = copy.deepcopy(self._templates)

        self._pushing = True
        self._emit_status()
        try:
            updated_at = await self.remote.push(account_id, sessions, templates)
        except GymStorageError as e:
            return self._failed(SyncOperation.PUSH, e, epoch)
        finally:
            self._pushing = False
            self._emit_status()

        if epoch != self._epoch:
            return SyncResult(SyncOperation.PUSH, SyncOutcome.DISCARDED)

        self._pushed_revision = max(self._pushed_revision, revision)
        self._advance_watermark(updated_at)
        self._last_push_at = datetime.now(UTC)
        self._recovered()
        self._log.info(
            f"Push ({trigger}) stored {len(sessions)} sessions and {len(templates)} templates "
            f"at {updated_at}"
        )
        self._emit_status()
        return SyncResult(SyncOperation.PUSH, SyncOutcome.PUSHED, remote_updated_at=updated_at)

    # =========================================================================
    # Timers
    # =========================================================================

    def _advance_watermark(self, remote_updated_at: str | None) -> None:
        """Move the watermark forward only; a late result never rewinds it."""
        watermark = self._last_applied_remote_ts
        if watermark is None or parse_timestamp(remote_updated_at) > parse_timestamp(watermark):
            self._last_applied_remote_ts = remote_updated_at

    def _collections_changed(self, auto_push: bool = True) -> None:
        self._emit_change()
        if not self.signed_in:
            return
        if not auto_push:
            self._log.debug("Skipping auto push of freshly pulled data")
            return
        self._arm_push()

    def _arm_push(self) -> None:
        if not self.signed_in:
            return
        self._push_timer.arm()
        self._emit_status()

    async def _debounced_push(self) -> SyncResult:
        return await self.push(trigger="debounce")

    async def _interval_tick(self) -> None:
        result = await self.pull(trigger="interval")
        if (
            result.success
            and self.has_unpushed_changes
            and not self._push_timer.pending
            and not self._push_lock.locked()
        ):
            # Retry a push that failed earlier
            await self.push(trigger="retry")

    # =========================================================================
    # Persistence, status and notifications
    # =========================================================================

    async def _persist(self, slot: LocalSlot, raise_errors: bool = False) -> None:
        # Always write the latest in-memory state so writes can't land out of order
        async with self._persist_lock:
            value = self._sessions if slot == LocalSlot.SESSIONS else self._templates
            try:
                await self.local.set(slot, copy.deepcopy(value))
            except GymStorageError as e:
                self._log.warning(f"Could not write local slot {slot.value}: {e}")
                self._show_message("Could not save on this device", is_error=True)
                if raise_errors:
                    raise

    def _failed(self, operation: SyncOperation, error: GymStorageError, epoch: int) -> SyncResult:
        if epoch != self._epoch:
            return SyncResult(operation, SyncOutcome.DISCARDED, error=error)
        self._log.warning(
            f"{operation.value.capitalize()} failed: {error}",
            extra={"operation": operation.value, "details": error.details},
        )
        self._show_message(f"Sync {operation.value} failed: {error.message}", is_error=True)
        return SyncResult(operation, SyncOutcome.FAILED, error=error)

    def _recovered(self) -> None:
        if self._is_error:
            self._is_error = False
            self._message = None
            self._status_timer.cancel()

    def _show_message(self, message: str, is_error: bool = False) -> None:
        self._message = message
        self._is_error = is_error
        self._status_timer.arm()
        self._emit_status()

    async def _clear_message(self) -> None:
        self._message = None
        self._is_error = False
        self._emit_status()

    def _emit_change(self) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change()
        except Exception:
            logger.exception("on_change callback raised")

    def _emit_status(self) -> None:
        if self.on_status is None:
            return
        try:
            self.on_status(replace(self.status))
        except Exception:
            logger.exception("on_status callback raised")

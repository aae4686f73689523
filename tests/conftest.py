"""
Shared test configuration and fixtures.

Provides an in-memory remote store that several simulated devices can
share, with failure injection and an optional gate for holding a call
in flight.
"""

from __future__ import annotations

import asyncio
import copy
import tempfile
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from gym_session_storage.config import SyncConfig
from gym_session_storage.cosmos.store import RemoteSnapshot, RemoteStore
from gym_session_storage.exceptions import GymStorageError
from gym_session_storage.identity.types import UserIdentity
from gym_session_storage.local.store import LocalStore


class FakeRemoteStore(RemoteStore):
    """
    In-memory remote store for testing without Cosmos DB.

    Rows are keyed by account id. Timestamps come from a fake clock that
    advances one second per push, so pushes are strictly ordered.
    """

    def __init__(self) -> None:
        self.rows: dict[str, dict[str, Any]] = {}
        self.pull_calls = 0
        self.push_calls = 0
        self.pushed: list[dict[str, Any]] = []
        self.fail_with: GymStorageError | None = None
        self.gate: asyncio.Event | None = None
        self.closed = False
        self._clock = datetime(2024, 1, 1, tzinfo=UTC)

    def next_timestamp(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def seed(
        self,
        account_id: str,
        sessions: list[dict[str, Any]] | None = None,
        templates: list[dict[str, Any]] | None = None,
        updated_at: str | None = None,
    ) -> str:
        """Write a row directly, as another device would."""
        updated_at = updated_at or self.next_timestamp()
        self.rows[account_id] = {
            "sessions": copy.deepcopy(sessions or []),
            "templates": copy.deepcopy(templates or []),
            "updated_at": updated_at,
        }
        return updated_at

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with

    async def pull(self, account_id: str) -> RemoteSnapshot:
        self.pull_calls += 1
        await self._wait()
        row = self.rows.get(account_id)
        if row is None:
            return RemoteSnapshot()
        return RemoteSnapshot(
            sessions=copy.deepcopy(row["sessions"]),
            templates=copy.deepcopy(row["templates"]),
            updated_at=row.get("updated_at"),
            exists=True,
        )

    async def push(
        self,
        account_id: str,
        sessions: list[dict[str, Any]],
        templates: list[dict[str, Any]],
    ) -> str:
        self.push_calls += 1
        await self._wait()
        updated_at = self.seed(account_id, sessions, templates)
        self.pushed.append(copy.deepcopy(self.rows[account_id]))
        return updated_at

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def local_store(temp_dir: Path) -> LocalStore:
    return LocalStore(temp_dir / "device")


@pytest.fixture
def remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def fast_sync_config() -> SyncConfig:
    """Short debounce, no interval ticks unless a test asks for them."""
    return SyncConfig(
        debounce_seconds=0.05,
        pull_interval_seconds=3600.0,
        status_ttl_seconds=0.05,
        flush_on_close=True,
    )


@pytest.fixture
def identity() -> UserIdentity:
    return UserIdentity(user_id="user-1", email="lifter@example.com")

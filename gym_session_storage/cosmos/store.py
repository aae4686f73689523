"""
Remote store for account-scoped workout data.

One document per account holds both collections:

{
    "id": "{account_id}",
    "user_id": "{account_id}",          // partition key
    "sessions": [...],
    "templates": [...],
    "updated_at": "{iso_timestamp}"
}

Pushes replace the whole document; there is no per-record remote state.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from ..config import StorageConfig
from ..id_utils import utc_now_iso
from .client import CosmosClientWrapper

logger = logging.getLogger(__name__)


@dataclass
class RemoteSnapshot:
    """Result of a pull.

    ``exists`` is False only when the account has no row at all. A row
    that lacks ``updated_at`` still exists and is merged like any other.
    """

    sessions: list[dict[str, Any]] = field(default_factory=list)
    templates: list[dict[str, Any]] = field(default_factory=list)
    updated_at: str | None = None
    exists: bool = False


class RemoteStore(ABC):
    """Abstract remote store for one row per account."""

    @abstractmethod
    async def pull(self, account_id: str) -> RemoteSnapshot:
        """Fetch the account's row.

        A missing row is not an error and yields an empty snapshot.

        Raises:
            GymStorageError: On any transport or auth failure
        """
        ...

    @abstractmethod
    async def push(
        self,
        account_id: str,
        sessions: list[dict[str, Any]],
        templates: list[dict[str, Any]],
    ) -> str:
        """Upsert the account's row with the full collections.

        Returns:
            The remote timestamp stamped on the row

        Raises:
            GymStorageError: On any transport or auth failure
        """
        ...

    async def close(self) -> None:
        """Release connections. Default is a no-op."""
        return None


class CosmosRemoteStore(RemoteStore):
    """Remote store backed by an Azure Cosmos DB container."""

    def __init__(self, client: CosmosClientWrapper):
        self.client = client

    @classmethod
    def from_config(cls, config: StorageConfig) -> CosmosRemoteStore:
        return cls(CosmosClientWrapper(config))

    async def pull(self, account_id: str) -> RemoteSnapshot:
        item = await self.client.read_item(account_id, partition_key=account_id)
        if item is None:
            logger.debug(f"No remote row yet for {account_id}")
            return RemoteSnapshot()

        return RemoteSnapshot(
            sessions=list(item.get("sessions") or []),
            templates=list(item.get("templates") or []),
            updated_at=item.get("updated_at"),
            exists=True,
        )

    async def push(
        self,
        account_id: str,
        sessions: list[dict[str, Any]],
        templates: list[dict[str, Any]],
    ) -> str:
        updated_at = utc_now_iso()
        await self.client.upsert_item(
            {
                "id": account_id,
                "user_id": account_id,
                "sessions": sessions,
                "templates": templates,
                "updated_at": updated_at,
            }
        )
        logger.debug(
            f"Upserted remote row for {account_id}: "
            f"{len(sessions)} sessions, {len(templates)} templates"
        )
        return updated_at

    async def close(self) -> None:
        await self.client.close()

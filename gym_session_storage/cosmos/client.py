"""
Cosmos DB access for the per-account sync row.

One container, partitioned by account id. The sync layer only needs a
point read and an upsert; both go through a retry loop with exponential
backoff for throttling, timeouts and dropped connections.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from azure.core.exceptions import ServiceRequestError, ServiceResponseError
from azure.cosmos import PartitionKey
from azure.cosmos.aio import ContainerProxy, CosmosClient, DatabaseProxy
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError

from ..config import CosmosAuthMethod, StorageConfig
from ..exceptions import (
    AuthenticationError,
    GymStorageError,
    StorageConnectionError,
    StorageIOError,
)

logger = logging.getLogger(__name__)

PARTITION_KEY_PATH = "/user_id"

_AUTH_STATUS_CODES = (401, 403)
_RETRYABLE_STATUS_CODES = (408, 429)


def _get_credential(config: StorageConfig) -> Any:
    """Get the credential matching the configured auth method.

    Raises:
        AuthenticationError: If the credential cannot be created
    """
    endpoint = config.cosmos_endpoint or "cosmos"

    if config.cosmos_auth_method == CosmosAuthMethod.KEY:
        if not config.cosmos_key:
            raise AuthenticationError(endpoint, "cosmos_key required for KEY authentication")
        return config.cosmos_key

    if config.cosmos_auth_method == CosmosAuthMethod.DEFAULT_CREDENTIAL:
        from azure.identity.aio import DefaultAzureCredential

        return DefaultAzureCredential()

    raise AuthenticationError(endpoint, f"Unsupported auth method: {config.cosmos_auth_method}")


class CosmosClientWrapper:
    """Wrapper for the Azure Cosmos DB async client.

    Manages connection lifecycle and retries. Holds a single container
    whose partition key is the account id, so every operation the sync
    layer needs is a single-partition point read or upsert.
    """

    def __init__(self, config: StorageConfig):
        if not config.cosmos_endpoint:
            raise StorageConnectionError("cosmos", ValueError("cosmos_endpoint is not configured"))
        self.config = config
        self._client: CosmosClient | None = None
        self._database: DatabaseProxy | None = None
        self._container: ContainerProxy | None = None
        self._initialized = False

    @property
    def endpoint(self) -> str:
        return self.config.cosmos_endpoint or "cosmos"

    async def initialize(self) -> None:
        """Connect and ensure the database and container exist."""
        if self._initialized:
            return

        try:
            client = CosmosClient(self.endpoint, credential=_get_credential(self.config))
            self._client = client

            self._database = await client.create_database_if_not_exists(
                id=self.config.cosmos_database
            )
            self._container = await self._database.create_container_if_not_exists(
                id=self.config.cosmos_container,
                partition_key=PartitionKey(path=PARTITION_KEY_PATH),
            )
            self._initialized = True
            logger.info(
                f"Connected to Cosmos DB {self.config.cosmos_database}"
                f"/{self.config.cosmos_container}"
            )

        except CosmosHttpResponseError as e:
            await self.close()
            if e.status_code in _AUTH_STATUS_CODES:
                raise AuthenticationError(self.endpoint, str(e)) from e
            raise StorageConnectionError(self.endpoint, e) from e
        except AuthenticationError:
            await self.close()
            raise
        except Exception as e:
            await self.close()
            raise StorageConnectionError(self.endpoint, e) from e

    async def close(self) -> None:
        if self._client:
            await self._client.close()
        self._client = None
        self._database = None
        self._container = None
        self._initialized = False

    async def __aenter__(self) -> CosmosClientWrapper:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _get_container(self) -> ContainerProxy:
        if not self._initialized:
            await self.initialize()
        if self._container is None:
            raise StorageIOError("get_container", cause=RuntimeError("Client not initialized"))
        return self._container

    async def read_item(self, item_id: str, partition_key: str) -> dict[str, Any] | None:
        """Read an item.

        Returns:
            Item or None if not found
        """
        container = await self._get_container()
        try:
            return await self._with_retry(
                lambda: container.read_item(item=item_id, partition_key=partition_key)
            )
        except CosmosResourceNotFoundError:
            return None

    async def upsert_item(self, item: dict[str, Any]) -> dict[str, Any]:
        """Create or replace an item. The partition key is taken from the body."""
        container = await self._get_container()
        return await self._with_retry(lambda: container.upsert_item(body=item))

    def _classify(self, error: Exception) -> GymStorageError | None:
        """Map an SDK failure to the error to raise, or None if worth another attempt."""
        if isinstance(error, CosmosHttpResponseError):
            status = error.status_code
            if status in _AUTH_STATUS_CODES:
                return AuthenticationError(self.endpoint, str(error))
            if status is not None and 400 <= status < 500 and status not in _RETRYABLE_STATUS_CODES:
                return StorageIOError("cosmos_operation", cause=error)
            return None
        if isinstance(error, (ServiceRequestError, ServiceResponseError, OSError)):
            return None
        return StorageIOError("cosmos_operation", cause=error)

    async def _with_retry(self, operation: Any) -> Any:
        """Await ``operation()``, retrying transient failures up to max_retries times.

        Raises:
            CosmosResourceNotFoundError: Passed through for the caller to interpret
            AuthenticationError: On 401/403
            StorageConnectionError: When the service stays unreachable
            StorageIOError: On other client errors, or when retries run out
        """
        attempts = max(1, self.config.max_retries)
        for attempt in range(1, attempts + 1):
            try:
                return await operation()
            except CosmosResourceNotFoundError:
                raise
            except Exception as e:
                fatal = self._classify(e)
                if fatal is not None:
                    raise fatal from e
                if attempt == attempts:
                    if isinstance(e, CosmosHttpResponseError):
                        raise StorageIOError("cosmos_operation", cause=e) from e
                    raise StorageConnectionError(self.endpoint, e) from e
                delay = self.config.retry_delay * (2 ** (attempt - 1))
                logger.debug(f"Cosmos attempt {attempt}/{attempts} failed: {e}")
                await asyncio.sleep(delay)

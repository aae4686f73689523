"""
Cosmos DB remote storage.

Provides the account-scoped remote row used by the sync coordinator:
- One document per account, partitioned by account id
- Point reads for pull, whole-document upserts for push
- Retry on throttling and transient server errors
"""

from .client import CosmosClientWrapper
from .store import CosmosRemoteStore, RemoteSnapshot, RemoteStore

__all__ = [
    "CosmosClientWrapper",
    "CosmosRemoteStore",
    "RemoteSnapshot",
    "RemoteStore",
]

"""Identity and timestamp helpers for workout records.

Centralizes how record identities are minted and how the
last-mutation timestamp is written, so every writer produces
values the merge engine can compare.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

ID_FIELD = "id"
UPDATED_AT_FIELD = "updated_at"
# Spelling used by rows written by the browser client
UPDATED_AT_CAMEL = "updatedAt"


def new_record_id() -> str:
    """Mint a new, never reused record identity."""
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    """Current time as an ISO 8601 string in UTC."""
    return datetime.now(UTC).isoformat()


def record_id(record: Any) -> str | None:
    """Return the identity of a record, or None if it has no usable one.

    Only non-empty strings count as identities.
    """
    if not isinstance(record, dict):
        return None
    value = record.get(ID_FIELD)
    if isinstance(value, str) and value:
        return value
    return None


def stamp(record: dict[str, Any], when: str | None = None) -> dict[str, Any]:
    """Return a copy of ``record`` with a fresh ``updated_at``."""
    stamped = dict(record)
    stamped[UPDATED_AT_FIELD] = when or utc_now_iso()
    return stamped

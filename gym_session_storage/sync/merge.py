"""
Record merge for pull reconciliation.

Reconciles a local collection with a remote one by record identity,
keeping the record with the newer ``updated_at`` (last-writer-wins).
Pure: no I/O, inputs are never mutated, and it never raises.

Rules:
- Every local record seeds the result.
- A remote record whose identity is not in the result is adopted as-is.
- A remote record replaces the existing entry only when its timestamp
  is strictly greater. Ties, including two unparseable timestamps,
  keep the existing entry.
- Records without a usable identity are ignored on both sides.
- Unparseable timestamps count as epoch zero.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from ..id_utils import UPDATED_AT_CAMEL, UPDATED_AT_FIELD, record_id


@dataclass
class MergeReport:
    """Merged records plus what happened to get there."""

    records: list[dict[str, Any]] = field(default_factory=list)
    adopted: int = 0  # remote-only records added
    replaced: int = 0  # local records overwritten by newer remote ones
    ignored: int = 0  # records without a usable identity

    @property
    def changed(self) -> bool:
        return self.adopted > 0 or self.replaced > 0


def parse_timestamp(value: Any) -> float:
    """Convert a last-mutation timestamp to epoch seconds.

    Accepts ISO 8601 strings (``Z`` suffix allowed), datetimes (naive
    values are taken as UTC) and numeric epoch seconds. Anything else,
    including malformed strings, is 0.0.
    """
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        seconds = float(value)
        return seconds if math.isfinite(seconds) else 0.0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            return 0.0
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        try:
            return value.timestamp()
        except (OverflowError, OSError, ValueError):
            return 0.0
    return 0.0


def record_timestamp(record: dict[str, Any]) -> float:
    """Timestamp of a record; ``updatedAt`` is read when ``updated_at`` is absent."""
    if UPDATED_AT_FIELD in record:
        return parse_timestamp(record[UPDATED_AT_FIELD])
    return parse_timestamp(record.get(UPDATED_AT_CAMEL))


def merge_with_report(
    local: Iterable[dict[str, Any]],
    remote: Iterable[dict[str, Any]],
) -> MergeReport:
    """Merge two collections and report adoptions and replacements."""
    report = MergeReport()
    merged: dict[str, dict[str, Any]] = {}

    for record in local or ():
        key = record_id(record)
        if key is None:
            report.ignored += 1
            continue
        existing = merged.get(key)
        # Duplicate identities inside one collection follow the same rule
        if existing is None or record_timestamp(record) > record_timestamp(existing):
            merged[key] = record

    for record in remote or ():
        key = record_id(record)
        if key is None:
            report.ignored += 1
            continue
        existing = merged.get(key)
        if existing is None:
            merged[key] = record
            report.adopted += 1
        elif record_timestamp(record) > record_timestamp(existing):
            merged[key] = record
            report.replaced += 1

    report.records = list(merged.values())
    return report


def merge_records(
    local: Iterable[dict[str, Any]],
    remote: Iterable[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge ``remote`` into ``local`` by identity, newer timestamp wins.

    Returns a new list with exactly one record per identity found in
    either input.
    """
    return merge_with_report(local, remote).records

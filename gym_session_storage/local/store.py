"""
On-device key-value store for the two record collections.

Each slot is a single JSON file under the local data directory.
This layer only persists; reconciliation happens in the sync package.
"""

from __future__ import annotations

import copy
import logging
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

from .file_ops import ensure_directory, file_exists, read_json, write_json_atomic

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LocalSlot(Enum):
    """Named slots held by the local store."""

    SESSIONS = "sessions"
    TEMPLATES = "exerciseTemplates"


class LocalStore:
    """Durable get/set over named JSON slots.

    Layout:
        {base_path}/sessions.json
        {base_path}/exerciseTemplates.json
    """

    def __init__(self, base_path: Path):
        self.base_path = Path(base_path)

    def _slot_path(self, slot: LocalSlot) -> Path:
        return self.base_path / f"{slot.value}.json"

    async def initialize(self) -> None:
        await ensure_directory(self.base_path)

    async def get(self, slot: LocalSlot, default: T) -> T:
        """Read a slot.

        ``default`` is returned (as a copy) only when the slot has never
        been written; a written empty list comes back as an empty list.

        Raises:
            StorageIOError: If the slot file exists but cannot be read or parsed
        """
        path = self._slot_path(slot)
        if not await file_exists(path):
            return copy.deepcopy(default)
        value = await read_json(path)
        if value is None:
            return copy.deepcopy(default)
        return value

    async def set(self, slot: LocalSlot, value: Any) -> None:
        """Replace a slot's content durably."""
        await write_json_atomic(self._slot_path(slot), value)
        logger.debug(f"Wrote local slot {slot.value}")

    async def has(self, slot: LocalSlot) -> bool:
        return await file_exists(self._slot_path(slot))

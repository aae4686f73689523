"""Tests for the on-device slot store and JSON file operations."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from gym_session_storage.exceptions import StorageIOError
from gym_session_storage.local import LocalSlot, LocalStore, read_json, write_json_atomic


class TestFileOps:
    """Tests for atomic JSON reads and writes."""

    @pytest.mark.asyncio
    async def test_write_then_read(self, temp_dir: Path) -> None:
        """Test a written file reads back unchanged."""
        path = temp_dir / "nested" / "data.json"

        await write_json_atomic(path, [{"id": "s1"}])

        assert await read_json(path) == [{"id": "s1"}]

    @pytest.mark.asyncio
    async def test_no_temp_files_left_behind(self, temp_dir: Path) -> None:
        """Test that the temp file is renamed away."""
        await write_json_atomic(temp_dir / "data.json", {"a": 1})

        assert [p.name for p in temp_dir.iterdir()] == ["data.json"]

    @pytest.mark.asyncio
    async def test_missing_file_reads_none(self, temp_dir: Path) -> None:
        """Test reading a file that does not exist."""
        assert await read_json(temp_dir / "missing.json") is None

    @pytest.mark.asyncio
    async def test_corrupt_file_raises(self, temp_dir: Path) -> None:
        """Test that unparseable content is reported, not silently dropped."""
        path = temp_dir / "bad.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageIOError) as exc_info:
            await read_json(path)

        assert exc_info.value.details["operation"] == "decode"

    @pytest.mark.asyncio
    async def test_unserializable_value_raises(self, temp_dir: Path) -> None:
        """Test that values JSON cannot encode are reported."""
        with pytest.raises(StorageIOError):
            await write_json_atomic(temp_dir / "data.json", {"value": object()})


class TestLocalStore:
    """Tests for LocalStore slots."""

    @pytest.mark.asyncio
    async def test_default_when_never_written(self, local_store: LocalStore) -> None:
        """Test that an unwritten slot returns a copy of the default."""
        default: list = []

        value = await local_store.get(LocalSlot.SESSIONS, default)

        assert value == []
        assert value is not default

    @pytest.mark.asyncio
    async def test_set_and_get(self, local_store: LocalStore) -> None:
        """Test writing and reading a slot."""
        await local_store.initialize()

        await local_store.set(LocalSlot.TEMPLATES, [{"id": "t1", "name": "Squat"}])

        assert await local_store.get(LocalSlot.TEMPLATES, []) == [{"id": "t1", "name": "Squat"}]
        assert await local_store.has(LocalSlot.TEMPLATES)
        assert not await local_store.has(LocalSlot.SESSIONS)

    @pytest.mark.asyncio
    async def test_written_empty_list_is_kept(self, local_store: LocalStore) -> None:
        """Test that an empty list is not replaced by the default."""
        await local_store.set(LocalSlot.SESSIONS, [])

        assert await local_store.get(LocalSlot.SESSIONS, [{"id": "fallback"}]) == []

    @pytest.mark.asyncio
    async def test_slot_file_names(self, local_store: LocalStore) -> None:
        """Test the on-disk file name of each slot."""
        await local_store.set(LocalSlot.SESSIONS, [{"id": "s1"}])
        await local_store.set(LocalSlot.TEMPLATES, [])

        names = sorted(p.name for p in local_store.base_path.iterdir())

        assert names == ["exerciseTemplates.json", "sessions.json"]
        content = json.loads((local_store.base_path / "sessions.json").read_text())
        assert content == [{"id": "s1"}]

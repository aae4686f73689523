"""
Async JSON file helpers for the local slots.

A slot file is replaced in one step (write a sibling temp file, fsync it,
then rename over the target), so a crash mid-write leaves the previous
collection intact. Every OS or parse failure surfaces as StorageIOError.
"""

import json
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from ..exceptions import StorageIOError

TEMP_PREFIX = ".slot_"


async def ensure_directory(path: Path) -> None:
    try:
        await aiofiles.os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise StorageIOError("mkdir", str(path), e) from e


async def file_exists(path: Path) -> bool:
    try:
        return await aiofiles.os.path.isfile(path)
    except OSError:
        return False


async def read_json(path: Path) -> Any | None:
    """
    Load one JSON document.

    A missing or blank file reads as None; the caller picks the default.
    """
    if not await file_exists(path):
        return None
    try:
        async with aiofiles.open(path, encoding="utf-8") as f:
            text = await f.read()
    except OSError as e:
        raise StorageIOError("read", str(path), e) from e

    if not text.strip():
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise StorageIOError("decode", str(path), e) from e


async def write_json_atomic(path: Path, data: Any) -> None:
    """Serialize ``data`` and swap it into place at ``path``."""
    try:
        payload = json.dumps(data, indent=2, default=_encode_extra)
    except (TypeError, ValueError) as e:
        raise StorageIOError("encode", str(path), e) from e

    await ensure_directory(path.parent)
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=TEMP_PREFIX, suffix=".json")
    os.close(fd)
    try:
        async with aiofiles.open(temp_name, "w", encoding="utf-8") as f:
            await f.write(payload)
            await f.flush()
            os.fsync(f.fileno())
        await aiofiles.os.replace(temp_name, path)
    except OSError as e:
        await _discard(temp_name)
        raise StorageIOError("write", str(path), e) from e


async def _discard(temp_name: str) -> None:
    try:
        await aiofiles.os.remove(temp_name)
    except FileNotFoundError:
        pass


def _encode_extra(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    raise TypeError(f"{type(obj).__name__} is not JSON serializable")

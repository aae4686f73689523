"""
Local file-based storage.

Keeps the session and exercise-template collections on disk so they
survive restarts and stay usable offline.
"""

from .file_ops import read_json, write_json_atomic
from .store import LocalSlot, LocalStore

__all__ = [
    "LocalStore",
    "LocalSlot",
    "read_json",
    "write_json_atomic",
]

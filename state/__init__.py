"""Snapshot storage and persistence for wizard sessions."""

from .autosave import PersistenceAdapter, build_snapshot, parse_snapshot, serialize_snapshot
from .storage import FileStorage, MemoryStorage, StorageBackend, StreamlitSessionStorage, build_storage

__all__ = [
    "FileStorage",
    "MemoryStorage",
    "PersistenceAdapter",
    "StorageBackend",
    "StreamlitSessionStorage",
    "build_snapshot",
    "build_storage",
    "parse_snapshot",
    "serialize_snapshot",
]

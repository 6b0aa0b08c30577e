"""Key-value storage backends for persisted wizard snapshots."""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import MutableMapping, Protocol, cast

import streamlit as st

from config import WizardSettings, get_settings

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


class StorageBackend(Protocol):
    """String-keyed store holding serialized snapshots."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage, mainly for tests and headless hosts."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def delete(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._items)


class StreamlitSessionStorage:
    """Store snapshots inside ``st.session_state`` for the browser session."""

    def __init__(self, session_state: MutableMapping[str, object] | None = None) -> None:
        self._explicit_state = session_state

    @property
    def _state(self) -> MutableMapping[str, object]:
        if self._explicit_state is not None:
            return self._explicit_state
        return cast(MutableMapping[str, object], st.session_state)

    def get(self, key: str) -> str | None:
        value = self._state.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._state[key] = value

    def delete(self, key: str) -> None:
        self._state.pop(key, None)


class FileStorage:
    """One JSON document per key inside ``directory``, written atomically."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        safe = _UNSAFE_FILENAME_CHARS.sub("_", key).strip("._") or "snapshot"
        return self._directory / f"{safe}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(prefix=".tmp-", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(temp_name, path)
        finally:
            if os.path.exists(temp_name):
                os.unlink(temp_name)

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


def build_storage(settings: WizardSettings | None = None) -> StorageBackend:
    """Return the storage backend selected by configuration."""

    resolved = settings or get_settings()
    backend = resolved.storage_backend
    if backend == "memory":
        return MemoryStorage()
    if backend == "file":
        return FileStorage(resolved.storage_dir)
    if backend != "session_state":
        logger.warning("Unknown wizard storage backend '%s'; using session state", backend)
    return StreamlitSessionStorage()


__all__ = [
    "FileStorage",
    "MemoryStorage",
    "StorageBackend",
    "StreamlitSessionStorage",
    "build_storage",
]

from __future__ import annotations

from pathlib import Path

import streamlit as st

from config import WizardSettings
from state.storage import FileStorage, MemoryStorage, StreamlitSessionStorage, build_storage


def test_memory_storage_basic_operations() -> None:
    storage = MemoryStorage()

    storage.set("wiz:a:snapshot", "{}")
    assert storage.get("wiz:a:snapshot") == "{}"
    storage.delete("wiz:a:snapshot")
    storage.delete("wiz:a:snapshot")
    assert storage.get("wiz:a:snapshot") is None


def test_session_storage_uses_streamlit_session_state() -> None:
    storage = StreamlitSessionStorage()

    storage.set("wiz:a:snapshot", "payload")

    assert st.session_state["wiz:a:snapshot"] == "payload"
    st.session_state["wiz:b:snapshot"] = {"not": "a string"}
    assert storage.get("wiz:b:snapshot") is None
    storage.delete("wiz:a:snapshot")
    assert "wiz:a:snapshot" not in st.session_state


def test_session_storage_accepts_explicit_mapping() -> None:
    backing: dict[str, object] = {}
    storage = StreamlitSessionStorage(backing)

    storage.set("key", "value")

    assert backing == {"key": "value"}


def test_file_storage_writes_one_file_per_key(tmp_path: Path) -> None:
    storage = FileStorage(tmp_path / "snapshots")

    storage.set("wiz:add-location:snapshot", '{"a": 1}')

    path = storage.path_for("wiz:add-location:snapshot")
    assert path.name == "wiz_add-location_snapshot.json"
    assert path.read_text(encoding="utf-8") == '{"a": 1}'
    assert storage.get("wiz:add-location:snapshot") == '{"a": 1}'
    assert [entry.name for entry in path.parent.iterdir()] == [path.name]


def test_file_storage_overwrites_and_deletes(tmp_path: Path) -> None:
    storage = FileStorage(tmp_path)

    storage.set("k", "first")
    storage.set("k", "second")
    assert storage.get("k") == "second"

    storage.delete("k")
    storage.delete("k")
    assert storage.get("k") is None


def test_build_storage_follows_settings(tmp_path: Path) -> None:
    assert isinstance(build_storage(WizardSettings(storage_backend="memory")), MemoryStorage)
    assert isinstance(build_storage(WizardSettings(storage_backend="session_state")), StreamlitSessionStorage)
    file_storage = build_storage(WizardSettings(storage_backend="file", storage_dir=str(tmp_path)))
    assert isinstance(file_storage, FileStorage)
    assert file_storage.directory == tmp_path


def test_build_storage_reads_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("WIZARD_STORAGE_BACKEND", "file")
    monkeypatch.setenv("WIZARD_STORAGE_DIR", str(tmp_path))

    storage = build_storage()

    assert isinstance(storage, FileStorage)
    assert storage.directory == tmp_path

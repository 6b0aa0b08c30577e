"""Versioned snapshot persistence for wizard sessions."""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from typing import Any, Mapping, Union

from pydantic import BaseModel, Field, ValidationError

from constants.keys import WizardSessionKeys
from state.storage import StorageBackend
from wizard.errors import PersistenceError
from wizard.reporting import ErrorReporter, LoggingErrorReporter

logger = logging.getLogger(__name__)

SnapshotPayload = dict[str, Any]


class WizardNavigationState(BaseModel):
    """Pointer and progress portion of a persisted session."""

    current_step: Union[int, str]
    completed_steps: list[Union[int, str]] = Field(default_factory=list)
    skipped_steps: list[Union[int, str]] = Field(default_factory=list)
    terminal: bool = False


class WizardSnapshot(BaseModel):
    """Envelope written to storage for one wizard."""

    wizard_id: str
    version: int
    data: dict[str, Any] = Field(default_factory=dict)
    wizard: WizardNavigationState
    meta: dict[str, Any] = Field(default_factory=dict)


def _is_json_scalar(value: object) -> bool:
    if value is None or isinstance(value, (str, bool, int)):
        return True
    return isinstance(value, float) and math.isfinite(value)


def strip_unserializable(value: Any, *, path: str = "", dropped: list[str] | None = None) -> Any:
    """Return a JSON-safe copy of ``value``; dropped paths are appended to ``dropped``."""

    sink = dropped if dropped is not None else []
    if _is_json_scalar(value):
        return value
    if isinstance(value, Mapping):
        cleaned: dict[str, Any] = {}
        for key, item in value.items():
            item_path = f"{path}.{key}" if path else str(key)
            if not isinstance(key, str):
                sink.append(item_path)
                continue
            if not _is_json_scalar(item) and not isinstance(item, (Mapping, list, tuple)):
                sink.append(item_path)
                continue
            cleaned[key] = strip_unserializable(item, path=item_path, dropped=sink)
        return cleaned
    if isinstance(value, (list, tuple)):
        items: list[Any] = []
        for index, item in enumerate(value):
            item_path = f"{path}[{index}]"
            if not _is_json_scalar(item) and not isinstance(item, (Mapping, list, tuple)):
                sink.append(item_path)
                continue
            items.append(strip_unserializable(item, path=item_path, dropped=sink))
        return items
    sink.append(path or "<root>")
    return None


def build_snapshot(
    wizard_id: str,
    schema_version: int,
    snapshot: Mapping[str, Any],
) -> SnapshotPayload:
    """Return the storage envelope for ``snapshot`` (``data`` + ``wizard`` state)."""

    dropped: list[str] = []
    data = strip_unserializable(snapshot.get("data") or {}, dropped=dropped)
    if dropped:
        logger.warning("Dropped non-serializable wizard fields from '%s' snapshot: %s", wizard_id, ", ".join(dropped))
    navigation = WizardNavigationState.model_validate(snapshot.get("wizard") or {})
    envelope = WizardSnapshot(
        wizard_id=wizard_id,
        version=schema_version,
        data=data,
        wizard=navigation,
        meta={"captured_at": datetime.now(timezone.utc).isoformat()},
    )
    return envelope.model_dump(mode="json")


def serialize_snapshot(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, allow_nan=False)


def parse_snapshot(raw: str, wizard_id: str, schema_version: int) -> SnapshotPayload:
    """Decode ``raw`` into ``{"data": ..., "wizard": ...}``.

    Raises :class:`PersistenceError` for malformed payloads, foreign wizard
    ids, and schema version mismatches.
    """

    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise PersistenceError(wizard_id, f"snapshot is not valid JSON ({exc})") from exc
    if not isinstance(decoded, Mapping):
        raise PersistenceError(wizard_id, "snapshot root must be an object")
    stored_version = decoded.get("version")
    if stored_version != schema_version or isinstance(stored_version, bool):
        raise PersistenceError(
            wizard_id,
            f"snapshot schema version mismatch (stored {stored_version!r}, expected {schema_version})",
        )
    try:
        envelope = WizardSnapshot.model_validate(decoded)
    except ValidationError as exc:
        raise PersistenceError(wizard_id, f"snapshot envelope is invalid ({exc.error_count()} errors)") from exc
    if envelope.wizard_id != wizard_id:
        raise PersistenceError(wizard_id, f"snapshot belongs to wizard '{envelope.wizard_id}'")
    return {"data": envelope.data, "wizard": envelope.wizard.model_dump()}


class PersistenceAdapter:
    """Save, load, and clear wizard snapshots on a storage backend.

    Every failure is reported and swallowed: persistence only adds
    durability, it never blocks the wizard.
    """

    def __init__(self, storage: StorageBackend, *, reporter: ErrorReporter | None = None) -> None:
        self._storage = storage
        self._reporter = reporter or LoggingErrorReporter(logger)

    @property
    def storage(self) -> StorageBackend:
        return self._storage

    def save(self, wizard_id: str, schema_version: int, snapshot: Mapping[str, Any]) -> bool:
        key = WizardSessionKeys(wizard_id).snapshot
        try:
            payload = serialize_snapshot(build_snapshot(wizard_id, schema_version, snapshot))
            self._storage.set(key, payload)
        except Exception as exc:
            self._reporter.report(PersistenceError(wizard_id, f"saving snapshot failed ({exc})"))
            return False
        logger.debug("Saved snapshot for wizard '%s' (version %s)", wizard_id, schema_version)
        return True

    def load(self, wizard_id: str, schema_version: int) -> SnapshotPayload | None:
        key = WizardSessionKeys(wizard_id).snapshot
        try:
            raw = self._storage.get(key)
        except Exception as exc:
            self._reporter.report(PersistenceError(wizard_id, f"reading snapshot failed ({exc})"))
            return None
        if raw is None:
            return None
        try:
            return parse_snapshot(raw, wizard_id, schema_version)
        except PersistenceError as exc:
            self._reporter.report(exc)
            return None

    def clear(self, wizard_id: str) -> bool:
        key = WizardSessionKeys(wizard_id).snapshot
        try:
            self._storage.delete(key)
        except Exception as exc:
            self._reporter.report(PersistenceError(wizard_id, f"clearing snapshot failed ({exc})"))
            return False
        logger.debug("Cleared snapshot for wizard '%s'", wizard_id)
        return True


__all__ = [
    "PersistenceAdapter",
    "SnapshotPayload",
    "WizardNavigationState",
    "WizardSnapshot",
    "build_snapshot",
    "parse_snapshot",
    "serialize_snapshot",
    "strip_unserializable",
]

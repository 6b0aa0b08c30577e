"""Accumulated wizard data with top-level merge semantics."""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from typing import Any

from wizard.types import WizardData

logger = logging.getLogger(__name__)

SnapshotHook = Callable[[], None]


def merge_preview(data: Mapping[str, Any], partial: Mapping[str, Any] | None) -> WizardData:
    """Return ``data`` shallow-merged with ``partial`` without touching either.

    Nested mappings in ``partial`` replace the stored value wholesale.
    """

    preview = copy.deepcopy(dict(data))
    if partial:
        preview.update(copy.deepcopy(dict(partial)))
    return preview


class WizardDataStore:
    """Single mutable record shared by every step of a wizard session."""

    def __init__(self, data: Mapping[str, Any] | None = None, *, on_change: SnapshotHook | None = None) -> None:
        self._data: WizardData = dict(data or {})
        self._on_change = on_change

    def get(self) -> WizardData:
        return self._data

    def preview(self, partial: Mapping[str, Any] | None) -> WizardData:
        return merge_preview(self._data, partial)

    def merge(self, partial: Mapping[str, Any] | None) -> None:
        """Shallow-merge ``partial`` and request a snapshot."""

        if partial:
            self._data.update(copy.deepcopy(dict(partial)))
        self._notify()

    def replace(self, data: Mapping[str, Any]) -> None:
        """Swap the whole record, used by reset and rehydration only."""

        self._data = dict(data)

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change()
        except Exception:
            logger.warning("Snapshot request after merge failed", exc_info=True)


__all__ = ["WizardDataStore", "merge_preview"]

"""Storage key names shared by the wizard engine and its hosts."""

from __future__ import annotations

from dataclasses import dataclass


class StateKeys:
    """Keys for engine-owned entries in ``st.session_state``."""

    CONTROLLERS = "wizard.controllers"


class TransientKeys:
    """Well-known entries of a session's in-memory ``transient`` mapping."""

    LAST_VALIDATION = "last_validation"
    LAST_STALE_CALL = "last_stale_call"


@dataclass(frozen=True)
class WizardSessionKeys:
    """Namespaced storage keys for one wizard's persisted state."""

    wizard_id: str

    @property
    def prefix(self) -> str:
        return f"wiz:{self.wizard_id}:"

    def namespace(self, key: str) -> str:
        return f"{self.prefix}{key}"

    @property
    def snapshot(self) -> str:
        return self.namespace("snapshot")

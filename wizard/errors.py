"""Exception types for wizard definitions, sessions, and persistence."""

from __future__ import annotations

from wizard.types import StepId


class WizardError(Exception):
    """Base exception for wizard related issues."""


class MisconfigurationError(WizardError):
    """Raised when a wizard definition cannot produce a usable step sequence."""


class StaleStateError(WizardError):
    """A caller referenced a step that is no longer the current step.

    Instances are reported and returned to the host, never raised out of the
    controller.
    """

    def __init__(self, wizard_id: str, expected: StepId, received: StepId, action: str) -> None:
        self.wizard_id = wizard_id
        self.expected = expected
        self.received = received
        self.action = action
        super().__init__(
            f"{action} on wizard '{wizard_id}' called for step {received!r} while current step is {expected!r}"
        )


class PersistenceError(WizardError):
    """Storage read/write failure or an unusable persisted snapshot."""

    def __init__(self, wizard_id: str, message: str) -> None:
        self.wizard_id = wizard_id
        super().__init__(f"wizard '{wizard_id}': {message}")


__all__ = [
    "MisconfigurationError",
    "PersistenceError",
    "StaleStateError",
    "WizardError",
]

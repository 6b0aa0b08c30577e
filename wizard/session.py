"""Runtime state of one active wizard."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final

from wizard.store import WizardDataStore
from wizard.types import StepId, WizardData

DONE: Final[str] = "__done__"


@dataclass
class WizardSession:
    """Current step pointer, accumulated data, and in-memory only flags."""

    wizard_id: str
    current_step_id: StepId
    store: WizardDataStore
    transient: dict[str, Any] = field(default_factory=dict)
    terminal: bool = False
    completed_steps: list[StepId] = field(default_factory=list)
    skipped_steps: list[StepId] = field(default_factory=list)

    @property
    def data(self) -> WizardData:
        return self.store.get()

    @property
    def is_done(self) -> bool:
        return self.terminal or self.current_step_id == DONE

    def mark_completed(self, step_id: StepId, *, skipped: bool = False) -> None:
        if step_id not in self.completed_steps:
            self.completed_steps.append(step_id)
        if skipped and step_id not in self.skipped_steps:
            self.skipped_steps.append(step_id)

    def navigation_state(self) -> dict[str, Any]:
        """Return the serializable pointer/progress portion of the session."""

        return {
            "current_step": self.current_step_id,
            "completed_steps": list(self.completed_steps),
            "skipped_steps": list(self.skipped_steps),
            "terminal": self.terminal,
        }


__all__ = ["DONE", "WizardSession"]

"""Static wizard definitions checked for consistency at construction time."""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from wizard.errors import MisconfigurationError
from wizard.step_registry import StepGraph, StepSpec
from wizard.types import StepId, WizardData


@dataclass(frozen=True)
class WizardDefinition:
    """Steps, defaults, and persistence identity of one wizard.

    The definition validates itself eagerly so that a broken step graph fails
    before any session is created:

    * step keys are unique and ``initial_step`` is one of them,
    * every ``branch_targets`` entry names a declared step,
    * at least one step is visible for the default data and the initial step
      is among them.
    """

    id: str
    steps: tuple[StepSpec, ...]
    initial_step: StepId
    schema_version: int = 1
    defaults: Mapping[str, Any] | Callable[[], Mapping[str, Any]] = field(default_factory=dict)
    transient_keys: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))
        if not self.id or not isinstance(self.id, str):
            raise MisconfigurationError("Wizard id must be a non-empty string")
        if not self.steps:
            raise MisconfigurationError(f"Wizard '{self.id}' declares no steps")

        keys = [step.key for step in self.steps]
        duplicates = sorted({str(key) for key in keys if keys.count(key) > 1})
        if duplicates:
            raise MisconfigurationError(f"Wizard '{self.id}' declares duplicate steps: {', '.join(duplicates)}")
        if self.initial_step not in keys:
            raise MisconfigurationError(f"Wizard '{self.id}' initial step {self.initial_step!r} is not declared")

        for step in self.steps:
            unknown = [target for target in step.branch_targets if target not in keys]
            if unknown:
                raise MisconfigurationError(
                    f"Wizard '{self.id}' step {step.key!r} branches to unknown steps: {unknown!r}"
                )
            if (step.next_step_id is not None or step.previous_step_id is not None) and not step.branch_targets:
                raise MisconfigurationError(
                    f"Wizard '{self.id}' step {step.key!r} declares a branching rule without branch_targets"
                )

        graph = self.graph
        defaults = self.default_data()
        visible = graph.visible_steps(defaults)
        if not visible:
            raise MisconfigurationError(f"Wizard '{self.id}' has no visible steps for its default data")
        if self.initial_step not in visible:
            raise MisconfigurationError(
                f"Wizard '{self.id}' initial step {self.initial_step!r} is hidden for its default data"
            )

    @property
    def graph(self) -> StepGraph:
        return StepGraph(self.steps)

    def default_data(self) -> WizardData:
        """Return a fresh deep copy of the declared defaults."""

        raw = self.defaults() if callable(self.defaults) else self.defaults
        return copy.deepcopy(dict(raw))

    def get_step(self, key: StepId) -> StepSpec | None:
        return next((step for step in self.steps if step.key == key), None)


def linear_steps(keys: Sequence[StepId]) -> tuple[StepSpec, ...]:
    """Build unconditional steps for simple linear wizards."""

    return tuple(StepSpec(key=key) for key in keys)


__all__ = ["WizardDefinition", "linear_steps"]

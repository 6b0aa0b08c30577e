"""Step metadata and the visibility-ordered step graph."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from wizard.types import StepId, StepPredicate, StepResolver, StepValidator


@dataclass(frozen=True)
class StepSpec:
    """Declarative contract for an individual wizard step."""

    key: StepId
    label: str = ""
    is_visible: StepPredicate | None = None
    schema: type[BaseModel] | None = None
    required_fields: tuple[str, ...] = ()
    validator: StepValidator | None = None
    next_step_id: StepResolver | None = None
    previous_step_id: StepResolver | None = None
    branch_targets: tuple[StepId, ...] = ()
    allow_skip: bool = False

    def visible(self, data: Mapping[str, Any]) -> bool:
        if self.is_visible is None:
            return True
        return bool(self.is_visible(data))

    @property
    def has_validation(self) -> bool:
        return bool(self.schema is not None or self.required_fields or self.validator is not None)


class StepGraph:
    """Ordered collection of steps filtered by their visibility predicates."""

    def __init__(self, steps: Sequence[StepSpec]) -> None:
        self._steps: tuple[StepSpec, ...] = tuple(steps)
        self._step_map: dict[StepId, StepSpec] = {step.key: step for step in self._steps}
        self._order: dict[StepId, int] = {step.key: index for index, step in enumerate(self._steps)}

    @property
    def steps(self) -> tuple[StepSpec, ...]:
        return self._steps

    def step_keys(self) -> tuple[StepId, ...]:
        """Return step keys in declared order."""

        return tuple(step.key for step in self._steps)

    def __contains__(self, key: object) -> bool:
        return key in self._step_map

    def get_step(self, key: StepId) -> StepSpec | None:
        return self._step_map.get(key)

    def position(self, key: StepId) -> int:
        """Return the declared position of ``key`` or ``-1`` when unknown."""

        return self._order.get(key, -1)

    def visible_steps(self, data: Mapping[str, Any]) -> tuple[StepId, ...]:
        """Return visible step keys in declared order."""

        return tuple(step.key for step in self._steps if step.visible(data))

    def index_of(self, key: StepId, data: Mapping[str, Any]) -> int:
        """Return the position of ``key`` within the visible steps or ``-1``."""

        visible = self.visible_steps(data)
        try:
            return visible.index(key)
        except ValueError:
            return -1

    def is_visible(self, key: StepId, data: Mapping[str, Any]) -> bool:
        step = self._step_map.get(key)
        return step is not None and step.visible(data)

    def next_visible_after(self, key: StepId, data: Mapping[str, Any]) -> StepId | None:
        """Return the first visible step declared strictly after ``key``."""

        start = self.position(key)
        if start < 0:
            return None
        for step in self._steps[start + 1 :]:
            if step.visible(data):
                return step.key
        return None

    def previous_visible_before(self, key: StepId, data: Mapping[str, Any]) -> StepId | None:
        """Return the nearest visible step declared strictly before ``key``."""

        start = self.position(key)
        if start <= 0:
            return None
        for step in reversed(self._steps[:start]):
            if step.visible(data):
                return step.key
        return None

    def resolve_nearest_visible(self, key: StepId | None, data: Mapping[str, Any]) -> StepId | None:
        """Return ``key`` when visible, else the nearest visible neighbour.

        Steps declared after ``key`` win over earlier ones; an unknown key
        resolves to the first visible step.
        """

        if key is not None and self.is_visible(key, data):
            return key
        if key is not None and key in self._step_map:
            forward = self.next_visible_after(key, data)
            if forward is not None:
                return forward
            backward = self.previous_visible_before(key, data)
            if backward is not None:
                return backward
        visible = self.visible_steps(data)
        return visible[0] if visible else None


__all__ = ["StepGraph", "StepSpec"]

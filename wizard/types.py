"""Shared type aliases for the wizard package."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Union


StepId = Union[str, int]
WizardData = dict[str, Any]
FieldErrors = dict[str, str]

# Pure predicates and resolvers evaluated against the accumulated wizard data
StepPredicate = Callable[[Mapping[str, Any]], bool]
StepResolver = Callable[[Mapping[str, Any]], Union[StepId, None]]
StepValidator = Callable[[Mapping[str, Any]], Mapping[str, str]]


__all__ = [
    "FieldErrors",
    "StepId",
    "StepPredicate",
    "StepResolver",
    "StepValidator",
    "WizardData",
]

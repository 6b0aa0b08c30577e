"""Reusable multi-step wizard engine."""

from __future__ import annotations

import importlib
from typing import Any

from .definition import WizardDefinition, linear_steps
from .errors import MisconfigurationError, PersistenceError, StaleStateError, WizardError
from .session import DONE, WizardSession
from .step_registry import StepGraph, StepSpec
from .store import WizardDataStore
from .validation import ValidationGate, ValidationResult

_LAZY_EXPORTS: dict[str, str] = {
    "TransitionResult": "wizard.navigation.router",
    "WizardController": "wizard.navigation.router",
    "get_definition": "wizard.flows",
    "WIZARD_DEFINITIONS": "wizard.flows",
}

__all__ = [
    "DONE",
    "MisconfigurationError",
    "PersistenceError",
    "StaleStateError",
    "StepGraph",
    "StepSpec",
    "TransitionResult",
    "ValidationGate",
    "ValidationResult",
    "WIZARD_DEFINITIONS",
    "WizardController",
    "WizardDataStore",
    "WizardDefinition",
    "WizardError",
    "WizardSession",
    "get_definition",
    "linear_steps",
]


def __getattr__(name: str) -> Any:
    """Load controller and flow exports lazily to keep ``state`` imports acyclic."""

    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__} has no attribute {name}")
    value: Any = getattr(importlib.import_module(module_name), name)
    globals()[name] = value
    return value

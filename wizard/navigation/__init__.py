"""Navigation helpers for wizard hosts."""

from __future__ import annotations

from wizard.navigation.router import DONE, TransitionResult, WizardController
from wizard.navigation.ui import controller_for, render_navigation, render_validation_warnings

__all__ = [
    "DONE",
    "TransitionResult",
    "WizardController",
    "controller_for",
    "render_navigation",
    "render_validation_warnings",
]

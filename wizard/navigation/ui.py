"""Streamlit helpers that let a host page drive a :class:`WizardController`."""

from __future__ import annotations

import html
import logging
from typing import Any, Callable, Mapping, MutableMapping, cast

import streamlit as st

from config import get_settings
from constants.keys import StateKeys
from state.autosave import PersistenceAdapter
from state.storage import build_storage
from utils.logging_context import configure_logging
from wizard.definition import WizardDefinition
from wizard.navigation.router import TransitionResult, WizardController
from wizard.session import DONE

logger = logging.getLogger(__name__)

ValuesProvider = Callable[[], Mapping[str, Any]]


def controller_for(
    definition: WizardDefinition,
    *,
    session_state: MutableMapping[str, object] | None = None,
    persistence: PersistenceAdapter | None = None,
) -> WizardController:
    """Return the controller owned by the current browser session for ``definition``.

    Controllers are created on first use and kept in the session's own
    registry so each open wizard has exactly one owner.
    """

    state = session_state if session_state is not None else cast(MutableMapping[str, object], st.session_state)
    registry = state.get(StateKeys.CONTROLLERS)
    if not isinstance(registry, dict):
        registry = {}
        state[StateKeys.CONTROLLERS] = registry
    controller = registry.get(definition.id)
    if isinstance(controller, WizardController) and controller.definition is definition:
        return controller
    settings = get_settings()
    configure_logging(level=settings.log_level)
    adapter = persistence or PersistenceAdapter(build_storage(settings))
    controller = WizardController(definition, persistence=adapter, settings=settings)
    registry[definition.id] = controller
    logger.debug("Created controller for wizard '%s' at step %r", definition.id, controller.current_step_id)
    return controller


def render_validation_warnings(errors: Mapping[str, str]) -> None:
    """Show field-level validation messages below the step form."""

    if not errors:
        return
    lines = [f"<strong>{html.escape(field)}</strong>: {html.escape(message)}" for field, message in errors.items()]
    st.markdown(
        f"""
        <div class="wizard-nav-warning-area">
            <div class="wizard-nav-warning wizard-nav-warning--active">
                {"<br />".join(lines)}
            </div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def render_navigation(
    controller: WizardController,
    values: ValuesProvider,
    *,
    back_label: str = "◀ Back",
    next_label: str = "Next ▶",
    finish_label: str = "Finish",
    busy: bool = False,
) -> TransitionResult | None:
    """Render Back/Next (or Finish) buttons and apply the clicked transition.

    ``values`` is only called when Next/Finish is clicked. ``busy`` disables
    both buttons while the host waits for an external call to return.
    """

    current = controller.current_step_id
    if current == DONE or controller.terminal:
        return None
    key_prefix = f"wizard.{controller.wizard_id}.{current}"
    previous_disabled = busy or controller.graph.previous_visible_before(current, controller.data) is None
    is_last = controller.is_last_step(current)

    col_back, col_next = st.columns(2)
    back_clicked = col_back.button(back_label, key=f"{key_prefix}.back", disabled=previous_disabled)
    next_clicked = col_next.button(
        finish_label if is_last else next_label,
        key=f"{key_prefix}.next",
        type="primary",
        disabled=busy,
    )

    result: TransitionResult | None = None
    if back_clicked:
        result = controller.retreat(current)
    elif next_clicked:
        submitted = values()
        result = controller.complete(current, submitted) if is_last else controller.advance(current, submitted)
    if result is not None and result.errors:
        render_validation_warnings(result.errors)
    return result


__all__ = [
    "controller_for",
    "render_navigation",
    "render_validation_warnings",
]

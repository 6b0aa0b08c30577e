from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Mapping

from streamlit.runtime.scriptrunner import add_script_run_ctx

from config import WizardSettings, get_settings
from constants.keys import TransientKeys
from state.autosave import PersistenceAdapter
from utils.logging_context import bind_wizard
from wizard.definition import WizardDefinition
from wizard.errors import MisconfigurationError, StaleStateError
from wizard.reporting import ErrorReporter, LoggingErrorReporter
from wizard.session import DONE, WizardSession
from wizard.step_registry import StepGraph, StepSpec
from wizard.store import WizardDataStore
from wizard.types import FieldErrors, StepId, WizardData
from wizard.validation import ValidationGate, ValidationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a navigation call as seen by the host UI."""

    ok: bool
    step_id: StepId
    errors: FieldErrors = field(default_factory=dict)
    stale: bool = False

    @property
    def done(self) -> bool:
        return self.step_id == DONE


class WizardController:
    """Drive one wizard session through its step graph.

    ``advance`` validates a preview of the merged data, merges, and then
    resolves the next step from visibility computed on the merged data.
    ``retreat`` moves backwards without validating or clearing anything.
    Every state change is followed by a snapshot when a persistence adapter
    is configured.
    """

    def __init__(
        self,
        definition: WizardDefinition,
        *,
        persistence: PersistenceAdapter | None = None,
        reporter: ErrorReporter | None = None,
        settings: WizardSettings | None = None,
        restore: bool = True,
    ) -> None:
        self._definition = definition
        self._graph: StepGraph = definition.graph
        self._gate = ValidationGate(self._graph)
        self._persistence = persistence
        self._reporter: ErrorReporter = reporter or LoggingErrorReporter(logger)
        self._settings = settings
        self._lock = threading.RLock()
        self._pending_clear: threading.Timer | None = None
        self._session: WizardSession | None = None
        self._session = self._restore_session() if restore else None
        if self._session is None:
            self._session = self._fresh_session(definition.default_data())
        self.ensure_current_is_valid()

    @property
    def definition(self) -> WizardDefinition:
        return self._definition

    @property
    def graph(self) -> StepGraph:
        return self._graph

    @property
    def session(self) -> WizardSession:
        assert self._session is not None
        return self._session

    @property
    def wizard_id(self) -> str:
        return self._definition.id

    @property
    def data(self) -> WizardData:
        return self.session.data

    @property
    def transient(self) -> dict[str, Any]:
        return self.session.transient

    @property
    def current_step_id(self) -> StepId:
        return self.session.current_step_id

    @property
    def current_step(self) -> StepSpec | None:
        return self._graph.get_step(self.session.current_step_id)

    @property
    def terminal(self) -> bool:
        return self.session.terminal

    def visible_steps(self) -> tuple[StepId, ...]:
        return self._graph.visible_steps(self.data)

    def is_last_step(self, step_id: StepId | None = None) -> bool:
        key = self.current_step_id if step_id is None else step_id
        visible = self.visible_steps()
        return bool(visible) and visible[-1] == key

    def progress(self) -> tuple[int, int]:
        """Return ``(position, total)`` over the visible steps, 1-based."""

        visible = self.visible_steps()
        if self.session.current_step_id == DONE:
            return len(visible), len(visible)
        index = self._graph.index_of(self.session.current_step_id, self.data)
        return index + 1, len(visible)

    def set_transient(self, key: str, value: Any) -> None:
        self.session.transient[key] = value

    def snapshot(self) -> dict[str, Any]:
        """Return the persistable projection of the session.

        Keys listed in the definition's ``transient_keys`` never leave memory.
        """

        excluded = set(self._definition.transient_keys)
        data = {key: copy.deepcopy(value) for key, value in self.data.items() if key not in excluded}
        return {"data": data, "wizard": self.session.navigation_state()}

    # Validation

    def validate(self, step_id: StepId, partial: Mapping[str, Any] | None = None) -> ValidationResult:
        """Validate ``partial`` merged over the current data without committing it."""

        return self._gate.validate(step_id, self.session.store.preview(partial))

    def can_advance(self, partial: Mapping[str, Any] | None = None) -> bool:
        if self.session.current_step_id == DONE or self.session.terminal:
            return False
        return self.validate(self.session.current_step_id, partial).ok

    # Transitions

    def advance(self, step_id: StepId, partial: Mapping[str, Any] | None = None) -> TransitionResult:
        with self._lock, bind_wizard(self, step_id):
            stale = self._check_current(step_id, "advance")
            if stale is not None:
                return stale
            if step_id == DONE:
                return TransitionResult(ok=False, step_id=DONE)
            session = self.session
            result = self.validate(step_id, partial)
            session.transient[TransientKeys.LAST_VALIDATION] = result
            if not result.ok:
                logger.debug("Validation blocked advance from %r: %s", step_id, sorted(result.field_errors))
                return TransitionResult(ok=False, step_id=step_id, errors=dict(result.field_errors))

            session.store.merge(partial)
            target = self._resolve_next(step_id)
            session.mark_completed(step_id)
            session.current_step_id = target
            self._snapshot()
            logger.info("Advanced wizard '%s' from %r to %r", self.wizard_id, step_id, target)
            return TransitionResult(ok=True, step_id=target)

    def retreat(self, step_id: StepId) -> TransitionResult:
        with self._lock, bind_wizard(self, step_id):
            stale = self._check_current(step_id, "retreat")
            if stale is not None:
                return stale
            session = self.session
            target = self._resolve_previous(step_id)
            if target is None:
                logger.debug("Retreat from first step %r ignored", step_id)
                return TransitionResult(ok=False, step_id=step_id)
            session.transient.pop(TransientKeys.LAST_VALIDATION, None)
            session.current_step_id = target
            self._snapshot()
            logger.info("Retreated wizard '%s' from %r to %r", self.wizard_id, step_id, target)
            return TransitionResult(ok=True, step_id=target)

    def skip(self, step_id: StepId) -> TransitionResult:
        """Move past an optional step without validating or merging its data."""

        with self._lock, bind_wizard(self, step_id):
            stale = self._check_current(step_id, "skip")
            if stale is not None:
                return stale
            if step_id == DONE:
                return TransitionResult(ok=False, step_id=DONE)
            step = self._graph.get_step(step_id)
            if step is None or not step.allow_skip:
                logger.warning("Step %r of wizard '%s' cannot be skipped", step_id, self.wizard_id)
                return TransitionResult(ok=False, step_id=step_id)
            target = self._resolve_next(step_id)
            self.session.mark_completed(step_id, skipped=True)
            self.session.current_step_id = target
            self._snapshot()
            logger.info("Skipped step %r of wizard '%s'", step_id, self.wizard_id)
            return TransitionResult(ok=True, step_id=target)

    def complete(self, step_id: StepId, partial: Mapping[str, Any] | None = None) -> TransitionResult:
        """Commit the wizard from its final step (or from ``DONE``).

        Finality is decided on the merged data. A submission that reveals a
        later step moves the pointer there and leaves the wizard open.
        """

        with self._lock, bind_wizard(self, step_id):
            stale = self._check_current(step_id, "complete")
            if stale is not None:
                return stale
            session = self.session
            if step_id != DONE:
                merged = session.store.preview(partial)
                if not (self.is_last_step(step_id) or self._is_last_visible(step_id, merged)):
                    self._report_stale(DONE, step_id, "complete")
                    return TransitionResult(ok=False, step_id=session.current_step_id, stale=True)
                result = self._gate.validate(step_id, merged)
                session.transient[TransientKeys.LAST_VALIDATION] = result
                if not result.ok:
                    return TransitionResult(ok=False, step_id=step_id, errors=dict(result.field_errors))
                session.store.merge(partial)
                session.mark_completed(step_id)
                target = self._resolve_next(step_id)
                if target != DONE:
                    session.current_step_id = target
                    self._snapshot()
                    logger.info("Step %r of wizard '%s' became visible; completion deferred", target, self.wizard_id)
                    return TransitionResult(ok=True, step_id=target)
            session.current_step_id = DONE
            session.terminal = True
            self._snapshot()
            logger.info("Completed wizard '%s'", self.wizard_id)
            return TransitionResult(ok=True, step_id=DONE)

    # Lifecycle

    def reset(self) -> None:
        """Restore defaults, return to the initial step, and drop the snapshot."""

        with self._lock, bind_wizard(self):
            self.cancel_pending_clear()
            session = self.session
            session.store.replace(self._definition.default_data())
            session.current_step_id = self._definition.initial_step
            session.transient.clear()
            session.terminal = False
            session.completed_steps.clear()
            session.skipped_steps.clear()
            if self._persistence is not None:
                self._persistence.clear(self.wizard_id)
            logger.info("Reset wizard '%s'", self.wizard_id)

    def initialize(self, overrides: Mapping[str, Any] | None = None) -> None:
        """Start a fresh session whose defaults are overlaid with ``overrides``."""

        with self._lock:
            self.reset()
            seeded = self._definition.default_data()
            seeded.update(copy.deepcopy(dict(overrides or {})))
            self.session.store.replace(seeded)
            self.ensure_current_is_valid()
            self._snapshot()

    def close(self, delay_seconds: float | None = None) -> None:
        """Flush the current state, then drop the session after ``delay_seconds``.

        The delay lets an outgoing page finish reading session data after the
        host navigates away.
        """

        with self._lock:
            self._snapshot()
            self.cancel_pending_clear()
            delay = self._resolve_clear_delay(delay_seconds)
            if delay <= 0:
                self.reset()
                return
            timer = threading.Timer(delay, self._run_pending_clear)
            timer.daemon = True
            # st.session_state only resolves to the browser session on threads carrying its script context.
            add_script_run_ctx(timer)
            self._pending_clear = timer
            timer.start()
            logger.debug("Scheduled clear of wizard '%s' in %.2fs", self.wizard_id, delay)

    def cancel_pending_clear(self) -> bool:
        timer = self._pending_clear
        self._pending_clear = None
        if timer is None:
            return False
        timer.cancel()
        return True

    @property
    def clear_pending(self) -> bool:
        return self._pending_clear is not None

    def ensure_current_is_valid(self) -> StepId:
        """Move the pointer off hidden or unknown steps."""

        session = self.session
        current = session.current_step_id
        if current == DONE:
            return current
        resolved = self._graph.resolve_nearest_visible(current if current in self._graph else None, self.data)
        if resolved is None:
            raise MisconfigurationError(f"Wizard '{self.wizard_id}' has no visible steps")
        if resolved != current:
            logger.info("Re-routed wizard '%s' from hidden step %r to %r", self.wizard_id, current, resolved)
            session.current_step_id = resolved
            self._snapshot()
        return resolved

    # Internals

    def _fresh_session(self, data: WizardData) -> WizardSession:
        return WizardSession(
            wizard_id=self.wizard_id,
            current_step_id=self._definition.initial_step,
            store=WizardDataStore(data, on_change=self._snapshot),
        )

    def _restore_session(self) -> WizardSession | None:
        if self._persistence is None:
            return None
        loaded = self._persistence.load(self.wizard_id, self._definition.schema_version)
        if loaded is None:
            return None
        navigation = loaded["wizard"]
        if navigation.get("terminal"):
            logger.info("Discarding snapshot of completed wizard '%s'", self.wizard_id)
            self._persistence.clear(self.wizard_id)
            return None
        data = self._definition.default_data()
        data.update(loaded["data"])
        session = self._fresh_session(data)
        current = navigation.get("current_step")
        if current == DONE or current in self._graph:
            session.current_step_id = current
        session.completed_steps.extend(key for key in navigation.get("completed_steps", []) if key in self._graph)
        session.skipped_steps.extend(key for key in navigation.get("skipped_steps", []) if key in self._graph)
        logger.info("Restored wizard '%s' at step %r", self.wizard_id, session.current_step_id)
        return session

    def _check_current(self, step_id: StepId, action: str) -> TransitionResult | None:
        session = self.session
        if session.terminal or step_id != session.current_step_id:
            expected = DONE if session.terminal else session.current_step_id
            self._report_stale(expected, step_id, action)
            return TransitionResult(ok=False, step_id=session.current_step_id, stale=True)
        return None

    def _report_stale(self, expected: StepId, received: StepId, action: str) -> None:
        error = StaleStateError(self.wizard_id, expected, received, action)
        self.session.transient[TransientKeys.LAST_STALE_CALL] = str(error)
        self._reporter.report(error)

    def _is_last_visible(self, step_id: StepId, data: Mapping[str, Any]) -> bool:
        visible = self._graph.visible_steps(data)
        return bool(visible) and visible[-1] == step_id

    def _visible_or_fail(self, data: Mapping[str, Any]) -> tuple[StepId, ...]:
        visible = self._graph.visible_steps(data)
        if not visible:
            raise MisconfigurationError(f"Wizard '{self.wizard_id}' has no visible steps")
        return visible

    def _resolve_next(self, step_id: StepId) -> StepId:
        data = self.data
        visible = self._visible_or_fail(data)
        step = self._graph.get_step(step_id)
        if step is not None and step.next_step_id is not None:
            candidate = step.next_step_id(data)
            if candidate is not None and candidate != step_id and candidate in visible:
                return candidate
            if candidate is not None:
                logger.warning("Next-step resolver of %r returned unusable key %r", step_id, candidate)
        fallback = self._graph.next_visible_after(step_id, data)
        return DONE if fallback is None else fallback

    def _resolve_previous(self, step_id: StepId) -> StepId | None:
        data = self.data
        visible = self._visible_or_fail(data)
        if step_id == DONE:
            return visible[-1]
        step = self._graph.get_step(step_id)
        if step is not None and step.previous_step_id is not None:
            candidate = step.previous_step_id(data)
            if candidate is not None and candidate != step_id and candidate in visible:
                return candidate
            if candidate is not None:
                logger.warning("Previous-step resolver of %r returned unusable key %r", step_id, candidate)
        return self._graph.previous_visible_before(step_id, data)

    def _snapshot(self) -> None:
        if self._persistence is None or self._session is None:
            return
        self._persistence.save(self.wizard_id, self._definition.schema_version, self.snapshot())

    def _resolve_clear_delay(self, delay_seconds: float | None) -> float:
        if delay_seconds is not None:
            return max(0.0, float(delay_seconds))
        settings = self._settings or get_settings()
        return settings.clear_delay_seconds

    def _run_pending_clear(self) -> None:
        with self._lock:
            if self._pending_clear is None:
                return
            self._pending_clear = None
            self.reset()


__all__ = ["DONE", "TransitionResult", "WizardController"]

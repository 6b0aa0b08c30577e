from __future__ import annotations

import threading
from pathlib import Path

import streamlit as st
from streamlit.runtime.state import SessionStateProxy
from streamlit.testing.v1 import AppTest

from config import WizardSettings
from state.autosave import PersistenceAdapter
from state.storage import MemoryStorage
from wizard.navigation.router import WizardController


class _ImmediateTimer:
    """Stand-in for ``threading.Timer`` that records instead of sleeping."""

    created: list["_ImmediateTimer"] = []

    def __init__(self, interval: float, function) -> None:
        self.interval = interval
        self.function = function
        self.daemon = False
        self.cancelled = False
        self.started = False
        _ImmediateTimer.created.append(self)

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.function()


def _patch_timer(monkeypatch) -> list[_ImmediateTimer]:
    _ImmediateTimer.created = []
    monkeypatch.setattr(threading, "Timer", _ImmediateTimer)
    return _ImmediateTimer.created


def test_reset_clears_persisted_snapshot(storage: MemoryStorage, linear_definition) -> None:
    controller = WizardController(linear_definition, persistence=PersistenceAdapter(storage))
    controller.advance("step1", {"name": "Ada"})
    assert storage.keys() == ["wiz:linear:snapshot"]

    controller.reset()

    assert storage.keys() == []
    assert controller.current_step_id == "step1"
    assert controller.data == linear_definition.default_data()


def test_initialize_overlays_defaults(storage: MemoryStorage, linear_definition) -> None:
    controller = WizardController(linear_definition, persistence=PersistenceAdapter(storage))
    controller.advance("step1", {"name": "Ada"})

    controller.initialize({"email": "seed@example.com"})

    assert controller.current_step_id == "step1"
    assert controller.data == {"name": "", "email": "seed@example.com", "notes": ""}
    restored = WizardController(linear_definition, persistence=PersistenceAdapter(storage))
    assert restored.data["email"] == "seed@example.com"


def test_close_without_delay_resets_immediately(storage: MemoryStorage, linear_definition) -> None:
    controller = WizardController(linear_definition, persistence=PersistenceAdapter(storage))
    controller.advance("step1", {"name": "Ada"})

    controller.close(0)

    assert storage.keys() == []
    assert not controller.clear_pending


def test_close_defers_clear_until_timer_fires(monkeypatch, storage: MemoryStorage, linear_definition) -> None:
    timers = _patch_timer(monkeypatch)
    controller = WizardController(linear_definition, persistence=PersistenceAdapter(storage))
    controller.advance("step1", {"name": "Ada"})

    controller.close(2.5)

    assert controller.clear_pending
    assert timers[0].interval == 2.5
    assert timers[0].daemon and timers[0].started
    assert controller.data["name"] == "Ada"
    assert storage.keys() == ["wiz:linear:snapshot"]

    timers[0].fire()

    assert not controller.clear_pending
    assert controller.data["name"] == ""
    assert storage.keys() == []


def test_close_uses_configured_delay(monkeypatch, linear_definition) -> None:
    timers = _patch_timer(monkeypatch)
    controller = WizardController(linear_definition, settings=WizardSettings(clear_delay_seconds=1.25))

    controller.close()

    assert timers[0].interval == 1.25


def test_pending_clear_can_be_cancelled(monkeypatch, linear_definition) -> None:
    timers = _patch_timer(monkeypatch)
    controller = WizardController(linear_definition)
    controller.advance("step1", {"name": "Ada"})
    controller.close(5)

    assert controller.cancel_pending_clear()
    timers[0].fire()

    assert controller.data["name"] == "Ada"
    assert not controller.cancel_pending_clear()


def test_reopening_before_timer_fires_keeps_session(monkeypatch, linear_definition) -> None:
    timers = _patch_timer(monkeypatch)
    controller = WizardController(linear_definition)
    controller.advance("step1", {"name": "Ada"})
    controller.close(5)

    controller.reset()
    controller.advance("step1", {"name": "Grace"})
    timers[0].function()

    assert controller.data["name"] == "Grace"


def test_delayed_clear_reaches_browser_session_state(monkeypatch, tmp_path: Path) -> None:
    """The timer thread must clear the real session, not a detached proxy."""

    monkeypatch.setattr(st, "session_state", SessionStateProxy())
    app_file = tmp_path / "closing_app.py"
    app_file.write_text(
        """
import time

import streamlit as st

from state.autosave import PersistenceAdapter
from state.storage import StreamlitSessionStorage
from wizard.definition import WizardDefinition
from wizard.navigation.router import WizardController
from wizard.step_registry import StepSpec


def _snapshot_keys():
    return sorted(key for key in st.session_state if str(key).startswith("wiz:"))


definition = WizardDefinition(
    id="closing",
    initial_step="a",
    defaults={"name": ""},
    steps=(StepSpec(key="a"), StepSpec(key="b")),
)
controller = WizardController(definition, persistence=PersistenceAdapter(StreamlitSessionStorage()))
controller.advance("a", {"name": "Ada"})
st.session_state["keys_before_close"] = _snapshot_keys()

controller.close(delay_seconds=0.05)
time.sleep(0.5)
st.session_state["keys_after_clear"] = _snapshot_keys()
st.session_state["step_after_clear"] = controller.current_step_id
""".lstrip(),
        encoding="utf-8",
    )

    app = AppTest.from_file(str(app_file))
    app.run(timeout=30)

    assert not app.exception
    assert app.session_state["keys_before_close"] == ["wiz:closing:snapshot"]
    assert app.session_state["keys_after_clear"] == []
    assert app.session_state["step_after_clear"] == "a"

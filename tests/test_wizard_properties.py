"""Sequence sweeps over a branching wizard.

Each case replays a fixed script of ``advance``/``retreat`` calls and checks
the session after every call.
"""

from __future__ import annotations

import copy
import itertools

import pytest

from wizard.definition import WizardDefinition
from wizard.navigation.router import DONE, WizardController
from wizard.step_registry import StepSpec


def _definition() -> WizardDefinition:
    return WizardDefinition(
        id="sweep",
        initial_step="start",
        defaults={"sync": False, "extras": False},
        steps=(
            StepSpec(key="start"),
            StepSpec(key="sync", is_visible=lambda data: bool(data.get("sync"))),
            StepSpec(key="middle", required_fields=("middle_value",)),
            StepSpec(key="extras", is_visible=lambda data: bool(data.get("extras"))),
            StepSpec(key="end"),
        ),
    )


_PAYLOADS = {
    "start": [{"sync": True}, {"sync": False, "extras": True}, {"extras": False}],
    "sync": [{"sync_value": "s"}, {"extras": True}],
    "middle": [{"middle_value": "m"}, {"middle_value": ""}],
    "extras": [{"extras_value": "e"}, {"sync": False}],
    "end": [{"end_value": "z"}],
}

_SCRIPTS = [
    "".join(script)
    for script in itertools.product("ar", repeat=6)
    if script[0] == "a"
]


def _run(controller: WizardController, script: str, variant: int):
    """Yield the transition result of every scripted call."""

    for index, action in enumerate(script):
        current = controller.current_step_id
        if current == DONE:
            if action == "r":
                yield controller.retreat(DONE)
            continue
        if action == "a":
            options = _PAYLOADS[str(current)]
            yield controller.advance(current, options[(index + variant) % len(options)])
        else:
            yield controller.retreat(current)


@pytest.mark.parametrize("variant", [0, 1, 2])
@pytest.mark.parametrize("script", _SCRIPTS)
def test_session_never_rests_on_hidden_step(script: str, variant: int) -> None:
    controller = WizardController(_definition())

    for _ in _run(controller, script, variant):
        current = controller.current_step_id
        assert current == DONE or controller.graph.is_visible(current, controller.data)


@pytest.mark.parametrize("variant", [0, 1, 2])
@pytest.mark.parametrize("script", _SCRIPTS)
def test_merged_fields_survive_retreat(script: str, variant: int) -> None:
    controller = WizardController(_definition())
    seen: set[str] = set(controller.data)

    for result in _run(controller, script, variant):
        if result.ok:
            seen.update(controller.data)
        assert seen <= set(controller.data)


@pytest.mark.parametrize("payload", [{"middle_value": ""}, {"middle_value": None}, {}])
def test_failed_advance_never_mutates(payload) -> None:
    controller = WizardController(_definition())
    controller.advance("start", {"sync": False})
    before = (controller.current_step_id, copy.deepcopy(controller.data))

    result = controller.advance("middle", payload)

    assert not result.ok
    assert (controller.current_step_id, controller.data) == before


def test_reset_is_idempotent() -> None:
    controller = WizardController(_definition())
    controller.advance("start", {"sync": True})
    controller.set_transient("pending", True)

    controller.reset()
    once = (controller.current_step_id, copy.deepcopy(controller.data), dict(controller.transient), controller.terminal)
    controller.reset()
    twice = (controller.current_step_id, copy.deepcopy(controller.data), dict(controller.transient), controller.terminal)

    assert once == twice == ("start", {"sync": False, "extras": False}, {}, False)

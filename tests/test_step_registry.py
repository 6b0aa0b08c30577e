from __future__ import annotations

import pytest

from wizard.step_registry import StepGraph, StepSpec


def _graph() -> StepGraph:
    return StepGraph(
        [
            StepSpec(key="intro"),
            StepSpec(key="sync", is_visible=lambda data: bool(data.get("sync"))),
            StepSpec(key="review"),
            StepSpec(key="extras", is_visible=lambda data: bool(data.get("extras"))),
        ]
    )


def test_visible_steps_follow_declared_order() -> None:
    graph = _graph()

    assert graph.visible_steps({}) == ("intro", "review")
    assert graph.visible_steps({"sync": True, "extras": True}) == ("intro", "sync", "review", "extras")
    assert graph.step_keys() == ("intro", "sync", "review", "extras")


def test_index_of_returns_minus_one_for_hidden_or_unknown_steps() -> None:
    graph = _graph()

    assert graph.index_of("review", {}) == 1
    assert graph.index_of("review", {"sync": True}) == 2
    assert graph.index_of("sync", {}) == -1
    assert graph.index_of("missing", {}) == -1


def test_neighbour_lookup_skips_hidden_steps() -> None:
    graph = _graph()

    assert graph.next_visible_after("intro", {}) == "review"
    assert graph.next_visible_after("intro", {"sync": True}) == "sync"
    assert graph.next_visible_after("review", {}) is None
    assert graph.previous_visible_before("review", {}) == "intro"
    assert graph.previous_visible_before("intro", {}) is None
    assert graph.previous_visible_before("missing", {}) is None


@pytest.mark.parametrize(
    ("key", "data", "expected"),
    [
        ("review", {}, "review"),
        ("sync", {}, "review"),
        ("extras", {}, "review"),
        ("unknown", {}, "intro"),
        (None, {"sync": True}, "intro"),
    ],
)
def test_resolve_nearest_visible_prefers_forward_neighbours(key, data, expected) -> None:
    assert _graph().resolve_nearest_visible(key, data) == expected


def test_empty_visibility_yields_empty_list() -> None:
    graph = StepGraph([StepSpec(key="only", is_visible=lambda data: False)])

    assert graph.visible_steps({}) == ()
    assert graph.resolve_nearest_visible("only", {}) is None


def test_step_spec_reports_validation_capability() -> None:
    assert not StepSpec(key="plain").has_validation
    assert StepSpec(key="required", required_fields=("name",)).has_validation
    assert StepSpec(key="custom", validator=lambda data: {}).has_validation

from __future__ import annotations

import copy

from pydantic import BaseModel, Field

from wizard.step_registry import StepGraph, StepSpec
from wizard.validation import ValidationGate, ValidationResult, get_in, is_blank


class _Contact(BaseModel):
    email: str = Field(min_length=3)
    age: int = Field(ge=18)


class _Nested(BaseModel):
    settings: _Contact


def _gate() -> ValidationGate:
    return ValidationGate(
        StepGraph(
            [
                StepSpec(key="free"),
                StepSpec(key="required", required_fields=("name", "profile.city")),
                StepSpec(key="schema", schema=_Contact),
                StepSpec(key="nested", schema=_Nested),
                StepSpec(
                    key="custom",
                    required_fields=("name",),
                    validator=lambda data: {"name": "Name is taken.", "other": "Bad."},
                ),
            ]
        )
    )


def test_steps_without_rules_always_pass() -> None:
    result = _gate().validate("free", {})

    assert result == ValidationResult.success()
    assert bool(result) is True


def test_required_fields_support_dotted_paths() -> None:
    result = _gate().validate("required", {"name": "  ", "profile": {"city": "Berlin"}})

    assert not result.ok
    assert result.field_errors == {"name": "This field is required."}


def test_schema_errors_are_keyed_by_field() -> None:
    result = _gate().validate("schema", {"email": "a", "age": 12, "unrelated": object()})

    assert not result.ok
    assert set(result.field_errors) == {"email", "age"}


def test_nested_schema_errors_use_dotted_locations() -> None:
    result = _gate().validate("nested", {"settings": {"email": "someone@example.com", "age": 3}})

    assert set(result.field_errors) == {"settings.age"}


def test_required_messages_win_over_custom_validator_messages() -> None:
    result = _gate().validate("custom", {"name": ""})

    assert result.field_errors == {"name": "This field is required.", "other": "Bad."}


def test_unknown_step_fails_without_raising() -> None:
    result = _gate().validate("ghost", {})

    assert not result.ok
    assert "__step__" in result.field_errors


def test_validation_does_not_mutate_candidate() -> None:
    candidate = {"email": "x", "age": "old", "profile": {"city": ""}}
    before = copy.deepcopy(candidate)

    gate = _gate()
    first = gate.validate("schema", candidate)
    second = gate.validate("schema", candidate)

    assert candidate == before
    assert first == second


def test_helpers_treat_empty_values_as_blank() -> None:
    assert is_blank(None)
    assert is_blank("   ")
    assert is_blank([])
    assert not is_blank(0)
    assert not is_blank(False)
    assert get_in({"a": {"b": 1}}, "a.b") == 1
    assert get_in({"a": 1}, "a.b", "fallback") == "fallback"

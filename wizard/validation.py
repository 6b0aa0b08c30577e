from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

from wizard.step_registry import StepGraph, StepSpec
from wizard.types import FieldErrors, StepId

logger = logging.getLogger(__name__)

_REQUIRED_FIELD_MESSAGE = "This field is required."


def get_in(data: Mapping[str, Any] | None, path: str, default: Any = None) -> Any:
    """Return the nested value for ``path`` from ``data`` when available."""

    cursor: Any = data
    for part in path.split("."):
        if isinstance(cursor, Mapping) and part in cursor:
            cursor = cursor[part]
        else:
            return default
    return cursor


def is_blank(value: Any) -> bool:
    """Return ``True`` when ``value`` should be treated as missing."""

    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one step against a candidate data record."""

    ok: bool
    field_errors: FieldErrors = field(default_factory=dict)

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(ok=True)

    @classmethod
    def failure(cls, field_errors: Mapping[str, str]) -> ValidationResult:
        return cls(ok=False, field_errors=dict(field_errors))

    def __bool__(self) -> bool:
        return self.ok


def _format_location(loc: tuple[Any, ...]) -> str:
    if not loc:
        return "__root__"
    return ".".join(str(part) for part in loc)


def schema_errors(schema: type[BaseModel], candidate: Mapping[str, Any]) -> FieldErrors:
    """Validate the projection of ``candidate`` onto ``schema``'s fields."""

    payload = {name: candidate[name] for name in schema.model_fields if name in candidate}
    try:
        schema.model_validate(payload)
    except ValidationError as exc:
        errors: FieldErrors = {}
        for error in exc.errors():
            errors.setdefault(_format_location(tuple(error.get("loc", ()))), str(error.get("msg", "")))
        return errors
    return {}


def required_field_errors(required_fields: tuple[str, ...], candidate: Mapping[str, Any]) -> FieldErrors:
    return {path: _REQUIRED_FIELD_MESSAGE for path in required_fields if is_blank(get_in(candidate, path))}


def validate_step(step: StepSpec, candidate: Mapping[str, Any]) -> ValidationResult:
    """Run the required-field, schema, and custom checks declared by ``step``."""

    errors: FieldErrors = required_field_errors(step.required_fields, candidate)
    if step.schema is not None:
        for path, message in schema_errors(step.schema, candidate).items():
            errors.setdefault(path, message)
    if step.validator is not None:
        for path, message in (step.validator(candidate) or {}).items():
            errors.setdefault(str(path), str(message))
    if errors:
        return ValidationResult.failure(errors)
    return ValidationResult.success()


class ValidationGate:
    """Side-effect free validation of candidate data for a given step."""

    def __init__(self, graph: StepGraph) -> None:
        self._graph = graph

    def validate(self, step_id: StepId, candidate: Mapping[str, Any]) -> ValidationResult:
        step = self._graph.get_step(step_id)
        if step is None:
            logger.warning("Validation requested for unknown step %r", step_id)
            return ValidationResult.failure({"__step__": f"Unknown step {step_id!r}."})
        if not step.has_validation:
            return ValidationResult.success()
        return validate_step(step, candidate)


__all__ = [
    "ValidationGate",
    "ValidationResult",
    "get_in",
    "is_blank",
    "required_field_errors",
    "schema_errors",
    "validate_step",
]

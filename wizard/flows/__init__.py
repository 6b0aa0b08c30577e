"""Concrete wizard definitions shipped with the engine."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from wizard.definition import WizardDefinition
from wizard.flows import add_external_openid, add_location, add_standalone_device, initial_setup

WIZARD_DEFINITIONS: Mapping[str, WizardDefinition] = MappingProxyType(
    {
        module.DEFINITION.id: module.DEFINITION
        for module in (add_external_openid, add_location, add_standalone_device, initial_setup)
    }
)


def get_definition(wizard_id: str) -> WizardDefinition:
    """Return the registered definition for ``wizard_id``.

    Raises:
        KeyError: If no wizard with that id is registered.
    """

    try:
        return WIZARD_DEFINITIONS[wizard_id]
    except KeyError:
        raise KeyError(f"Unknown wizard: {wizard_id!r}") from None


__all__ = ["WIZARD_DEFINITIONS", "get_definition"]

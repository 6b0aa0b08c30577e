"""Wizard for adding a standalone (network) device via CLI enrollment or manual config."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Final, Mapping

from pydantic import BaseModel, Field, IPvAnyAddress, field_validator

from wizard.definition import WizardDefinition
from wizard.step_registry import StepSpec
from wizard.types import FieldErrors, WizardData
from wizard.validation import is_blank

WIZARD_ID: Final[str] = "add-standalone-device"
SCHEMA_VERSION: Final[int] = 1

STEP_METHOD: Final[str] = "method"
STEP_SETUP_CLI: Final[str] = "setup-cli"
STEP_SETUP_MANUAL: Final[str] = "setup-manual"
STEP_FINISH_CLI: Final[str] = "finish-cli"
STEP_FINISH_MANUAL: Final[str] = "finish-manual"


class SetupMethod(StrEnum):
    CLI = "cli"
    MANUAL = "manual"


class KeyGeneration(StrEnum):
    AUTO = "auto"
    MANUAL = "manual"


def default_data() -> WizardData:
    return {
        "method": SetupMethod.CLI.value,
        "name": "",
        "location_id": None,
        "assigned_ip": "",
        "description": "",
        "generation_choice": KeyGeneration.AUTO.value,
        "wireguard_pubkey": "",
    }


def _method_is(method: SetupMethod):
    def _predicate(data: Mapping[str, Any]) -> bool:
        return data.get("method") == method

    return _predicate


class MethodStep(BaseModel):
    method: SetupMethod


class DeviceSetup(BaseModel):
    name: str = Field(min_length=1)
    location_id: int = Field(ge=1)
    assigned_ip: IPvAnyAddress
    description: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class ManualDeviceSetup(DeviceSetup):
    generation_choice: KeyGeneration = KeyGeneration.AUTO
    wireguard_pubkey: str = ""


def _manual_key_rules(data: Mapping[str, Any]) -> FieldErrors:
    if data.get("generation_choice") == KeyGeneration.MANUAL and is_blank(data.get("wireguard_pubkey")):
        return {"wireguard_pubkey": "Public key is required when providing your own key."}
    return {}


def _method_next(data: Mapping[str, Any]) -> str:
    return STEP_SETUP_MANUAL if data.get("method") == SetupMethod.MANUAL else STEP_SETUP_CLI


DEFINITION: Final[WizardDefinition] = WizardDefinition(
    id=WIZARD_ID,
    schema_version=SCHEMA_VERSION,
    initial_step=STEP_METHOD,
    defaults=default_data,
    steps=(
        StepSpec(
            key=STEP_METHOD,
            label="Choose setup method",
            schema=MethodStep,
            next_step_id=_method_next,
            branch_targets=(STEP_SETUP_CLI, STEP_SETUP_MANUAL),
        ),
        StepSpec(
            key=STEP_SETUP_CLI,
            label="Device setup (CLI)",
            is_visible=_method_is(SetupMethod.CLI),
            schema=DeviceSetup,
        ),
        StepSpec(
            key=STEP_SETUP_MANUAL,
            label="Device setup (manual)",
            is_visible=_method_is(SetupMethod.MANUAL),
            schema=ManualDeviceSetup,
            validator=_manual_key_rules,
        ),
        StepSpec(
            key=STEP_FINISH_CLI,
            label="Finish",
            is_visible=_method_is(SetupMethod.CLI),
        ),
        StepSpec(
            key=STEP_FINISH_MANUAL,
            label="Finish",
            is_visible=_method_is(SetupMethod.MANUAL),
        ),
    ),
)


__all__ = [
    "DEFINITION",
    "KeyGeneration",
    "STEP_FINISH_CLI",
    "STEP_FINISH_MANUAL",
    "STEP_METHOD",
    "STEP_SETUP_CLI",
    "STEP_SETUP_MANUAL",
    "SetupMethod",
    "WIZARD_ID",
]

"""Wizard for adding a VPN location manually or by importing a WireGuard config."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Final, Mapping

from pydantic import BaseModel, Field, IPvAnyInterface

from wizard.definition import WizardDefinition
from wizard.step_registry import StepSpec
from wizard.types import FieldErrors, WizardData

WIZARD_ID: Final[str] = "add-location"
SCHEMA_VERSION: Final[int] = 1

STEP_TYPE: Final[str] = "type"
STEP_LOCATION_FORM: Final[str] = "location-form"
STEP_IMPORT_CONFIG: Final[str] = "import-config"
STEP_IMPORT_DEVICES: Final[str] = "import-devices"
STEP_SUMMARY: Final[str] = "summary"


class SetupType(StrEnum):
    MANUAL = "manual"
    IMPORT = "import"


def default_data() -> WizardData:
    return {
        "setup_type": None,
        "name": "",
        "address": "",
        "endpoint": "",
        "port": 50051,
        "allowed_ips": "",
        "dns": "",
        "keepalive_interval": 25,
        "peer_disconnect_threshold": 300,
        "config_file": "",
        "devices": [],
    }


def _is_manual(data: Mapping[str, Any]) -> bool:
    return data.get("setup_type") == SetupType.MANUAL


def _is_import(data: Mapping[str, Any]) -> bool:
    return data.get("setup_type") == SetupType.IMPORT


class TypeStep(BaseModel):
    setup_type: SetupType


class LocationForm(BaseModel):
    name: str = Field(min_length=1)
    address: IPvAnyInterface
    endpoint: str = Field(min_length=1)
    port: int = Field(ge=1, le=65535)
    allowed_ips: str = ""
    dns: str = ""
    keepalive_interval: int = Field(ge=1)
    peer_disconnect_threshold: int = Field(ge=120)


class ImportConfig(BaseModel):
    name: str = Field(min_length=1)
    endpoint: str = Field(min_length=1)
    config_file: str = Field(min_length=1)


def _device_mapping_rules(data: Mapping[str, Any]) -> FieldErrors:
    devices = data.get("devices")
    if not isinstance(devices, list):
        return {"devices": "Imported devices are missing."}
    unassigned = [
        str(device.get("wireguard_ip") or index)
        for index, device in enumerate(devices)
        if not isinstance(device, Mapping) or device.get("user_id") is None
    ]
    if unassigned:
        return {"devices": f"Assign a user to every imported device ({', '.join(unassigned)})."}
    return {}


def _type_next(data: Mapping[str, Any]) -> str:
    return STEP_IMPORT_CONFIG if _is_import(data) else STEP_LOCATION_FORM


DEFINITION: Final[WizardDefinition] = WizardDefinition(
    id=WIZARD_ID,
    schema_version=SCHEMA_VERSION,
    initial_step=STEP_TYPE,
    defaults=default_data,
    steps=(
        StepSpec(
            key=STEP_TYPE,
            label="Setup type",
            schema=TypeStep,
            next_step_id=_type_next,
            branch_targets=(STEP_LOCATION_FORM, STEP_IMPORT_CONFIG),
        ),
        StepSpec(key=STEP_LOCATION_FORM, label="Location", is_visible=_is_manual, schema=LocationForm),
        StepSpec(key=STEP_IMPORT_CONFIG, label="Import config", is_visible=_is_import, schema=ImportConfig),
        StepSpec(
            key=STEP_IMPORT_DEVICES,
            label="Map imported devices",
            is_visible=_is_import,
            validator=_device_mapping_rules,
        ),
        StepSpec(key=STEP_SUMMARY, label="Summary"),
    ),
)


__all__ = [
    "DEFINITION",
    "STEP_IMPORT_CONFIG",
    "STEP_IMPORT_DEVICES",
    "STEP_LOCATION_FORM",
    "STEP_SUMMARY",
    "STEP_TYPE",
    "SetupType",
    "WIZARD_ID",
]

"""Wizard for registering an external OpenID Connect identity provider."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Collection, Final, Mapping

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, field_validator

from config import DEFAULT_DIRECTORY_SYNC_PROVIDERS, get_settings
from wizard.definition import WizardDefinition
from wizard.step_registry import StepSpec
from wizard.types import FieldErrors, WizardData
from wizard.validation import get_in, is_blank

WIZARD_ID: Final[str] = "add-external-provider"
SCHEMA_VERSION: Final[int] = 1

STEP_CLIENT_SETTINGS: Final[str] = "client-settings"
STEP_DIRECTORY_SYNC: Final[str] = "directory-sync"
STEP_VALIDATION: Final[str] = "validation"


class ProviderKind(StrEnum):
    CUSTOM = "Custom"
    GOOGLE = "Google"
    MICROSOFT = "Microsoft"
    OKTA = "Okta"
    JUMPCLOUD = "JumpCloud"


class UsernameHandling(StrEnum):
    REMOVE_FORBIDDEN = "RemoveForbidden"
    REPLACE_FORBIDDEN = "ReplaceForbidden"
    PRUNE_EMAIL_DOMAIN = "PruneEmailDomain"


class DirectorySyncBehavior(StrEnum):
    KEEP = "keep"
    DISABLE = "disable"
    DELETE = "delete"


class DirectorySyncTarget(StrEnum):
    ALL = "all"
    USERS = "users"
    GROUPS = "groups"


PROVIDER_BASE_URLS: Final[dict[str, str]] = {
    ProviderKind.GOOGLE: "https://accounts.google.com",
    ProviderKind.JUMPCLOUD: "https://oauth.id.jumpcloud.com",
}

PROVIDER_DISPLAY_NAMES: Final[dict[str, str]] = {
    ProviderKind.GOOGLE: "Google",
    ProviderKind.MICROSOFT: "Microsoft",
    ProviderKind.OKTA: "Okta",
    ProviderKind.JUMPCLOUD: "JumpCloud",
}


def microsoft_base_url(tenant_id: str) -> str:
    return f"https://login.microsoftonline.com/{tenant_id}/v2.0"


def default_provider_state() -> dict[str, Any]:
    return {
        "name": ProviderKind.CUSTOM.value,
        "kind": ProviderKind.CUSTOM.value,
        "base_url": "",
        "client_id": "",
        "client_secret": "",
        "display_name": "",
        "google_service_account_key": None,
        "google_service_account_email": None,
        "admin_email": "",
        "directory_sync_enabled": False,
        "directory_sync_interval": 600,
        "directory_sync_user_behavior": DirectorySyncBehavior.KEEP.value,
        "directory_sync_admin_behavior": DirectorySyncBehavior.KEEP.value,
        "directory_sync_target": DirectorySyncTarget.ALL.value,
        "okta_private_jwk": None,
        "okta_dirsync_client_id": None,
        "directory_sync_group_match": None,
        "jumpcloud_api_key": None,
        "prefetch_users": False,
        "create_account": False,
        "username_handling": UsernameHandling.REMOVE_FORBIDDEN.value,
        "microsoft_tenant_id": None,
    }


def default_data() -> WizardData:
    return {
        "provider": ProviderKind.CUSTOM.value,
        "provider_state": default_provider_state(),
    }


def initial_values(provider: str) -> WizardData:
    """Return the seeded record for ``provider`` before the first step is shown."""

    state = default_provider_state()
    state["name"] = provider
    state["kind"] = provider
    if provider != ProviderKind.CUSTOM:
        state["display_name"] = PROVIDER_DISPLAY_NAMES.get(provider, provider)
    if provider in PROVIDER_BASE_URLS:
        state["base_url"] = PROVIDER_BASE_URLS[provider]
    return {"provider": provider, "provider_state": state}


def supports_directory_sync(
    data: Mapping[str, Any],
    providers: Collection[str] = DEFAULT_DIRECTORY_SYNC_PROVIDERS,
) -> bool:
    provider = data.get("provider")
    return isinstance(provider, str) and provider in providers


class ClientSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    base_url: AnyHttpUrl
    client_id: str = Field(min_length=1)
    client_secret: str = Field(min_length=1)
    display_name: str = Field(min_length=1)
    create_account: bool = False
    username_handling: UsernameHandling = UsernameHandling.REMOVE_FORBIDDEN

    @field_validator("client_id", "client_secret", "display_name", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class ClientSettingsStep(BaseModel):
    provider_state: ClientSettings


class DirectorySyncSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    directory_sync_enabled: bool
    directory_sync_interval: int = Field(ge=1)
    directory_sync_user_behavior: DirectorySyncBehavior
    directory_sync_admin_behavior: DirectorySyncBehavior
    directory_sync_target: DirectorySyncTarget
    prefetch_users: bool = False


class DirectorySyncStep(BaseModel):
    provider_state: DirectorySyncSettings


def _client_settings_rules(data: Mapping[str, Any]) -> FieldErrors:
    if data.get("provider") != ProviderKind.MICROSOFT:
        return {}
    if is_blank(get_in(data, "provider_state.microsoft_tenant_id")):
        return {"provider_state.microsoft_tenant_id": "Tenant ID is required for Microsoft providers."}
    return {}


_PROVIDER_SYNC_CREDENTIALS: Final[dict[str, tuple[str, ...]]] = {
    ProviderKind.GOOGLE: ("google_service_account_key", "google_service_account_email", "admin_email"),
    ProviderKind.OKTA: ("okta_private_jwk", "okta_dirsync_client_id"),
    ProviderKind.JUMPCLOUD: ("jumpcloud_api_key",),
}


def _directory_sync_rules(data: Mapping[str, Any]) -> FieldErrors:
    if not get_in(data, "provider_state.directory_sync_enabled"):
        return {}
    provider = data.get("provider")
    required = _PROVIDER_SYNC_CREDENTIALS.get(provider, ()) if isinstance(provider, str) else ()
    return {
        f"provider_state.{name}": "Required when directory sync is enabled."
        for name in required
        if is_blank(get_in(data, f"provider_state.{name}"))
    }


def build_definition(directory_sync_providers: Collection[str] = DEFAULT_DIRECTORY_SYNC_PROVIDERS) -> WizardDefinition:
    """Build the wizard with directory sync offered to ``directory_sync_providers``."""

    providers = frozenset(directory_sync_providers)

    def _sync_visible(data: Mapping[str, Any]) -> bool:
        return supports_directory_sync(data, providers)

    def _validation_previous(data: Mapping[str, Any]) -> str:
        return STEP_DIRECTORY_SYNC if _sync_visible(data) else STEP_CLIENT_SETTINGS

    return WizardDefinition(
        id=WIZARD_ID,
        schema_version=SCHEMA_VERSION,
        initial_step=STEP_CLIENT_SETTINGS,
        defaults=default_data,
        transient_keys=("test_result", "test_message"),
        steps=(
            StepSpec(
                key=STEP_CLIENT_SETTINGS,
                label="Client settings",
                schema=ClientSettingsStep,
                validator=_client_settings_rules,
            ),
            StepSpec(
                key=STEP_DIRECTORY_SYNC,
                label="Directory synchronization",
                is_visible=_sync_visible,
                schema=DirectorySyncStep,
                validator=_directory_sync_rules,
            ),
            StepSpec(
                key=STEP_VALIDATION,
                label="Validation",
                previous_step_id=_validation_previous,
                branch_targets=(STEP_DIRECTORY_SYNC, STEP_CLIENT_SETTINGS),
            ),
        ),
    )


DEFINITION: Final[WizardDefinition] = build_definition(get_settings().directory_sync_providers)


__all__ = [
    "DEFINITION",
    "DirectorySyncBehavior",
    "DirectorySyncTarget",
    "ProviderKind",
    "STEP_CLIENT_SETTINGS",
    "STEP_DIRECTORY_SYNC",
    "STEP_VALIDATION",
    "UsernameHandling",
    "WIZARD_ID",
    "build_definition",
    "default_data",
    "initial_values",
    "microsoft_base_url",
    "supports_directory_sync",
]

"""First-run setup wizard: admin account, general configuration and certificate authority."""

from __future__ import annotations

import re
from typing import Any, Final, Mapping

from pydantic import AnyHttpUrl, BaseModel, EmailStr, Field, field_validator

from wizard.definition import WizardDefinition
from wizard.step_registry import StepSpec
from wizard.types import FieldErrors, WizardData

WIZARD_ID: Final[str] = "initial-setup"
SCHEMA_VERSION: Final[int] = 1

STEP_WELCOME: Final[str] = "welcome"
STEP_ADMIN_USER: Final[str] = "admin-user"
STEP_GENERAL_CONFIG: Final[str] = "general-config"
STEP_CERTIFICATE_AUTHORITY: Final[str] = "certificate-authority"
STEP_CA_SUMMARY: Final[str] = "ca-summary"
STEP_SUMMARY: Final[str] = "summary"

MIN_PASSWORD_LENGTH: Final[int] = 8
MIN_MFA_TIMEOUT_SECONDS: Final[int] = 60

_PASSWORD_RULES: Final[tuple[tuple[re.Pattern[str], str], ...]] = (
    (re.compile(r"\d"), "Password must contain a digit."),
    (re.compile(r"[^\w\s]|_"), "Password must contain a special character."),
    (re.compile(r"[a-z]"), "Password must contain a lowercase letter."),
    (re.compile(r"[A-Z]"), "Password must contain an uppercase letter."),
)


def default_data() -> WizardData:
    return {
        "admin_first_name": "",
        "admin_last_name": "",
        "admin_username": "",
        "admin_email": "",
        "admin_password": "",
        "admin_password_confirm": "",
        "default_admin_group_name": "admin",
        "defguard_url": "",
        "default_authentication": 7,
        "default_mfa_code_lifetime": 300,
        "ca_common_name": "",
        "ca_email": "",
        "ca_validity_period_years": 1,
    }


def password_errors(password: str) -> list[str]:
    """Return every unmet password rule, in a stable order."""

    problems: list[str] = []
    if len(password) < MIN_PASSWORD_LENGTH:
        problems.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    problems.extend(message for pattern, message in _PASSWORD_RULES if not pattern.search(password))
    return problems


class AdminUser(BaseModel):
    admin_first_name: str = Field(min_length=1)
    admin_last_name: str = Field(min_length=1)
    admin_username: str = Field(min_length=3, max_length=64)
    admin_email: EmailStr
    admin_password: str

    @field_validator("admin_first_name", "admin_last_name", "admin_username", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("admin_password")
    @classmethod
    def _password_strength(cls, value: str) -> str:
        problems = password_errors(value)
        if problems:
            raise ValueError(problems[0])
        return value


def _password_confirmation(data: Mapping[str, Any]) -> FieldErrors:
    if data.get("admin_password") != data.get("admin_password_confirm"):
        return {"admin_password_confirm": "Passwords do not match."}
    return {}


class GeneralConfig(BaseModel):
    defguard_url: AnyHttpUrl
    default_admin_group_name: str = Field(min_length=1)
    default_authentication: int = Field(ge=1)
    default_mfa_code_lifetime: int = Field(ge=MIN_MFA_TIMEOUT_SECONDS)


class CertificateAuthority(BaseModel):
    ca_common_name: str = Field(min_length=1)
    ca_email: EmailStr
    ca_validity_period_years: int = Field(ge=1)


DEFINITION: Final[WizardDefinition] = WizardDefinition(
    id=WIZARD_ID,
    schema_version=SCHEMA_VERSION,
    initial_step=STEP_WELCOME,
    defaults=default_data,
    transient_keys=("admin_password", "admin_password_confirm"),
    steps=(
        StepSpec(key=STEP_WELCOME, label="Welcome"),
        StepSpec(
            key=STEP_ADMIN_USER,
            label="Admin user",
            schema=AdminUser,
            required_fields=("admin_password_confirm",),
            validator=_password_confirmation,
        ),
        StepSpec(key=STEP_GENERAL_CONFIG, label="General configuration", schema=GeneralConfig),
        StepSpec(key=STEP_CERTIFICATE_AUTHORITY, label="Certificate authority", schema=CertificateAuthority),
        StepSpec(key=STEP_CA_SUMMARY, label="Certificate summary"),
        StepSpec(key=STEP_SUMMARY, label="Summary"),
    ),
)


__all__ = [
    "DEFINITION",
    "STEP_ADMIN_USER",
    "STEP_CA_SUMMARY",
    "STEP_CERTIFICATE_AUTHORITY",
    "STEP_GENERAL_CONFIG",
    "STEP_SUMMARY",
    "STEP_WELCOME",
    "WIZARD_ID",
    "password_errors",
]

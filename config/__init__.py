"""Central configuration for the wizard engine.

Values are resolved from Streamlit secrets (a ``[wizard]`` section) first and
environment variables second, falling back to defaults. A ``.env`` file in the
working directory is loaded on import.

``WIZARD_STORAGE_BACKEND`` (``session_state`` | ``memory`` | ``file``) picks
where snapshots are kept; ``WIZARD_CLEAR_DELAY_SECONDS`` controls how long a
finished wizard keeps its snapshot after the host navigates away.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

import streamlit as st
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

STORAGE_BACKENDS: tuple[str, ...] = ("session_state", "memory", "file")
DEFAULT_STORAGE_BACKEND = "session_state"
DEFAULT_STORAGE_DIR = ".wizard_state"
DEFAULT_CLEAR_DELAY_SECONDS = 0.5
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_DIRECTORY_SYNC_PROVIDERS: tuple[str, ...] = ("Google", "Microsoft", "Okta", "JumpCloud")

_SECRETS_SECTION = "wizard"


@dataclass(frozen=True)
class WizardSettings:
    """Resolved runtime settings for wizard hosts."""

    storage_backend: str = DEFAULT_STORAGE_BACKEND
    storage_dir: str = DEFAULT_STORAGE_DIR
    clear_delay_seconds: float = DEFAULT_CLEAR_DELAY_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL
    directory_sync_providers: tuple[str, ...] = DEFAULT_DIRECTORY_SYNC_PROVIDERS


def _coerce_secret_value(value: object) -> str:
    """Return ``value`` as a trimmed string without raising on unexpected types."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="ignore").strip()
    return str(value).strip()


def _secrets_section() -> Mapping[str, object]:
    try:
        section = st.secrets[_SECRETS_SECTION]
    except Exception:
        return {}
    return section if isinstance(section, Mapping) else {}


def _lookup(name: str, secrets: Mapping[str, object]) -> str:
    secret_value = _coerce_secret_value(secrets.get(name))
    if secret_value:
        return secret_value
    return _coerce_secret_value(os.getenv(name))


def _normalise_backend(value: str) -> str:
    candidate = value.strip().lower()
    if not candidate:
        return DEFAULT_STORAGE_BACKEND
    if candidate in {"session", "session_state", "streamlit"}:
        return "session_state"
    if candidate in STORAGE_BACKENDS:
        return candidate
    logger.warning("Unsupported WIZARD_STORAGE_BACKEND '%s'; falling back to '%s'.", value, DEFAULT_STORAGE_BACKEND)
    return DEFAULT_STORAGE_BACKEND


def _normalise_delay(value: str, *, default: float = DEFAULT_CLEAR_DELAY_SECONDS) -> float:
    if not value:
        return default
    try:
        parsed = float(value)
    except ValueError:
        logger.warning("WIZARD_CLEAR_DELAY_SECONDS '%s' is not a number; using %s.", value, default)
        return default
    if parsed < 0:
        logger.warning("WIZARD_CLEAR_DELAY_SECONDS must not be negative; using %s.", default)
        return default
    return parsed


def _normalise_log_level(value: str) -> str:
    candidate = value.strip().upper()
    if not candidate:
        return DEFAULT_LOG_LEVEL
    if isinstance(logging.getLevelName(candidate), int):
        return candidate
    logger.warning("Unsupported WIZARD_LOG_LEVEL '%s'; using %s.", value, DEFAULT_LOG_LEVEL)
    return DEFAULT_LOG_LEVEL


def _parse_provider_list(value: str) -> tuple[str, ...]:
    if not value:
        return DEFAULT_DIRECTORY_SYNC_PROVIDERS
    providers = tuple(dict.fromkeys(part.strip() for part in value.split(",") if part.strip()))
    return providers or DEFAULT_DIRECTORY_SYNC_PROVIDERS


def get_settings() -> WizardSettings:
    """Resolve :class:`WizardSettings` from secrets and the environment."""

    secrets = _secrets_section()
    return WizardSettings(
        storage_backend=_normalise_backend(_lookup("WIZARD_STORAGE_BACKEND", secrets)),
        storage_dir=_lookup("WIZARD_STORAGE_DIR", secrets) or DEFAULT_STORAGE_DIR,
        clear_delay_seconds=_normalise_delay(_lookup("WIZARD_CLEAR_DELAY_SECONDS", secrets)),
        log_level=_normalise_log_level(_lookup("WIZARD_LOG_LEVEL", secrets)),
        directory_sync_providers=_parse_provider_list(_lookup("WIZARD_DIRECTORY_SYNC_PROVIDERS", secrets)),
    )


__all__ = [
    "DEFAULT_CLEAR_DELAY_SECONDS",
    "DEFAULT_DIRECTORY_SYNC_PROVIDERS",
    "DEFAULT_STORAGE_BACKEND",
    "DEFAULT_STORAGE_DIR",
    "STORAGE_BACKENDS",
    "WizardSettings",
    "get_settings",
]

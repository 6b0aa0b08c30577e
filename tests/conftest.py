from pathlib import Path
import sys
from dataclasses import dataclass
from types import SimpleNamespace

import streamlit as st

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import config
from state.autosave import PersistenceAdapter
from state.storage import MemoryStorage
from wizard.definition import WizardDefinition
from wizard.step_registry import StepSpec
from wizard.validation import is_blank


@dataclass
class _SessionDict(dict[str, object]):
    """Lightweight replacement for ``st.session_state`` during tests."""

    def clear(self) -> None:  # type: ignore[override]
        super().clear()


@pytest.fixture(autouse=True)
def _stub_streamlit_session_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Replace Streamlit's runtime-bound session state with a plain dictionary."""

    session_state = _SessionDict()
    monkeypatch.setattr(st, "session_state", session_state, raising=False)
    yield


@pytest.fixture(autouse=True)
def _isolate_wizard_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host secrets and ``WIZARD_*`` variables out of the tests."""

    monkeypatch.setattr(config, "st", SimpleNamespace(secrets={}), raising=False)
    for name in (
        "WIZARD_STORAGE_BACKEND",
        "WIZARD_STORAGE_DIR",
        "WIZARD_CLEAR_DELAY_SECONDS",
        "WIZARD_LOG_LEVEL",
        "WIZARD_DIRECTORY_SYNC_PROVIDERS",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def persistence(storage: MemoryStorage) -> PersistenceAdapter:
    return PersistenceAdapter(storage)


def _name_required(data):
    return {"name": "Name is required."} if is_blank(data.get("name")) else {}


@pytest.fixture
def linear_definition() -> WizardDefinition:
    """Three unconditional steps; ``step1`` needs a name."""

    return WizardDefinition(
        id="linear",
        initial_step="step1",
        defaults={"name": "", "email": "", "notes": ""},
        steps=(
            StepSpec(key="step1", label="Name", validator=_name_required),
            StepSpec(key="step2", label="Email", required_fields=("email",)),
            StepSpec(key="step3", label="Notes"),
        ),
    )


@pytest.fixture
def sync_definition() -> WizardDefinition:
    """``step2`` is only shown when the provider supports directory sync."""

    return WizardDefinition(
        id="sync",
        initial_step="step1",
        defaults={"providerSupportsSync": False},
        steps=(
            StepSpec(key="step1"),
            StepSpec(key="step2", is_visible=lambda data: data.get("providerSupportsSync") is True),
            StepSpec(key="step3"),
        ),
    )

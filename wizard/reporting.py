from __future__ import annotations

import logging
from typing import Protocol

from wizard.errors import WizardError

logger = logging.getLogger(__name__)


class ErrorReporter(Protocol):
    """Receives developer-facing diagnostics from the wizard engine."""

    def report(self, error: WizardError) -> None: ...


class LoggingErrorReporter:
    """Default reporter that writes diagnostics to the wizard logger."""

    def __init__(self, logger_: logging.Logger | None = None) -> None:
        self._logger = logger_ or logger

    def report(self, error: WizardError) -> None:
        self._logger.warning("%s: %s", type(error).__name__, error)


__all__ = ["ErrorReporter", "LoggingErrorReporter"]

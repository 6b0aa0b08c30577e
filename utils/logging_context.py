"""Per-wizard logging context.

Every record created after :func:`configure_logging` carries ``wizard_id``
and ``wizard_step`` attributes taken from context variables, so lines logged
anywhere inside a transition name the session and step they belong to.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import Iterator, Protocol

LOG_FORMAT = "%(asctime)s %(levelname)s [wizard=%(wizard_id)s step=%(wizard_step)s] %(name)s: %(message)s"
UNBOUND = "-"

_FIELDS: dict[str, contextvars.ContextVar[str]] = {
    "wizard_id": contextvars.ContextVar("wizard_id", default=UNBOUND),
    "wizard_step": contextvars.ContextVar("wizard_step", default=UNBOUND),
}
_factory_installed = False


class _BoundWizard(Protocol):
    @property
    def wizard_id(self) -> str: ...

    @property
    def current_step_id(self) -> str: ...


def _as_field(value: object) -> str:
    text = str(value).strip()
    return text or UNBOUND


def current_context() -> dict[str, str]:
    """Return the values that would be stamped on a record right now."""

    return {name: var.get() for name, var in _FIELDS.items()}


def _install_record_factory() -> None:
    global _factory_installed
    if _factory_installed:
        return
    base_factory = logging.getLogRecordFactory()

    def _stamped_record(*args: object, **kwargs: object) -> logging.LogRecord:
        record = base_factory(*args, **kwargs)
        for name, value in current_context().items():
            setattr(record, name, value)
        return record

    logging.setLogRecordFactory(_stamped_record)
    _factory_installed = True


def configure_logging(*, level: int | str = logging.INFO) -> None:
    """Stamp records with wizard context and give bare handlers the wizard format.

    ``level`` only applies when the root logger has no handlers yet; a host
    that configured logging itself keeps its own levels.
    """

    _install_record_factory()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
        return
    for handler in root.handlers:
        if handler.formatter is None:
            handler.setFormatter(logging.Formatter(LOG_FORMAT))


@contextmanager
def log_context(**fields: object) -> Iterator[None]:
    """Override ``wizard_id`` and/or ``wizard_step`` for the duration of the block.

    ``None`` values leave the enclosing binding untouched.
    """

    unknown = sorted(set(fields) - set(_FIELDS))
    if unknown:
        raise TypeError(f"Unknown logging context fields: {', '.join(unknown)}")
    tokens = [(_FIELDS[name], _FIELDS[name].set(_as_field(value))) for name, value in fields.items() if value is not None]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


@contextmanager
def bind_wizard(controller: _BoundWizard, step: object | None = None) -> Iterator[None]:
    """Bind ``controller``'s wizard id and ``step`` (default: its current step)."""

    bound_step = controller.current_step_id if step is None else step
    with log_context(wizard_id=controller.wizard_id, wizard_step=bound_step):
        yield


__all__ = [
    "LOG_FORMAT",
    "bind_wizard",
    "configure_logging",
    "current_context",
    "log_context",
]

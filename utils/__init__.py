"""Shared helpers for the wizard engine."""

from .logging_context import bind_wizard, configure_logging, current_context, log_context

__all__ = ["bind_wizard", "configure_logging", "current_context", "log_context"]

"""Observability module for logging."""

from headfetch.observability.logging import (
    bind_session_context,
    clear_session_context,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
)


__all__ = [
    "bind_session_context",
    "clear_session_context",
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
]

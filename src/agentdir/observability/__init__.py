"""Observability module for agentdir.

Structured logging via structlog, with JSON output for production and
colored console output for development.

Example:
    >>> from agentdir.observability import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("agentdir.probe.completed", domain="example.com", ok=True)
"""

from agentdir.observability.logging import (
    bind_context,
    configure_logging,
    get_logger,
    is_debug_mode,
    sanitize_for_logging,
    unbind_context,
)

__all__ = [
    "bind_context",
    "configure_logging",
    "get_logger",
    "is_debug_mode",
    "sanitize_for_logging",
    "unbind_context",
]

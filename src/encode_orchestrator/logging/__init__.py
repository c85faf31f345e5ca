"""Structured logging for the encode orchestrator.

Provides configurable logging with JSON format support and file rotation,
plus per-thread encode context for producer threads.
"""

from encode_orchestrator.logging.config import configure_logging, force_stderr_logging
from encode_orchestrator.logging.context import (
    EncodeContextFilter,
    clear_encode_context,
    encode_context,
    get_encode_context,
    set_encode_context,
)
from encode_orchestrator.logging.handlers import JSONFormatter

__all__ = [
    "EncodeContextFilter",
    "JSONFormatter",
    "clear_encode_context",
    "configure_logging",
    "encode_context",
    "force_stderr_logging",
    "get_encode_context",
    "set_encode_context",
]

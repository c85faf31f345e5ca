"""Encode context for structured logging.

Producer threads tag their log lines with the output and the stream they
feed. The values live in contextvars, so each thread carries its own.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_output: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "encode_output", default=None
)
_stream: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "encode_stream", default=None
)


def set_encode_context(output: str | None, stream: str | None = None) -> None:
    """Set the current encode context.

    Args:
        output: Output URL being written.
        stream: Stream being fed, e.g. "video" or "audio".
    """
    _output.set(output)
    _stream.set(stream)


def clear_encode_context() -> None:
    """Clear the current encode context."""
    _output.set(None)
    _stream.set(None)


def get_encode_context() -> tuple[str | None, str | None]:
    """Get current encode context as (output, stream)."""
    return _output.get(), _stream.get()


@contextmanager
def encode_context(
    output: str | None = None, stream: str | None = None
) -> Generator[None, None, None]:
    """Context manager for encode logging context.

    Sets the context on entry and restores the previous one on exit.

    Example:
        with encode_context("out.mkv", "video"):
            logger.info("Opened encoder")  # tagged [out.mkv:video]
    """
    old_output, old_stream = get_encode_context()
    try:
        set_encode_context(output, stream)
        yield
    finally:
        _output.set(old_output)
        _stream.set(old_stream)


class EncodeContextFilter(logging.Filter):
    """Logging filter that injects the encode context into log records.

    Adds encode_output and encode_stream for JSON output and a compact
    encode_tag like "[out.mkv:video] " for the text format.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        output, stream = get_encode_context()

        record.encode_output = output
        record.encode_stream = stream

        if output and stream:
            record.encode_tag = f"[{output}:{stream}] "
        elif output or stream:
            record.encode_tag = f"[{output or stream}] "
        else:
            record.encode_tag = ""

        return True

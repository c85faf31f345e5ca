"""Structured errors for encode sessions.

Construction errors are raised to the caller. Every later error is routed
through EncodeSession.fail(), which logs it once and tears the session down.
"""

from enum import Enum


class EncodeErrorKind(Enum):
    """Category of an encode session error."""

    FORMAT_NOT_FOUND = "format_not_found"
    NO_USABLE_CODEC = "no_usable_codec"
    EXPECTED_STREAM_MISSING = "expected_stream_missing"
    OUTPUT_OPEN_ERROR = "output_open_error"
    HEADER_WRITE_ERROR = "header_write_error"
    ENCODER_NOT_FOUND = "encoder_not_found"
    CODEC_OPEN_ERROR = "codec_open_error"
    INVALID_STREAM_TYPE = "invalid_stream_type"
    MISUSE = "misuse"
    GENERIC = "generic"


class EncodeError(Exception):
    """Error raised or logged by an encode session.

    Attributes:
        kind: Error category.
        message: Human-readable description.
    """

    def __init__(
        self, kind: EncodeErrorKind, message: str
    ) -> None:
        self.kind = kind
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message

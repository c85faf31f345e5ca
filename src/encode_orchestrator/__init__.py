"""Encode Orchestrator - multiplex encoded video and audio into one container."""

from encode_orchestrator.config.models import EncodeOptions
from encode_orchestrator.errors import EncodeError, EncodeErrorKind
from encode_orchestrator.models import EncodedPacket, HeaderState, MediaType
from encode_orchestrator.session import EncodeSession

__version__ = "0.1.0"

__all__ = [
    "EncodeError",
    "EncodeErrorKind",
    "EncodeOptions",
    "EncodeSession",
    "EncodedPacket",
    "HeaderState",
    "MediaType",
    "__version__",
]

"""Container/codec library backends.

- interface: MuxerBackend / ContainerWriter protocols and descriptors
- pyav: production backend over PyAV
- stub: pure-Python backend for development and testing
"""

from encode_orchestrator.backend.interface import (
    BackendError,
    CodecHandle,
    ContainerWriter,
    EncoderInfo,
    MuxerBackend,
    OutputFormat,
    PacketLike,
    StreamHandle,
)
from encode_orchestrator.backend.stub import StubBackend

BACKEND_NAMES = ("pyav", "stub")


def get_backend(name: str = "pyav") -> MuxerBackend:
    """Create a backend by name.

    Args:
        name: "pyav" or "stub".

    Returns:
        New backend instance.

    Raises:
        ValueError: If the name is unknown.
    """
    if name == "stub":
        return StubBackend()
    if name == "pyav":
        from encode_orchestrator.backend.pyav import PyAVBackend

        return PyAVBackend()
    raise ValueError(f"unknown backend '{name}', expected one of {BACKEND_NAMES}")


__all__ = [
    "BACKEND_NAMES",
    "BackendError",
    "CodecHandle",
    "ContainerWriter",
    "EncoderInfo",
    "MuxerBackend",
    "OutputFormat",
    "PacketLike",
    "StreamHandle",
    "StubBackend",
    "get_backend",
]

"""Value types shared across the encode orchestrator."""

from dataclasses import dataclass
from enum import Enum


class MediaType(Enum):
    """Media type of an elementary stream."""

    VIDEO = "video"
    AUDIO = "audio"
    UNKNOWN = "unknown"


class HeaderState(Enum):
    """Lifecycle of the container header.

    Transitions only NOT_STARTED -> START_FAILED or NOT_STARTED -> STARTED.
    START_FAILED is also the tentative state while the header is being
    written, so a failure anywhere in start() leaves it terminal.
    """

    NOT_STARTED = "not_started"
    START_FAILED = "start_failed"
    STARTED = "started"


@dataclass
class EncodedPacket:
    """An encoded packet produced outside a native codec library.

    Backends that wrap a real library hand out their own packet objects;
    anything with stream_index, size, pts, dts and duration attributes
    can be passed to EncodeSession.write_frame().
    """

    stream_index: int
    data: bytes = b""
    pts: int | None = None
    dts: int | None = None
    duration: int = 0

    @property
    def size(self) -> int:
        """Payload size in bytes."""
        return len(self.data)

"""Contract between the encode session and a container/codec library.

The session never touches a native library directly. A MuxerBackend
resolves formats and encoders and creates a ContainerWriter, which owns the
output I/O handle, the container-level streams and the codec contexts it
hands out.

Failures are reported by raising BackendError with a negative status code.
Calls that take an OptionDictionary remove the keys they consumed, so the
caller can warn about whatever is left.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Protocol

from encode_orchestrator.dictionary import OptionDictionary
from encode_orchestrator.models import MediaType

# Generic failure code used when the library does not provide one.
ERROR_GENERIC = -1


class BackendError(Exception):
    """Raised when the container/codec library reports a failure."""

    def __init__(self, message: str, code: int = ERROR_GENERIC) -> None:
        self.message = message
        self.code = code if code < 0 else ERROR_GENERIC
        super().__init__(message)


@dataclass(frozen=True)
class OutputFormat:
    """Capabilities of a container format (muxer)."""

    name: str
    long_name: str = ""
    default_video_codec: str | None = None
    default_audio_codec: str | None = None
    needs_file: bool = True
    global_header: bool = False
    extensions: tuple[str, ...] = ()


@dataclass(frozen=True)
class EncoderInfo:
    """Capabilities of an encoder.

    frame_rates, pixel_formats and sample_formats are None when the
    encoder accepts any value.
    """

    name: str
    media_type: MediaType
    long_name: str = ""
    experimental: bool = False
    frame_rates: tuple[Fraction, ...] | None = None
    pixel_formats: tuple[str, ...] | None = None
    sample_formats: tuple[str, ...] | None = None


class StreamHandle(Protocol):
    """Container-level stream. Owned by its ContainerWriter."""

    index: int
    media_type: MediaType
    time_base: Fraction | None


class CodecHandle(Protocol):
    """Codec context bound to one encoder.

    Producers configure it (dimensions, formats, rates) before the session
    opens it, and encode through it afterwards.
    """

    encoder: EncoderInfo
    time_base: Fraction | None
    strict_std_compliance: str
    colorspace: str
    color_range: str
    stats_in: str | None

    @property
    def media_type(self) -> MediaType: ...

    @property
    def stats_out(self) -> str | None:
        """Statistics emitted by the last encode call (pass 1)."""
        ...

    def close(self) -> None:
        """Release the codec context. Idempotent."""
        ...


class PacketLike(Protocol):
    """Encoded packet accepted by ContainerWriter.write_interleaved()."""

    stream_index: int
    size: int
    pts: int | None
    dts: int | None
    duration: int | None


class ContainerWriter(Protocol):
    """Muxer context for one output URL."""

    url: str
    format: OutputFormat
    metadata: dict[str, str]
    max_delay: float
    streams: list[Any]

    @property
    def io_opened(self) -> bool: ...

    def new_stream(self) -> StreamHandle:
        """Append an untyped stream; its type is fixed when a codec opens."""
        ...

    def new_codec_context(self, encoder: EncoderInfo) -> CodecHandle:
        """Allocate a codec context for an encoder."""
        ...

    def open_codec(
        self, stream: StreamHandle, codec: CodecHandle, options: OptionDictionary
    ) -> None:
        """Open a codec context and copy its parameters onto a stream."""
        ...

    def open_io(self) -> None:
        """Open the output URL for writing.

        Raises:
            OSError: If the destination cannot be opened.
            BackendError: If the library rejects the URL.
        """
        ...

    def io_size(self) -> int | None:
        """Bytes written to the output so far, or None if no I/O is open."""
        ...

    def write_header(self, options: OptionDictionary) -> None: ...

    def write_interleaved(self, packet: PacketLike) -> int:
        """Write one packet, interleaving across streams.

        Returns:
            Non-negative status code.
        """
        ...

    def write_trailer(self) -> None: ...

    def close_io(self) -> None: ...

    def release_streams(self) -> None: ...

    def release(self) -> None: ...


class MuxerBackend(Protocol):
    """Format/encoder registry of a container/codec library."""

    name: str

    def guess_format(self, name: str | None, filename: str) -> OutputFormat | None:
        """Resolve a format by short name, or guess it from the filename."""
        ...

    def find_encoder(self, name: str) -> EncoderInfo | None: ...

    def default_encoder(
        self, fmt: OutputFormat, filename: str, media_type: MediaType
    ) -> EncoderInfo | None:
        """Encoder the format uses by default for a media type."""
        ...

    def create_writer(self, fmt: OutputFormat, url: str) -> ContainerWriter: ...

    def iter_formats(self) -> Iterator[OutputFormat]: ...

    def iter_encoders(
        self, media_type: MediaType | None = None
    ) -> Iterator[EncoderInfo]: ...

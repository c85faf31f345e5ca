"""Stub implementation of MuxerBackend for development and testing.

The stub knows a fixed table of common formats and encoders, writes a
simple framed byte layout instead of a real container, and can be told to
fail at specific steps. It behaves like a real library where the session
depends on it: option keys it does not know are left in the dictionary,
two-pass flags are honored, and stats_out is produced per encoded frame.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from dataclasses import dataclass, field
from fractions import Fraction
from pathlib import Path
from typing import BinaryIO

from encode_orchestrator.backend.interface import (
    BackendError,
    EncoderInfo,
    OutputFormat,
    PacketLike,
)
from encode_orchestrator.dictionary import OptionDictionary
from encode_orchestrator.models import EncodedPacket, MediaType
from encode_orchestrator.option_parsing import value_has_flag

logger = logging.getLogger(__name__)

MPEG_FRAME_RATES = (
    Fraction(24000, 1001),
    Fraction(24),
    Fraction(25),
    Fraction(30000, 1001),
    Fraction(30),
    Fraction(50),
    Fraction(60000, 1001),
    Fraction(60),
)

STUB_FORMATS: tuple[OutputFormat, ...] = (
    OutputFormat(
        "matroska", "Matroska", "libx264", "aac", extensions=("mkv", "mka")
    ),
    OutputFormat(
        "mp4", "MP4 (MPEG-4 Part 14)", "libx264", "aac",
        global_header=True, extensions=("mp4", "m4v", "m4a"),
    ),
    OutputFormat(
        "webm", "WebM", "libvpx-vp9", "libopus",
        global_header=True, extensions=("webm",),
    ),
    OutputFormat("avi", "AVI (Audio Video Interleaved)", "mpeg4", "libmp3lame",
                 extensions=("avi",)),
    OutputFormat("nut", "NUT", "mpeg4", "pcm_s16le", extensions=("nut",)),
    OutputFormat("mpeg", "MPEG-1 Systems / MPEG program stream", "mpeg1video",
                 "mp2", extensions=("mpg", "mpeg")),
    OutputFormat("wav", "WAV / WAVE (Waveform Audio)", None, "pcm_s16le",
                 extensions=("wav",)),
    OutputFormat("mp3", "MP3 (MPEG audio layer 3)", None, "libmp3lame",
                 extensions=("mp3",)),
    OutputFormat("null", "raw null video", "rawvideo", "pcm_s16le",
                 needs_file=False),
)

_YUV = ("yuv420p", "yuv422p", "yuv444p")

STUB_ENCODERS: tuple[EncoderInfo, ...] = (
    EncoderInfo("libx264", MediaType.VIDEO, "libx264 H.264 / AVC",
                pixel_formats=_YUV + ("nv12",)),
    EncoderInfo("mpeg4", MediaType.VIDEO, "MPEG-4 part 2", pixel_formats=("yuv420p",)),
    EncoderInfo("mpeg1video", MediaType.VIDEO, "MPEG-1 video",
                frame_rates=MPEG_FRAME_RATES, pixel_formats=("yuv420p",)),
    EncoderInfo("libvpx-vp9", MediaType.VIDEO, "libvpx VP9", pixel_formats=_YUV),
    EncoderInfo("ffv1", MediaType.VIDEO, "FFmpeg video codec #1"),
    EncoderInfo("rawvideo", MediaType.VIDEO, "raw video"),
    EncoderInfo("aac", MediaType.AUDIO, "AAC (Advanced Audio Coding)",
                sample_formats=("fltp",)),
    EncoderInfo("libopus", MediaType.AUDIO, "libopus Opus",
                sample_formats=("s16", "flt")),
    EncoderInfo("opus", MediaType.AUDIO, "Opus", experimental=True,
                sample_formats=("flt", "fltp")),
    EncoderInfo("vorbis", MediaType.AUDIO, "Vorbis", experimental=True,
                sample_formats=("fltp",)),
    EncoderInfo("libmp3lame", MediaType.AUDIO, "libmp3lame MP3",
                sample_formats=("s32p", "fltp", "s16p")),
    EncoderInfo("mp2", MediaType.AUDIO, "MP2 (MPEG audio layer 2)",
                sample_formats=("s16",)),
    EncoderInfo("pcm_s16le", MediaType.AUDIO, "PCM signed 16-bit little-endian",
                sample_formats=("s16",)),
    EncoderInfo("flac", MediaType.AUDIO, "FLAC (Free Lossless Audio Codec)",
                sample_formats=("s16", "s32")),
)

# Option keys the stub library consumes; anything else is reported unknown.
CODEC_OPTION_KEYS = frozenset(
    {
        "b", "bf", "crf", "flags", "g", "global_quality", "maxrate", "minrate",
        "bufsize", "preset", "profile", "q", "qmax", "qmin", "strict", "threads",
        "tune", "ar", "ac", "compression_level",
    }
)
FORMAT_OPTION_KEYS = frozenset(
    {"movflags", "fflags", "max_interleave_delta", "write_crc32", "cluster_size_limit"}
)

HEADER_MAGIC = b"STUBMUX1"


@dataclass
class StubStream:
    """Container-level stream of the stub writer."""

    index: int
    media_type: MediaType = MediaType.UNKNOWN
    time_base: Fraction | None = None
    codec_name: str | None = None


@dataclass
class StubCodecContext:
    """Codec context of the stub library.

    Encoding produces deterministic payloads; with the pass1 flag each
    encoded frame leaves a statistics line in stats_out.
    """

    encoder: EncoderInfo
    time_base: Fraction | None = None
    strict_std_compliance: str = "normal"
    colorspace: str = "unknown"
    color_range: str = "unknown"
    stats_in: str | None = None
    stats_out: str | None = None
    width: int = 0
    height: int = 0
    pixel_format: str | None = None
    sample_rate: int = 0
    channels: int = 0
    sample_format: str | None = None
    frame_size: int = 1024
    flags: str = ""
    applied_options: dict[str, str] = field(default_factory=dict)
    stream: StubStream | None = None
    opened: bool = False
    closed: bool = False
    frames_encoded: int = 0

    @property
    def media_type(self) -> MediaType:
        return self.encoder.media_type

    def setup_video(self, width: int, height: int, pixel_format: str) -> None:
        self.width = width
        self.height = height
        self.pixel_format = pixel_format

    def setup_audio(self, sample_rate: int, channels: int, sample_format: str) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.sample_format = sample_format

    def encode_test_frame(self, index: int) -> list[PacketLike]:
        """Encode one synthetic frame (video) or frame_size samples (audio)."""
        if not self.opened or self.stream is None:
            raise BackendError(f"{self.encoder.name}: codec is not open")
        if self.media_type is MediaType.VIDEO:
            size = max(1, self.width * self.height // 64)
            duration = 1
        else:
            size = self.frame_size * max(1, self.channels) * 2
            duration = self._samples_to_ticks(self.frame_size)
        self.frames_encoded += 1
        if value_has_flag(self.flags, "pass1"):
            self.stats_out = f"in:{index} out:{index} size:{size};\n"
        else:
            self.stats_out = None
        pts = index * duration
        packet = EncodedPacket(
            stream_index=self.stream.index,
            data=bytes([index % 256]) * size,
            pts=pts,
            dts=pts,
            duration=duration,
        )
        return [packet]

    def flush(self) -> list[PacketLike]:
        """Drain the encoder; leaves the final statistics in stats_out."""
        if value_has_flag(self.flags, "pass1"):
            self.stats_out = f"#frames:{self.frames_encoded}\n"
        return []

    def close(self) -> None:
        self.opened = False
        self.closed = True

    def _samples_to_ticks(self, samples: int) -> int:
        if not self.time_base or not self.sample_rate:
            return samples
        return max(1, round(Fraction(samples, self.sample_rate) / self.time_base))


@dataclass
class StubBackend:
    """In-memory MuxerBackend.

    Attributes:
        fail_open_io: Raise OSError from open_io().
        fail_header: Raise BackendError from write_header().
        fail_trailer: Raise BackendError from write_trailer().
        fail_codec_open: Encoder names whose open_codec() fails.
        write_result: Status returned by write_interleaved(); negative
            values are returned without writing.
        events: Names of writer operations performed, in order.
    """

    name: str = "stub"
    formats: tuple[OutputFormat, ...] = STUB_FORMATS
    encoders: tuple[EncoderInfo, ...] = STUB_ENCODERS
    fail_open_io: bool = False
    fail_header: bool = False
    fail_trailer: bool = False
    fail_codec_open: frozenset[str] = frozenset()
    write_result: int = 0
    events: list[str] = field(default_factory=list)
    writers: list[StubContainerWriter] = field(default_factory=list)

    def guess_format(self, name: str | None, filename: str) -> OutputFormat | None:
        if name:
            for fmt in self.formats:
                if fmt.name == name:
                    return fmt
            return None
        extension = Path(filename).suffix.lstrip(".").lower()
        if not extension:
            return None
        for fmt in self.formats:
            if extension in fmt.extensions:
                return fmt
        return None

    def find_encoder(self, name: str) -> EncoderInfo | None:
        for encoder in self.encoders:
            if encoder.name == name:
                return encoder
        return None

    def default_encoder(
        self, fmt: OutputFormat, filename: str, media_type: MediaType
    ) -> EncoderInfo | None:
        if media_type is MediaType.VIDEO:
            name = fmt.default_video_codec
        elif media_type is MediaType.AUDIO:
            name = fmt.default_audio_codec
        else:
            name = None
        return self.find_encoder(name) if name else None

    def create_writer(self, fmt: OutputFormat, url: str) -> StubContainerWriter:
        writer = StubContainerWriter(self, fmt, url)
        self.writers.append(writer)
        return writer

    def iter_formats(self) -> Iterator[OutputFormat]:
        return iter(self.formats)

    def iter_encoders(
        self, media_type: MediaType | None = None
    ) -> Iterator[EncoderInfo]:
        for encoder in self.encoders:
            if media_type is None or encoder.media_type is media_type:
                yield encoder


class StubContainerWriter:
    """ContainerWriter producing a framed byte layout.

    Layout: magic, format name and metadata lines, then one record per
    packet (stream index byte + payload), then a trailer line.
    """

    def __init__(self, backend: StubBackend, fmt: OutputFormat, url: str) -> None:
        self.backend = backend
        self.format = fmt
        self.url = url
        self.metadata: dict[str, str] = {}
        self.max_delay = 0.0
        self.streams: list[StubStream] = []
        self.header_options: dict[str, str] = {}
        self.header_written = False
        self.trailer_written = False
        self.released = False
        self.packets_written = 0
        self._io: BinaryIO | None = None
        self._owns_io = False
        self._bytes = 0

    @property
    def io_opened(self) -> bool:
        return self._io is not None

    def _event(self, name: str) -> None:
        self.backend.events.append(name)

    def new_stream(self) -> StubStream:
        stream = StubStream(index=len(self.streams))
        self.streams.append(stream)
        self._event(f"new_stream:{stream.index}")
        return stream

    def new_codec_context(self, encoder: EncoderInfo) -> StubCodecContext:
        self._event(f"new_codec:{encoder.name}")
        return StubCodecContext(encoder=encoder)

    def open_codec(
        self,
        stream: StubStream,
        codec: StubCodecContext,
        options: OptionDictionary,
    ) -> None:
        self._event(f"open_codec:{codec.encoder.name}")
        if codec.encoder.name in self.backend.fail_codec_open:
            raise BackendError(f"{codec.encoder.name}: could not open encoder", -22)
        if codec.encoder.experimental and codec.strict_std_compliance != "experimental":
            raise BackendError(
                f"{codec.encoder.name} is experimental, strict compliance required",
                -22,
            )
        for key in [k for k in options if k in CODEC_OPTION_KEYS]:
            codec.applied_options[key] = options.pop(key) or ""
        codec.flags = codec.applied_options.get("flags", "")
        if value_has_flag(codec.flags, "pass2") and not codec.stats_in:
            raise BackendError(
                f"{codec.encoder.name}: pass 2 requested without statistics", -22
            )
        codec.opened = True
        codec.stream = stream
        stream.media_type = codec.media_type
        stream.codec_name = codec.encoder.name

    def open_io(self) -> None:
        self._event("open_io")
        if self.backend.fail_open_io:
            raise OSError(f"could not open '{self.url}'")
        if self.url in ("pipe:", "pipe:1"):
            self._io = sys.stdout.buffer
        else:
            self._io = open(self.url, "wb")  # noqa: SIM115
            self._owns_io = True

    def io_size(self) -> int | None:
        return self._bytes if self._io is not None else None

    def _write(self, data: bytes) -> None:
        if self._io is not None:
            self._io.write(data)
            self._bytes += len(data)

    def write_header(self, options: OptionDictionary) -> None:
        self._event("write_header")
        if self.backend.fail_header:
            raise BackendError("could not write header", -5)
        for key in [k for k in options if k in FORMAT_OPTION_KEYS]:
            self.header_options[key] = options.pop(key) or ""
        lines = [HEADER_MAGIC, self.format.name.encode()]
        lines.extend(f"{k}={v}".encode() for k, v in self.metadata.items())
        self._write(b"\n".join(lines) + b"\n\n")
        self.header_written = True

    def write_interleaved(self, packet: PacketLike) -> int:
        self._event(f"write:{packet.stream_index}")
        if self.backend.write_result < 0:
            return self.backend.write_result
        if not self.header_written:
            raise BackendError("header not written", -22)
        if not 0 <= packet.stream_index < len(self.streams):
            raise BackendError(f"invalid stream index {packet.stream_index}", -22)
        data = getattr(packet, "data", b"")
        self._write(bytes([packet.stream_index]) + bytes(data))
        self.packets_written += 1
        return self.backend.write_result

    def write_trailer(self) -> None:
        self._event("write_trailer")
        if self.backend.fail_trailer:
            raise BackendError("could not write trailer", -5)
        self._write(b"\nEND\n")
        self.trailer_written = True

    def close_io(self) -> None:
        self._event("close_io")
        if self._io is not None:
            if self._owns_io:
                self._io.close()
            else:
                self._io.flush()
            self._io = None

    def release_streams(self) -> None:
        self._event("release_streams")
        self.streams.clear()

    def release(self) -> None:
        self._event("release")
        self.released = True

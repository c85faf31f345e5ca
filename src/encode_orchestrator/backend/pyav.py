"""MuxerBackend implementation over PyAV.

PyAV cannot create an untyped container stream, so the writer hands out
stream reservations and materializes the PyAV streams in index order when
the header is written. Codec settings made before that point are recorded
on the codec handle and applied when its stream is created; the library
opens the encoders as part of writing the header.

Two-pass statistics are not exposed by PyAV. stats_out is always None and
a stats_in replay is logged and ignored.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from fractions import Fraction

import av
from av.error import FFmpegError

from encode_orchestrator.backend.interface import (
    BackendError,
    EncoderInfo,
    OutputFormat,
    PacketLike,
)
from encode_orchestrator.dictionary import OptionDictionary
from encode_orchestrator.models import MediaType

logger = logging.getLogger(__name__)

# libavformat / libavcodec flag bits.
AVFMT_NOFILE = 0x0001
AVFMT_GLOBALHEADER = 0x0040
AV_CODEC_CAP_EXPERIMENTAL = 1 << 9

# Default encoders per format, most preferred first. PyAV does not expose the
# muxer's default codec ids, so the usual libavformat choices are listed here.
DEFAULT_CODECS: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "matroska": (("libx264", "mpeg4"), ("libvorbis", "ac3")),
    "webm": (("libvpx-vp9", "libvpx"), ("libopus", "libvorbis")),
    "mp4": (("libx264", "mpeg4"), ("aac",)),
    "mov": (("libx264", "mpeg4"), ("aac",)),
    "avi": (("mpeg4",), ("libmp3lame", "ac3")),
    "nut": (("mpeg4",), ("libvorbis", "mp2")),
    "ogg": (("libtheora",), ("libvorbis", "flac")),
    "mpeg": (("mpeg1video",), ("mp2",)),
    "mpegts": (("mpeg2video",), ("mp2",)),
    "flv": (("flv",), ("libmp3lame", "adpcm_swf")),
    "wav": ((), ("pcm_s16le",)),
    "mp3": ((), ("libmp3lame",)),
    "flac": ((), ("flac",)),
    "null": (("rawvideo",), ("pcm_s16le",)),
}

_PYAV_TYPES = {"video": MediaType.VIDEO, "audio": MediaType.AUDIO}


def _format_info(container_format: av.format.ContainerFormat) -> OutputFormat:
    video, audio = DEFAULT_CODECS.get(container_format.name, ((), ()))
    flags = container_format.flags
    return OutputFormat(
        name=container_format.name,
        long_name=container_format.long_name or "",
        default_video_codec=_first_available(video),
        default_audio_codec=_first_available(audio),
        needs_file=not flags & AVFMT_NOFILE,
        global_header=bool(flags & AVFMT_GLOBALHEADER),
        extensions=tuple(sorted(container_format.extensions or ())),
    )


def _first_available(names: tuple[str, ...]) -> str | None:
    for name in names:
        if name in av.codecs_available:
            return name
    return None


def _encoder_info(codec: av.Codec) -> EncoderInfo | None:
    media_type = _PYAV_TYPES.get(codec.type)
    if media_type is None:
        return None
    frame_rates = codec.frame_rates
    video_formats = codec.video_formats
    audio_formats = codec.audio_formats
    return EncoderInfo(
        name=codec.name,
        media_type=media_type,
        long_name=codec.long_name or "",
        experimental=bool(codec.capabilities & AV_CODEC_CAP_EXPERIMENTAL),
        frame_rates=tuple(Fraction(r) for r in frame_rates) if frame_rates else None,
        pixel_formats=(
            tuple(f.name for f in video_formats) if video_formats else None
        ),
        sample_formats=(
            tuple(f.name for f in audio_formats) if audio_formats else None
        ),
    )


@dataclass
class PyAVStream:
    """Reserved container stream, bound to a PyAV stream at header time."""

    index: int
    media_type: MediaType = MediaType.UNKNOWN
    time_base: Fraction | None = None
    codec: PyAVCodec | None = None
    av_stream: av.stream.Stream | None = None


@dataclass
class PyAVCodec:
    """Codec handle recording settings until its PyAV stream exists."""

    encoder: EncoderInfo
    time_base: Fraction | None = None
    strict_std_compliance: str = "normal"
    colorspace: str = "unknown"
    color_range: str = "unknown"
    stats_in: str | None = None
    options: dict[str, str] = field(default_factory=dict)
    width: int = 0
    height: int = 0
    pixel_format: str | None = None
    sample_rate: int = 0
    channels: int = 0
    sample_format: str | None = None
    av_stream: av.stream.Stream | None = None
    closed: bool = False

    @property
    def media_type(self) -> MediaType:
        return self.encoder.media_type

    @property
    def stats_out(self) -> str | None:
        return None

    @property
    def frame_size(self) -> int:
        """Samples per audio frame, known once the encoder is open."""
        if self.av_stream is None:
            return 1024
        return self.av_stream.codec_context.frame_size or 1024

    def setup_video(self, width: int, height: int, pixel_format: str) -> None:
        self.width = width
        self.height = height
        self.pixel_format = pixel_format

    def setup_audio(self, sample_rate: int, channels: int, sample_format: str) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.sample_format = sample_format

    def materialize(self, container: av.container.OutputContainer) -> av.stream.Stream:
        """Create the PyAV stream for this codec and apply recorded settings."""
        options = dict(self.options)
        if self.strict_std_compliance != "normal":
            options["strict"] = self.strict_std_compliance
        if self.colorspace != "unknown":
            options["colorspace"] = self.colorspace
        if self.color_range != "unknown":
            options["color_range"] = self.color_range
        if self.stats_in:
            logger.warning(
                "%s: two-pass statistics replay is not supported by PyAV, ignoring",
                self.encoder.name,
            )

        stream = container.add_stream(self.encoder.name, options=options)
        ctx = stream.codec_context
        if self.media_type is MediaType.VIDEO:
            ctx.width = self.width
            ctx.height = self.height
            if self.pixel_format:
                ctx.pix_fmt = self.pixel_format
            if self.time_base:
                ctx.framerate = 1 / self.time_base
        else:
            ctx.sample_rate = self.sample_rate
            ctx.layout = "stereo" if self.channels == 2 else "mono"
            if self.sample_format:
                ctx.format = self.sample_format
        if self.time_base:
            ctx.time_base = self.time_base
            stream.time_base = self.time_base
        self.av_stream = stream
        return stream

    def encode_test_frame(self, index: int) -> list[PacketLike]:
        """Encode a synthetic gray frame or a block of silence."""
        if self.av_stream is None:
            raise BackendError(f"{self.encoder.name}: codec is not open")
        ctx = self.av_stream.codec_context
        if self.media_type is MediaType.VIDEO:
            frame = av.VideoFrame(ctx.width, ctx.height, ctx.pix_fmt)
            for plane in frame.planes:
                plane.update(bytes([(index * 4) % 256]) * plane.buffer_size)
            frame.pts = index
        else:
            samples = ctx.frame_size or 1024
            frame = av.AudioFrame(
                format=ctx.format.name, layout=ctx.layout.name, samples=samples
            )
            for plane in frame.planes:
                plane.update(bytes(plane.buffer_size))
            frame.sample_rate = ctx.sample_rate
            frame.time_base = ctx.time_base
            frame.pts = round(Fraction(index * samples, ctx.sample_rate) / ctx.time_base)
        try:
            return list(self.av_stream.encode(frame))
        except FFmpegError as e:
            raise BackendError(str(e), -(e.errno or 1)) from e

    def flush(self) -> list[PacketLike]:
        if self.av_stream is None:
            return []
        try:
            return list(self.av_stream.encode(None))
        except FFmpegError as e:
            raise BackendError(str(e), -(e.errno or 1)) from e

    def close(self) -> None:
        self.closed = True


class PyAVContainerWriter:
    """ContainerWriter over av.container.OutputContainer."""

    def __init__(self, fmt: OutputFormat, url: str) -> None:
        self.format = fmt
        self.url = url
        self.metadata: dict[str, str] = {}
        self.max_delay = 0.0
        self.streams: list[PyAVStream] = []
        self._container: av.container.OutputContainer | None = None

    @property
    def io_opened(self) -> bool:
        return self._container is not None

    def new_stream(self) -> PyAVStream:
        stream = PyAVStream(index=len(self.streams))
        self.streams.append(stream)
        return stream

    def new_codec_context(self, encoder: EncoderInfo) -> PyAVCodec:
        return PyAVCodec(encoder=encoder)

    def open_codec(
        self, stream: PyAVStream, codec: PyAVCodec, options: OptionDictionary
    ) -> None:
        # The library opens the encoder while writing the header; everything
        # in the dictionary is forwarded and counts as consumed here.
        codec.options.update(options.to_dict())
        options.clear()
        stream.codec = codec
        stream.media_type = codec.media_type

    def _open_container(self) -> av.container.OutputContainer:
        if self._container is None:
            try:
                self._container = av.open(self.url, mode="w", format=self.format.name)
            except FFmpegError as e:
                raise BackendError(str(e), -(e.errno or 1)) from e
        return self._container

    def open_io(self) -> None:
        self._open_container()

    def io_size(self) -> int | None:
        if not self.io_opened or not self.format.needs_file:
            return None
        if self.url.startswith("pipe:"):
            return None
        try:
            return os.path.getsize(self.url)
        except OSError:
            return None

    def write_header(self, options: OptionDictionary) -> None:
        container = self._open_container()
        container.metadata.update(self.metadata)
        container.options.update(options.to_dict())
        container.options.setdefault("max_delay", str(int(self.max_delay * 1_000_000)))
        # PyAV logs header options the muxer did not use.
        options.clear()
        for reserved in self.streams:
            if reserved.codec is None:
                raise BackendError(
                    f"stream #{reserved.index} was reserved but never configured"
                )
        try:
            for reserved in self.streams:
                reserved.av_stream = reserved.codec.materialize(container)
            container.start_encoding()
        except (FFmpegError, ValueError) as e:
            raise BackendError(str(e), -(getattr(e, "errno", None) or 1)) from e

    def write_interleaved(self, packet: PacketLike) -> int:
        if self._container is None:
            raise BackendError("container is not open")
        try:
            self._container.mux(packet)
        except FFmpegError as e:
            return -(e.errno or 1)
        return 0

    def write_trailer(self) -> None:
        # OutputContainer.close() writes the trailer once encoding started,
        # so the trailer goes out in close_io().
        if self._container is None:
            raise BackendError("container is not open")

    def close_io(self) -> None:
        if self._container is not None:
            container, self._container = self._container, None
            try:
                container.close()
            except FFmpegError as e:
                raise BackendError(str(e), -(e.errno or 1)) from e

    def release_streams(self) -> None:
        for reserved in self.streams:
            reserved.av_stream = None
        self.streams.clear()

    def release(self) -> None:
        self._container = None


class PyAVBackend:
    """MuxerBackend backed by the FFmpeg libraries bundled with PyAV."""

    name = "pyav"

    def guess_format(self, name: str | None, filename: str) -> OutputFormat | None:
        if name:
            try:
                return _format_info(av.format.ContainerFormat(name, "w"))
            except ValueError:
                return None
        extension = os.path.splitext(filename)[1].lstrip(".").lower()
        if not extension:
            return None
        for fmt in self.iter_formats():
            if extension in fmt.extensions:
                return fmt
        return None

    def find_encoder(self, name: str) -> EncoderInfo | None:
        try:
            codec = av.Codec(name, "w")
        except ValueError:
            return None
        return _encoder_info(codec)

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

    def create_writer(self, fmt: OutputFormat, url: str) -> PyAVContainerWriter:
        return PyAVContainerWriter(fmt, url)

    def iter_formats(self) -> Iterator[OutputFormat]:
        for name in sorted(av.formats_available):
            try:
                container_format = av.format.ContainerFormat(name, "w")
            except ValueError:
                continue
            yield _format_info(container_format)

    def iter_encoders(
        self, media_type: MediaType | None = None
    ) -> Iterator[EncoderInfo]:
        for name in sorted(av.codecs_available):
            try:
                codec = av.Codec(name, "w")
            except ValueError:
                continue
            info = _encoder_info(codec)
            if info is None:
                continue
            if media_type is None or info.media_type is media_type:
                yield info

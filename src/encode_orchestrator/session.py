"""Encode session: lifecycle of one output container.

An EncodeSession owns the container writer for a single output and the
(at most) two stream slots feeding it, one for video and one for audio.
It negotiates the shared timebase, writes the header exactly once, wires
two-pass statistics files to the encoders and latches failure.

Threading contract:
    Construction, alloc_stream(), open_codec(), start(), finish() and
    free() must be serialized by the caller (normally one control thread).
    Afterwards one video and one audio producer thread may call
    write_frame(), write_stats() and the hint methods concurrently.
    The session lock only protects the cross-thread fields: timing
    bookkeeping, the reported frame rate, the expect flags, the failed
    flag and the status counters. Per-stream state is never shared
    between the two slots, apart from the timebase which is written once
    before any producer runs.

Once the session failed or finished, every operation logs
"Called a function on a <failed|finished> encoding context. Bailing out."
and returns a neutral value without side effects.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from fractions import Fraction
from typing import Any

from encode_orchestrator.backend import get_backend
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
from encode_orchestrator.colorspace import ColorRange, ColorSpace
from encode_orchestrator.config.models import EncodeOptions
from encode_orchestrator.dictionary import OptionDictionary
from encode_orchestrator.errors import EncodeError, EncodeErrorKind
from encode_orchestrator.logging import force_stderr_logging
from encode_orchestrator.metadata import build_metadata
from encode_orchestrator.models import HeaderState, MediaType
from encode_orchestrator.option_parsing import (
    FLAGS_KEY,
    GLOBAL_QUALITY_KEY,
    apply_option_strings,
    set_option,
    value_has_flag,
)
from encode_orchestrator.stats import MAX_STATS_BYTES, StatsChannel, stats_log_path
from encode_orchestrator.status import EncodeStatus, compute_status

logger = logging.getLogger(__name__)

STDOUT_URL = "pipe:1"
STDOUT_NAMES = frozenset({"-", "/dev/stdout", "pipe:", "pipe:1"})

# Interleaving delay handed to the muxer, in seconds.
MAX_DELAY_SECONDS = 0.7

# Frame rate used for the shared timebase when nothing better is known.
DEFAULT_FRAME_RATE = Fraction(24000, 1)

VIDEO_PREFIX = "vo-lavc"
AUDIO_PREFIX = "ao-lavc"

_PREFIXES = {MediaType.VIDEO: VIDEO_PREFIX, MediaType.AUDIO: AUDIO_PREFIX}
_OPTION_LABELS = {MediaType.VIDEO: "video_options", MediaType.AUDIO: "audio_options"}


@dataclass
class StreamSlot:
    """One container stream paired with its codec context.

    The container stream is owned by the writer. The codec context and the
    stats channel are owned by the slot and released in finish(). A slot
    with codec None is a placeholder reserving a stream index.
    """

    media_type: MediaType
    stream: StreamHandle
    prefix: str
    codec: CodecHandle | None = None
    options: OptionDictionary | None = None
    stats: StatsChannel | None = None
    # stats_out object last appended to the pass-1 log
    stats_written: str | None = None


@dataclass
class TimingState:
    """Timestamp bookkeeping shared by the producers.

    None means "no value yet". Access it through EncodeSession.timing().
    """

    audio_pts_offset: float | None = None
    last_video_in_pts: float | None = None
    discontinuity_pts_offset: float | None = None
    last_audio_in_pts: float | None = None
    samples_since_last_pts: int = 0
    video_fps: float = 0.0


def _split_candidates(value: str | None) -> list[str]:
    if not value:
        return []
    return [token.strip() for token in value.split(",") if token.strip()]


def _frame_rate_from_float(fps: float) -> Fraction:
    """Rational approximation of a frame rate.

    23.976 gives 2997/125; the float value of 24000/1001 gives 24000/1001.
    """
    return Fraction(fps).limit_denominator(int(fps * 1001 + 2))


class EncodeSession:
    """Orchestrates one encode into one output container.

    Example:
        with EncodeSession(options, backend) as session:
            stream, codec = session.alloc_stream(MediaType.VIDEO)
            codec.setup_video(640, 480, "yuv420p")
            session.open_codec(codec)
            session.start()
            for packet in packets:
                session.write_frame(stream, packet)
    """

    def __init__(
        self,
        options: EncodeOptions,
        backend: MuxerBackend | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Resolve format and encoders and create the container writer.

        Args:
            options: Encode options. Never modified.
            backend: Container/codec library, PyAV when None.
            clock: Monotonic time source used for status reports.

        Raises:
            EncodeError: FORMAT_NOT_FOUND if no candidate format is known,
                NO_USABLE_CODEC if neither a video nor an audio encoder
                can be resolved.
        """
        self.options = options
        self.backend = backend if backend is not None else get_backend()
        self._clock = clock
        self._lock = threading.Lock()

        url = options.file
        if url == "-":
            url = STDOUT_URL
        if url in STDOUT_NAMES:
            force_stderr_logging()
        self.url = url

        self.header_state = HeaderState.NOT_STARTED
        self.failed = False
        self.finished = False
        self.expect_video = False
        self.expect_audio = False
        self.video_first = options.video_first
        self.audio_first = options.audio_first

        self.video: StreamSlot | None = None
        self.audio: StreamSlot | None = None
        self.time_base: Fraction | None = None
        self.metadata: dict[str, str] | None = None
        self.timing_state = TimingState()

        self.video_bytes = 0
        self.audio_bytes = 0
        self.frames = 0
        self.audio_seconds = 0.0
        self.start_time: float | None = None

        fmt = self._resolve_format()
        if fmt is None:
            raise self._construction_error(
                EncodeErrorKind.FORMAT_NOT_FOUND, "format not found"
            )
        self.format: OutputFormat | None = fmt

        self.video_encoder = self._resolve_encoder(MediaType.VIDEO, options.video_codec)
        self.audio_encoder = self._resolve_encoder(MediaType.AUDIO, options.audio_codec)
        if self.video_encoder is None and self.audio_encoder is None:
            raise self._construction_error(
                EncodeErrorKind.NO_USABLE_CODEC,
                "neither audio nor video codec was found",
            )

        self.writer: ContainerWriter | None = self.backend.create_writer(fmt, url)
        self.writer.max_delay = MAX_DELAY_SECONDS

        self.format_options: OptionDictionary | None = OptionDictionary()
        apply_option_strings(
            self.format_options, options.format_options, "format_options"
        )

        logger.debug(
            "Encode session for %s: format %s, video %s, audio %s",
            url,
            fmt.name,
            self.video_encoder.name if self.video_encoder else None,
            self.audio_encoder.name if self.audio_encoder else None,
        )

    # -- construction helpers -------------------------------------------

    def _construction_error(self, kind: EncodeErrorKind, message: str) -> EncodeError:
        logger.error(message, extra={"error_kind": kind.value})
        return EncodeError(kind, message)

    def _resolve_format(self) -> OutputFormat | None:
        candidates = _split_candidates(self.options.format)
        if not candidates:
            return self.backend.guess_format(None, self.url)
        for name in candidates:
            fmt = self.backend.guess_format(name, self.url)
            if fmt is not None:
                return fmt
        return None

    def _resolve_encoder(
        self, media_type: MediaType, requested: str | None
    ) -> EncoderInfo | None:
        candidates = _split_candidates(requested)
        if not candidates:
            assert self.format is not None
            return self.backend.default_encoder(self.format, self.url, media_type)
        for name in candidates:
            encoder = self.backend.find_encoder(name)
            if encoder is not None and encoder.media_type is media_type:
                return encoder
        return None

    def _codec_wanted(self, media_type: MediaType) -> bool:
        """Whether the format or the user asked for a stream of this type."""
        if self.format is None:
            return False
        if media_type is MediaType.VIDEO:
            return bool(self.format.default_video_codec or self.options.video_codec)
        return bool(self.format.default_audio_codec or self.options.audio_codec)

    # -- latch -----------------------------------------------------------

    def _guard(self) -> bool:
        """Return True (after logging) if the session is failed or finished."""
        if self.failed or self.finished:
            state = "failed" if self.failed else "finished"
            logger.error(
                "Called a function on a %s encoding context. Bailing out.", state
            )
            return True
        return False

    def fail(self, reason: str | EncodeError) -> None:
        """Log an error and tear the session down.

        Idempotent: the reason is always logged, teardown runs once.
        """
        if isinstance(reason, EncodeError):
            kind, message = reason.kind, reason.message
        else:
            kind, message = EncodeErrorKind.GENERIC, reason
        logger.error(message, extra={"error_kind": kind.value})
        with self._lock:
            if self.failed:
                return
            self.failed = True
        self.finish()

    def did_fail(self) -> bool:
        with self._lock:
            return self.failed

    @property
    def available(self) -> bool:
        """True while the session owns a container writer."""
        if self._guard():
            return False
        return self.writer is not None

    @property
    def output_format(self) -> OutputFormat | None:
        if self._guard():
            return None
        return self.format

    # -- metadata --------------------------------------------------------

    def set_metadata(self, tags: Mapping[str, str] | None) -> None:
        """Derive the container metadata from caller supplied tags.

        With copy_metadata the tags are the starting point, otherwise an
        empty map is. The configured set and remove edits apply on top.
        """
        if self._guard():
            return
        self.metadata = build_metadata(
            tags,
            self.options.copy_metadata,
            self.options.set_metadata,
            self.options.remove_metadata,
        )

    # -- header ----------------------------------------------------------

    def start(self) -> bool:
        """Write the container header once.

        Returns:
            True once the header is written. A failed attempt is never
            retried; later calls return False without side effects.
        """
        if self.header_state is HeaderState.START_FAILED:
            return False
        if self.header_state is HeaderState.STARTED:
            return True
        if self._guard():
            return False

        with self._lock:
            expect_video, expect_audio = self.expect_video, self.expect_audio

        if (
            expect_video
            and not self._has_codec(MediaType.VIDEO)
            and self._codec_wanted(MediaType.VIDEO)
        ):
            self.fail(
                EncodeError(
                    EncodeErrorKind.EXPECTED_STREAM_MISSING,
                    "no video stream succeeded - invalid codec?",
                )
            )
            return False
        if (
            expect_audio
            and not self._has_codec(MediaType.AUDIO)
            and self._codec_wanted(MediaType.AUDIO)
        ):
            self.fail(
                EncodeError(
                    EncodeErrorKind.EXPECTED_STREAM_MISSING,
                    "no audio stream succeeded - invalid codec?",
                )
            )
            return False

        self.header_state = HeaderState.START_FAILED

        assert self.writer is not None and self.format is not None
        writer = self.writer
        if self.format.needs_file:
            logger.info("Opening output file: %s", self.url)
            try:
                writer.open_io()
            except (OSError, BackendError) as e:
                logger.debug("open_io failed: %s", e)
                self.fail(
                    EncodeError(
                        EncodeErrorKind.OUTPUT_OPEN_ERROR,
                        f"could not open '{self.url}'",
                    )
                )
                return False

        with self._lock:
            self.start_time = self._clock()

        logger.info("Opening muxer: %s [%s]", self.format.long_name, self.format.name)

        if self.metadata:
            writer.metadata.update(self.metadata)

        options = self.format_options or OptionDictionary()
        try:
            writer.write_header(options)
        except BackendError as e:
            logger.debug("write_header failed: %s (%d)", e.message, e.code)
            self.fail(
                EncodeError(
                    EncodeErrorKind.HEADER_WRITE_ERROR, "could not write header"
                )
            )
            return False

        for key in options:
            logger.warning("format_options: key '%s' not found.", key)
        self.format_options = None

        self.header_state = HeaderState.STARTED
        return True

    # -- streams ---------------------------------------------------------

    def _slot(self, media_type: MediaType) -> StreamSlot | None:
        if media_type is MediaType.VIDEO:
            return self.video
        if media_type is MediaType.AUDIO:
            return self.audio
        return None

    def _set_slot(self, slot: StreamSlot) -> None:
        if slot.media_type is MediaType.VIDEO:
            self.video = slot
        else:
            self.audio = slot

    def _has_codec(self, media_type: MediaType) -> bool:
        """Whether a stream of this type was allocated, not merely reserved."""
        slot = self._slot(media_type)
        return slot is not None and slot.codec is not None

    def _encoder(self, media_type: MediaType) -> EncoderInfo | None:
        if media_type is MediaType.VIDEO:
            return self.video_encoder
        return self.audio_encoder

    def _reserve(self, media_type: MediaType) -> None:
        """Create a placeholder stream so media_type keeps index 0."""
        assert self.writer is not None
        prefix = _PREFIXES[media_type]
        other = _PREFIXES[
            MediaType.VIDEO if media_type is MediaType.AUDIO else MediaType.AUDIO
        ]
        logger.info(
            "%s: preallocated %s stream for later use", other, media_type.value
        )
        self._set_slot(StreamSlot(media_type, self.writer.new_stream(), prefix))

    def _negotiate_time_base(self) -> Fraction:
        if self.time_base is not None:
            return self.time_base

        with self._lock:
            vo_fps = self.timing_state.video_fps

        if self.options.fps > 0:
            rate = _frame_rate_from_float(self.options.fps)
        elif self.options.auto_fps and vo_fps > 0:
            rate = _frame_rate_from_float(vo_fps)
            logger.info(
                "fps not specified but auto_fps is active, using guess of %d/%d",
                rate.numerator,
                rate.denominator,
            )
        else:
            rate = DEFAULT_FRAME_RATE
            logger.info(
                "fps not specified and could not be inferred, using guess of %d/%d",
                rate.numerator,
                rate.denominator,
            )

        if self.video_encoder is not None and self.video_encoder.frame_rates:
            rate = min(self.video_encoder.frame_rates, key=lambda r: abs(r - rate))

        self.time_base = 1 / rate
        return self.time_base

    def alloc_stream(
        self, media_type: MediaType
    ) -> tuple[StreamHandle, CodecHandle] | None:
        """Allocate the stream and codec context for a media type.

        Must be called before start(). If the other media type was
        configured to come first and this is the first stream, an index is
        reserved for it.

        Returns:
            (stream, codec), or None if no stream can be created. A missing
            encoder only fails the session if the format or the user asked
            for one.
        """
        if self._guard():
            return None
        if self.header_state is not HeaderState.NOT_STARTED:
            return None

        if media_type not in _PREFIXES:
            self.fail(
                EncodeError(
                    EncodeErrorKind.INVALID_STREAM_TYPE,
                    "requested invalid stream type",
                )
            )
            return None

        slot = self._slot(media_type)
        if slot is not None and slot.codec is not None:
            return None

        prefix = _PREFIXES[media_type]
        encoder = self._encoder(media_type)
        if encoder is None:
            if self._codec_wanted(media_type):
                self.fail(
                    EncodeError(
                        EncodeErrorKind.ENCODER_NOT_FOUND,
                        f"{prefix}: encoder not found",
                    )
                )
            return None

        assert self.writer is not None and self.format is not None
        writer = self.writer

        if len(writer.streams) == 0:
            if media_type is MediaType.VIDEO and self.audio_first:
                self._reserve(MediaType.AUDIO)
            elif media_type is MediaType.AUDIO and self.video_first:
                self._reserve(MediaType.VIDEO)

        if slot is None:
            slot = StreamSlot(media_type, writer.new_stream(), prefix)
            self._set_slot(slot)

        time_base = self._negotiate_time_base()
        codec = writer.new_codec_context(encoder)
        slot.stream.time_base = time_base
        codec.time_base = time_base
        slot.codec = codec

        slot.options = OptionDictionary()
        entries = (
            self.options.video_options
            if media_type is MediaType.VIDEO
            else self.options.audio_options
        )
        apply_option_strings(slot.options, entries, _OPTION_LABELS[media_type])

        if GLOBAL_QUALITY_KEY in slot.options:
            set_option(slot.options, FLAGS_KEY, "+qscale")
        if self.format.global_header:
            set_option(slot.options, FLAGS_KEY, "+global_header")

        self._prepare_two_pass(slot)

        return slot.stream, codec

    def _prepare_two_pass(self, slot: StreamSlot) -> None:
        if slot.stats is not None:
            return
        assert slot.options is not None and slot.codec is not None

        path = stats_log_path(self.url, slot.prefix)
        flags = slot.options.get(FLAGS_KEY) or ""

        if value_has_flag(flags, "pass2"):
            try:
                channel = StatsChannel.open_read(path)
            except OSError:
                logger.warning(
                    "%s: could not open '%s', disabling 2-pass encoding at pass 2",
                    slot.prefix,
                    path,
                )
                set_option(slot.options, FLAGS_KEY, "-pass2")
            else:
                with channel:
                    content = channel.read_complete(MAX_STATS_BYTES)
                if content is None:
                    logger.warning(
                        "%s: could not read '%s', disabling 2-pass encoding at pass 2",
                        slot.prefix,
                        path,
                    )
                    set_option(slot.options, FLAGS_KEY, "-pass2")
                else:
                    slot.codec.stats_in = content.decode("utf-8", errors="replace")

        if value_has_flag(flags, "pass1"):
            try:
                slot.stats = StatsChannel.open_write(path)
            except OSError:
                logger.warning(
                    "%s: could not open '%s', disabling 2-pass encoding at pass 1",
                    slot.prefix,
                    path,
                )
                set_option(slot.options, FLAGS_KEY, "-pass1")

    def _slot_for_codec(self, codec: CodecHandle) -> StreamSlot | None:
        for slot in (self.video, self.audio):
            if slot is not None and slot.codec is codec:
                return slot
        return None

    def open_codec(self, codec: CodecHandle) -> int:
        """Open a codec context returned by alloc_stream().

        Producers configure dimensions and formats on the codec first.
        Options the encoder did not consume are warned about.

        Returns:
            0 on success, a negative code on failure (the session failed).
        """
        if self._guard():
            return -1

        slot = self._slot_for_codec(codec)
        if slot is None:
            self.fail(
                EncodeError(
                    EncodeErrorKind.INVALID_STREAM_TYPE,
                    "open_codec called with a codec this session did not allocate",
                )
            )
            return -1
        assert self.writer is not None

        encoder = codec.encoder
        logger.info(
            "Opening %s encoder: %s [%s]",
            slot.media_type.value,
            encoder.long_name,
            encoder.name,
        )
        if encoder.experimental:
            codec.strict_std_compliance = "experimental"
            logger.warning(
                "Experimental %s codec selected! The output file may be broken "
                "or bad. If that happens, try another codec in place of %s.",
                slot.media_type.value.upper(),
                encoder.name,
            )

        options = slot.options or OptionDictionary()
        result = 0
        try:
            self.writer.open_codec(slot.stream, codec, options)
        except BackendError as e:
            logger.error("%s: %s", encoder.name, e.message)
            result = e.code

        for key in options:
            logger.warning(
                "%s: key '%s' not found.", _OPTION_LABELS[slot.media_type], key
            )
        slot.options = None

        if result < 0:
            self.fail(
                EncodeError(
                    EncodeErrorKind.CODEC_OPEN_ERROR,
                    "unable to open encoder (see above for the cause)",
                )
            )
        return result

    # -- frames ----------------------------------------------------------

    def write_stats(self, codec: CodecHandle) -> None:
        """Append the codec's latest pass-1 statistics to its log."""
        if self._guard():
            return
        slot = self._slot_for_codec(codec)
        if slot is not None:
            self._flush_stats(slot)

    def write_frame(self, stream: StreamHandle, packet: PacketLike) -> int:
        """Account for and mux one encoded packet.

        Returns:
            The writer's status code. A negative code does not fail the
            session; the caller decides.
        """
        if self._guard():
            return -1

        if stream.index != packet.stream_index:
            logger.error("Called write_frame on the wrong stream")
            return -1

        if self.header_state is not HeaderState.STARTED:
            return -1

        time_base = stream.time_base or Fraction(0)
        logger.debug(
            "write frame: stream %d pts %s (%s) dts %s (%s) size %d",
            packet.stream_index,
            packet.pts,
            float(packet.pts * time_base) if packet.pts is not None else None,
            packet.dts,
            float(packet.dts * time_base) if packet.dts is not None else None,
            packet.size,
        )

        with self._lock:
            if stream.media_type is MediaType.VIDEO:
                self.video_bytes += packet.size
                self.frames += 1
            elif stream.media_type is MediaType.AUDIO:
                self.audio_bytes += packet.size
                self.audio_seconds += float((packet.duration or 0) * time_base)

        assert self.writer is not None
        try:
            return self.writer.write_interleaved(packet)
        except BackendError as e:
            logger.error("Error writing packet: %s", e.message)
            return e.code

    # -- producer hints --------------------------------------------------

    def set_video_fps(self, fps: float) -> None:
        """Record the frame rate reported by the video producer."""
        with self._lock:
            self.timing_state.video_fps = fps

    def set_audio_pts(self, pts: float) -> None:
        with self._lock:
            self.timing_state.last_audio_in_pts = pts
            self.timing_state.samples_since_last_pts = 0

    def expect_stream(self, media_type: MediaType) -> None:
        """Declare that a producer will allocate a stream of this type.

        start() fails if the stream never materializes although the format
        or the user wanted it.
        """
        with self._lock:
            if self._guard():
                return
            if media_type is MediaType.VIDEO:
                self.expect_video = True
            elif media_type is MediaType.AUDIO:
                self.expect_audio = True

    def discontinuity(self) -> None:
        """Reset the timestamp offsets after a seek or timeline jump."""
        with self._lock:
            if self._guard():
                return
            self.timing_state.audio_pts_offset = None
            self.timing_state.last_video_in_pts = None
            self.timing_state.discontinuity_pts_offset = None

    @contextmanager
    def timing(self) -> Iterator[TimingState]:
        """Hold the session lock while a producer updates timing state."""
        with self._lock:
            yield self.timing_state

    def get_offset(self, codec: CodecHandle) -> float:
        """Configured timestamp offset for the codec's media type."""
        if self._guard():
            return 0.0
        if codec.media_type is MediaType.VIDEO:
            return self.options.video_offset
        if codec.media_type is MediaType.AUDIO:
            return self.options.audio_offset
        return 0.0

    def supports_pixel_format(self, pixel_format: str | None) -> bool:
        """Whether the video encoder accepts a pixel format."""
        if self._guard():
            return False
        if self.video_encoder is None or not pixel_format:
            return False
        if self.video_encoder.pixel_formats is None:
            return True
        return pixel_format in self.video_encoder.pixel_formats

    # -- color -----------------------------------------------------------

    def set_colorspace(self, codec: CodecHandle, colorspace: ColorSpace) -> bool:
        if self._guard():
            return False
        if self.header_state is not HeaderState.NOT_STARTED:
            if codec.colorspace != colorspace.value:
                logger.warning("can not change color space during encoding")
            return False
        codec.colorspace = colorspace.value
        return True

    def set_color_range(self, codec: CodecHandle, color_range: ColorRange) -> bool:
        if self._guard():
            return False
        if self.header_state is not HeaderState.NOT_STARTED:
            if codec.color_range != color_range.value:
                logger.warning("can not change color space during encoding")
            return False
        codec.color_range = color_range.value
        return True

    def get_colorspace(self, codec: CodecHandle) -> ColorSpace:
        if self._guard():
            return ColorSpace.AUTO
        return ColorSpace.from_library(codec.colorspace)

    def get_color_range(self, codec: CodecHandle) -> ColorRange:
        if self._guard():
            return ColorRange.AUTO
        return ColorRange.from_library(codec.color_range)

    # -- status ----------------------------------------------------------

    def status_snapshot(self, relative_position: float) -> EncodeStatus | None:
        """Progress estimate, or None if failed, finished or not started."""
        with self._lock:
            if self._guard():
                return None
            if self.start_time is None or self.writer is None:
                return None
            return compute_status(
                relative_position,
                self._clock() - self.start_time,
                self.writer.io_size(),
                self.frames,
                self.audio_seconds,
            )

    def get_status(self, relative_position: float) -> str | None:
        """Progress string like "{1.5min 24.0fps 12.3MB}"."""
        status = self.status_snapshot(relative_position)
        return status.format() if status is not None else None

    # -- teardown --------------------------------------------------------

    def _flush_stats(self, slot: StreamSlot) -> None:
        if slot.stats is None or slot.codec is None:
            return
        stats = slot.codec.stats_out
        if stats and stats is not slot.stats_written:
            slot.stats_written = stats
            try:
                slot.stats.write(stats)
            except OSError as e:
                logger.warning("%s: could not write statistics: %s", slot.prefix, e)

    def finish(self) -> None:
        """Write the trailer and release every resource. Idempotent."""
        if self.finished:
            return

        writer = self.writer
        if writer is not None:
            if self.header_state is HeaderState.STARTED:
                try:
                    writer.write_trailer()
                except BackendError as e:
                    logger.warning("could not write trailer: %s", e.message)

            slots = [slot for slot in (self.video, self.audio) if slot is not None]
            for slot in slots:
                self._flush_stats(slot)
                if slot.codec is not None:
                    slot.codec.close()
            writer.release_streams()
            for slot in slots:
                if slot.stats is not None:
                    slot.stats.close()
                    slot.stats = None

            logger.info("%s: encoded %d bytes", VIDEO_PREFIX, self.video_bytes)
            logger.info("%s: encoded %d bytes", AUDIO_PREFIX, self.audio_bytes)
            if writer.io_opened:
                size = writer.io_size()
                if size is not None:
                    logger.info(
                        "muxing overhead %d bytes",
                        size - self.video_bytes - self.audio_bytes,
                    )
                try:
                    writer.close_io()
                except BackendError as e:
                    logger.warning("could not close output: %s", e.message)

            writer.release()
            self.writer = None
            self.format = None

        self.finished = True

    def free(self) -> None:
        """Release the session. finish() must have been called first."""
        if not self.finished:
            self.fail(
                EncodeError(
                    EncodeErrorKind.MISUSE, "called free without finish"
                )
            )
        self.video = None
        self.audio = None
        self.metadata = None

    def __enter__(self) -> EncodeSession:
        return self

    def __exit__(self, exc_type: Any, exc: BaseException | None, tb: Any) -> None:
        if exc is not None:
            self.fail(str(exc) or exc_type.__name__)
        self.finish()
        self.free()

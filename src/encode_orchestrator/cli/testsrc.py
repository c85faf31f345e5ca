"""Testsrc command: encode synthetic video and audio into an output.

A video producer thread and an audio producer thread feed one session,
while the main thread reports progress, the way a player feeds its
encoder from separate video and audio pipelines.
"""

from __future__ import annotations

import logging
import math
import sys
import threading
from dataclasses import dataclass, field

import click

from encode_orchestrator.backend.interface import BackendError, CodecHandle, StreamHandle
from encode_orchestrator.cli.exit_codes import ExitCode
from encode_orchestrator.cli.options import build_encode_options, encode_options
from encode_orchestrator.errors import EncodeError
from encode_orchestrator.logging import encode_context
from encode_orchestrator.models import MediaType
from encode_orchestrator.session import STDOUT_URL, EncodeSession

logger = logging.getLogger(__name__)

STATUS_INTERVAL_SECONDS = 1.0
DEFAULT_FRAME_SIZE = 1024


def _parse_size(value: str) -> tuple[int, int]:
    width, sep, height = value.lower().partition("x")
    if not sep or not width.isdigit() or not height.isdigit():
        raise click.BadParameter(f"'{value}' is not WIDTHxHEIGHT", param_hint="--size")
    if int(width) <= 0 or int(height) <= 0:
        raise click.BadParameter("width and height must be positive", param_hint="--size")
    return int(width), int(height)


def _pick(preferred: str, supported: tuple[str, ...] | None) -> str:
    if not supported or preferred in supported:
        return preferred
    return supported[0]


@dataclass
class Producer:
    """One synthetic source feeding a stream of the session."""

    media_type: MediaType
    stream: StreamHandle
    codec: CodecHandle
    frame_count: int
    frames_done: int = 0
    error: BackendError | None = None
    done: threading.Event = field(default_factory=threading.Event)

    def run(self, session: EncodeSession) -> None:
        with encode_context(session.url, self.media_type.value):
            try:
                for index in range(self.frame_count):
                    for packet in self.codec.encode_test_frame(index):
                        if session.write_frame(self.stream, packet) < 0:
                            raise BackendError("could not write packet")
                    session.write_stats(self.codec)
                    self.frames_done = index + 1
                for packet in self.codec.flush():
                    session.write_frame(self.stream, packet)
            except BackendError as e:
                logger.error("%s producer stopped: %s", self.media_type.value, e.message)
                self.error = e
            finally:
                self.done.set()
                logger.debug(
                    "%s producer done after %d frames",
                    self.media_type.value,
                    self.frames_done,
                )


def _allocate(
    session: EncodeSession,
    media_type: MediaType,
    frame_count: int,
    width: int,
    height: int,
    sample_rate: int,
) -> Producer | None:
    allocated = session.alloc_stream(media_type)
    if allocated is None:
        return None
    stream, codec = allocated
    encoder = codec.encoder
    if media_type is MediaType.VIDEO:
        pixel_format = _pick("yuv420p", encoder.pixel_formats)
        if not session.supports_pixel_format(pixel_format):
            logger.warning("%s does not support %s", encoder.name, pixel_format)
        codec.setup_video(width, height, pixel_format)
    else:
        codec.setup_audio(sample_rate, 2, _pick("s16", encoder.sample_formats))
    return Producer(media_type, stream, codec, frame_count)


@click.command("testsrc")
@click.argument("output")
@encode_options
@click.option("--duration", type=float, default=5.0, show_default=True,
              help="Length of the synthetic source in seconds.")
@click.option("--size", default="320x240", show_default=True,
              help="Video frame size as WIDTHxHEIGHT.")
@click.option("--rate", type=float, default=25.0, show_default=True,
              help="Frame rate reported by the video source.")
@click.option("--sample-rate", type=int, default=48000, show_default=True,
              help="Audio sample rate.")
@click.pass_context
def testsrc_command(
    ctx: click.Context,
    output: str,
    flags: dict,
    duration: float,
    size: str,
    rate: float,
    sample_rate: int,
) -> None:
    """Encode a synthetic test source into OUTPUT.

    Use "-" as OUTPUT to write to standard output.

    Examples:

        encode-orchestrator testsrc out.mkv --duration 2

        encode-orchestrator --backend stub testsrc out.nut --vc mpeg4 \\
            --video-option flags=+pass1
    """
    from encode_orchestrator.cli import get_context_backend

    if duration <= 0 or rate <= 0 or sample_rate <= 0:
        raise click.BadParameter("duration, rate and sample rate must be positive")
    width, height = _parse_size(size)

    config = ctx.obj["config"]
    options = build_encode_options(output, flags, config.default_profile)
    backend = get_context_backend(ctx)

    try:
        session = EncodeSession(options, backend)
    except EncodeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.ENCODE_FAILED)

    with session:
        session.set_metadata({"comment": "encode-orchestrator test source"})
        session.set_video_fps(rate)
        video_frames = max(1, round(duration * rate))
        audio_frames = max(1, math.ceil(duration * sample_rate / DEFAULT_FRAME_SIZE))

        producers = []
        for media_type, frames in (
            (MediaType.VIDEO, video_frames),
            (MediaType.AUDIO, audio_frames),
        ):
            session.expect_stream(media_type)
            producer = _allocate(session, media_type, frames, width, height, sample_rate)
            if producer is not None:
                producers.append(producer)

        for producer in producers:
            if session.did_fail() or session.open_codec(producer.codec) < 0:
                break

        if producers and session.start():
            _run_producers(session, producers)

    if session.did_fail():
        click.echo("Error: encoding failed, see log for details", err=True)
        sys.exit(ExitCode.GENERAL_ERROR)
    click.echo(f"Wrote {session.url}", err=session.url == STDOUT_URL)


def _run_producers(session: EncodeSession, producers: list[Producer]) -> None:
    threads = [
        threading.Thread(
            target=producer.run,
            args=(session,),
            name=f"{producer.media_type.value}-producer",
        )
        for producer in producers
    ]
    for thread in threads:
        thread.start()

    lead = producers[0]
    while pending := [p for p in producers if not p.done.is_set()]:
        pending[0].done.wait(STATUS_INTERVAL_SECONDS)
        status = session.get_status(lead.frames_done / max(1, lead.frame_count))
        if status:
            logger.info("Encoding %s", status)

    for thread in threads:
        thread.join()

    for producer in producers:
        if producer.error is not None:
            session.fail(
                f"{producer.media_type.value} producer failed: {producer.error.message}"
            )
            return

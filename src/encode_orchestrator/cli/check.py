"""Check command: resolve format and encoders without encoding."""

import sys

import click

from encode_orchestrator.cli.exit_codes import ExitCode
from encode_orchestrator.cli.options import build_encode_options, encode_options
from encode_orchestrator.errors import EncodeError, EncodeErrorKind
from encode_orchestrator.session import EncodeSession

_EXIT_BY_KIND = {
    EncodeErrorKind.FORMAT_NOT_FOUND: ExitCode.FORMAT_NOT_FOUND,
    EncodeErrorKind.NO_USABLE_CODEC: ExitCode.NO_USABLE_CODEC,
}


@click.command("check")
@click.argument("output")
@encode_options
@click.pass_context
def check_command(ctx: click.Context, output: str, flags: dict) -> None:
    """Show which format and encoders an encode to OUTPUT would use.

    Nothing is written. Exits non-zero if no format or no encoder can be
    resolved.

    Examples:

        encode-orchestrator check out.mkv

        encode-orchestrator check out.bin --format nut --vc ffv1
    """
    from encode_orchestrator.cli import get_context_backend

    config = ctx.obj["config"]
    options = build_encode_options(output, flags, config.default_profile)
    backend = get_context_backend(ctx)

    try:
        session = EncodeSession(options, backend)
    except EncodeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(_EXIT_BY_KIND.get(e.kind, ExitCode.GENERAL_ERROR))

    fmt = session.format
    video, audio = session.video_encoder, session.audio_encoder
    click.echo(f"Output: {session.url}")
    click.echo(f"Format: {fmt.name} ({fmt.long_name})")
    click.echo(f"Video encoder: {video.name if video else '-'}")
    click.echo(f"Audio encoder: {audio.name if audio else '-'}")

    session.finish()
    session.free()

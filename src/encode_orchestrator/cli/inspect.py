"""Commands listing what the selected backend can write."""

import json

import click

from encode_orchestrator.models import MediaType


@click.command("formats")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def formats_command(ctx: click.Context, json_output: bool) -> None:
    """List available output container formats."""
    from encode_orchestrator.cli import get_context_backend

    backend = get_context_backend(ctx)
    formats = list(backend.iter_formats())

    if json_output:
        data = [
            {
                "name": fmt.name,
                "description": fmt.long_name,
                "extensions": list(fmt.extensions),
                "video_codec": fmt.default_video_codec,
                "audio_codec": fmt.default_audio_codec,
            }
            for fmt in formats
        ]
        click.echo(json.dumps(data, indent=2))
        return

    click.echo("Available output formats:")
    for fmt in formats:
        click.echo(f"  {fmt.name:<15} {fmt.long_name}")


@click.command("encoders")
@click.option(
    "--type",
    "media_type",
    type=click.Choice(["video", "audio"]),
    default=None,
    help="Only list encoders of this media type.",
)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format.")
@click.pass_context
def encoders_command(
    ctx: click.Context, media_type: str | None, json_output: bool
) -> None:
    """List available encoders."""
    from encode_orchestrator.cli import get_context_backend

    backend = get_context_backend(ctx)
    encoders = list(
        backend.iter_encoders(MediaType(media_type) if media_type else None)
    )

    if json_output:
        data = [
            {
                "name": enc.name,
                "type": enc.media_type.value,
                "description": enc.long_name,
                "experimental": enc.experimental,
            }
            for enc in encoders
        ]
        click.echo(json.dumps(data, indent=2))
        return

    for kind in (MediaType.VIDEO, MediaType.AUDIO):
        group = [enc for enc in encoders if enc.media_type is kind]
        if not group:
            continue
        click.echo(f"Available {kind.value} encoders:")
        for enc in group:
            suffix = " (experimental)" if enc.experimental else ""
            click.echo(f"  {enc.name:<15} {enc.long_name}{suffix}")

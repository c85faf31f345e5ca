"""Encode option flags shared by the commands that build a session."""

from __future__ import annotations

import functools
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from encode_orchestrator.cli.exit_codes import ExitCode
from encode_orchestrator.config import (
    EncodeOptions,
    EncodeProfileModel,
    ProfileValidationError,
    load_profile,
)

_ENCODE_FLAGS: list[Callable[[Callable[..., Any]], Callable[..., Any]]] = [
    click.option(
        "--profile",
        "profile_path",
        type=click.Path(path_type=Path, dir_okay=False),
        default=None,
        help="YAML encode profile. Flags below override its values.",
    ),
    click.option("--format", "-f", "format_", default=None,
                 help="Container format, comma separated candidates."),
    click.option("--format-option", "format_options", multiple=True,
                 metavar="KEY=VALUE", help="Container option (repeatable)."),
    click.option("--fps", type=float, default=None,
                 help="Fixed output frame rate."),
    click.option("--max-fps", type=float, default=None,
                 help="Maximum frame rate for the video producer."),
    click.option("--video-codec", "--vc", "video_codec", default=None,
                 help="Video encoder, comma separated candidates."),
    click.option("--video-option", "video_options", multiple=True,
                 metavar="KEY=VALUE", help="Video encoder option (repeatable)."),
    click.option("--audio-codec", "--ac", "audio_codec", default=None,
                 help="Audio encoder, comma separated candidates."),
    click.option("--audio-option", "audio_options", multiple=True,
                 metavar="KEY=VALUE", help="Audio encoder option (repeatable)."),
    click.option("--video-offset", type=float, default=None,
                 help="Seconds added to video timestamps."),
    click.option("--audio-offset", type=float, default=None,
                 help="Seconds added to audio timestamps."),
    click.option("--auto-fps", is_flag=True,
                 help="Use the frame rate reported by the video source."),
    click.option("--video-first", is_flag=True,
                 help="Force the video stream to index 0."),
    click.option("--audio-first", is_flag=True,
                 help="Force the audio stream to index 0."),
    click.option("--no-copy-metadata", is_flag=True,
                 help="Start from empty metadata instead of the source's."),
    click.option("--set-metadata", "set_metadata", multiple=True,
                 metavar="KEY=VALUE", help="Metadata tag to set (repeatable)."),
    click.option("--remove-metadata", "remove_metadata", multiple=True,
                 metavar="KEY", help="Metadata tag to remove (repeatable)."),
]

ENCODE_FLAG_NAMES = (
    "profile_path",
    "format_",
    "format_options",
    "fps",
    "max_fps",
    "video_codec",
    "video_options",
    "audio_codec",
    "audio_options",
    "video_offset",
    "audio_offset",
    "auto_fps",
    "video_first",
    "audio_first",
    "no_copy_metadata",
    "set_metadata",
    "remove_metadata",
)


def encode_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add the encode flags to a command.

    The decorated command receives a single ``flags`` dict instead of one
    keyword per flag.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        flags = {name: kwargs.pop(name) for name in ENCODE_FLAG_NAMES}
        return func(*args, flags=flags, **kwargs)

    for option in reversed(_ENCODE_FLAGS):
        wrapper = option(wrapper)
    return wrapper


def _parse_metadata(entries: tuple[str, ...]) -> dict[str, str]:
    tags: dict[str, str] = {}
    for entry in entries:
        key, sep, value = entry.partition("=")
        if not sep or not key:
            raise click.BadParameter(
                f"'{entry}' is not KEY=VALUE", param_hint="--set-metadata"
            )
        tags[key] = value
    return tags


def build_encode_options(
    output: str, flags: dict[str, Any], default_profile: Path | None = None
) -> EncodeOptions:
    """Merge profile and CLI flags into EncodeOptions.

    Exits the process with a validation exit code on invalid input.
    """
    profile_path = flags["profile_path"] or default_profile
    try:
        profile = (
            load_profile(profile_path) if profile_path else EncodeProfileModel()
        )
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.PROFILE_NOT_FOUND)
    except ProfileValidationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.PROFILE_VALIDATION_ERROR)

    overrides: dict[str, Any] = {
        "format": flags["format_"],
        "format_options": list(flags["format_options"]) or None,
        "fps": flags["fps"],
        "max_fps": flags["max_fps"],
        "video_codec": flags["video_codec"],
        "video_options": list(flags["video_options"]) or None,
        "audio_codec": flags["audio_codec"],
        "audio_options": list(flags["audio_options"]) or None,
        "video_offset": flags["video_offset"],
        "audio_offset": flags["audio_offset"],
        "auto_fps": True if flags["auto_fps"] else None,
        "video_first": True if flags["video_first"] else None,
        "audio_first": True if flags["audio_first"] else None,
        "copy_metadata": False if flags["no_copy_metadata"] else None,
        "set_metadata": _parse_metadata(flags["set_metadata"]) or None,
        "remove_metadata": list(flags["remove_metadata"]) or None,
    }
    try:
        return profile.to_options(output, **overrides)
    except ValueError as e:
        click.echo(f"Error: invalid encode options: {e}", err=True)
        sys.exit(ExitCode.INVALID_OPTIONS)

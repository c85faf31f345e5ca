"""CLI module for the encode orchestrator."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from encode_orchestrator.backend import BACKEND_NAMES, get_backend
from encode_orchestrator.cli.exit_codes import ExitCode

logger = logging.getLogger(__name__)


def _configure_logging(
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
    backend: str | None,
):
    """Load configuration, apply CLI overrides and configure logging.

    Returns:
        The effective OrchestratorConfig.
    """
    from encode_orchestrator.config import apply_logging_flags, get_config
    from encode_orchestrator.logging import configure_logging

    config = get_config(config_path=config_path, backend=backend)
    configure_logging(
        apply_logging_flags(
            config.logging, level=log_level, file=log_file, json_format=log_json
        )
    )
    return config


@click.group()
@click.version_option(package_name="encode-orchestrator")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.encode-orchestrator/config.toml).",
)
@click.option(
    "--backend",
    type=click.Choice(BACKEND_NAMES),
    default=None,
    help="Container/codec library backend (default: pyav).",
)
@click.pass_context
def main(
    ctx: click.Context,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
    config_path: Path | None,
    backend: str | None,
) -> None:
    """Encode orchestrator - drive encode sessions into media containers."""
    ctx.ensure_object(dict)
    try:
        config = _configure_logging(
            config_path, log_level, log_file, log_json, backend
        )
    except ValueError as e:
        click.echo(f"Error: invalid configuration: {e}", err=True)
        sys.exit(ExitCode.CONFIG_ERROR)

    ctx.obj["config"] = config
    ctx.obj["backend_name"] = config.backend


def get_context_backend(ctx: click.Context):
    """Create the backend selected for this invocation."""
    name = ctx.obj.get("backend_name", "pyav")
    try:
        return get_backend(name)
    except ImportError as e:
        click.echo(f"Error: backend '{name}' is not available: {e}", err=True)
        sys.exit(ExitCode.GENERAL_ERROR)


# Defer import to avoid circular dependency
def _register_commands():
    from encode_orchestrator.cli.check import check_command
    from encode_orchestrator.cli.inspect import encoders_command, formats_command
    from encode_orchestrator.cli.testsrc import testsrc_command

    main.add_command(formats_command)
    main.add_command(encoders_command)
    main.add_command(check_command)
    main.add_command(testsrc_command)


_register_commands()

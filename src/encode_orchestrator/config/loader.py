"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to functions)
2. Environment variables (ENCODE_ORCHESTRATOR_*)
3. Config file (~/.encode-orchestrator/config.toml)
4. Default values

Environment variables:
- ENCODE_ORCHESTRATOR_CONFIG_PATH: Path to config file
- ENCODE_ORCHESTRATOR_BACKEND: Backend name (pyav, stub)
- ENCODE_ORCHESTRATOR_PROFILE: Default encode profile (YAML)
- ENCODE_ORCHESTRATOR_LOG_LEVEL: Log level
- ENCODE_ORCHESTRATOR_LOG_FILE: Log file path
- ENCODE_ORCHESTRATOR_LOG_FORMAT: Log format (text, json)
- ENCODE_ORCHESTRATOR_LOG_INCLUDE_STDERR: Also log to stderr with a log file
"""

import dataclasses
import logging
import tomllib
from pathlib import Path
from typing import Any

from encode_orchestrator.config.env import EnvReader
from encode_orchestrator.config.models import (
    LOG_FORMATS,
    LOG_LEVELS,
    LoggingConfig,
    OrchestratorConfig,
)

logger = logging.getLogger(__name__)

# Default config location
DEFAULT_CONFIG_DIR = Path.home() / ".encode-orchestrator"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"


class ConfigError(Exception):
    """Raised when a config file exists but cannot be used."""


def get_default_config_path(env: EnvReader | None = None) -> Path:
    """Get the default config file path.

    Can be overridden by the ENCODE_ORCHESTRATOR_CONFIG_PATH environment
    variable.
    """
    env = env or EnvReader()
    env_path = env.get_str("CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_FILE


def load_config_file(path: Path | None = None, *, strict: bool = False) -> dict:
    """Load configuration from TOML file.

    Args:
        path: Path to config file. If None, uses default location.
        strict: Raise ConfigError on unreadable or invalid files instead
            of logging a warning.

    Returns:
        Parsed configuration dict. Empty dict if file doesn't exist.
    """
    if path is None:
        path = get_default_config_path()

    if not path.exists():
        logger.debug("Config file not found: %s", path)
        return {}

    try:
        with path.open("rb") as f:
            config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        if strict:
            raise ConfigError(f"Failed to load config file {path}: {e}") from e
        logger.warning("Failed to load config file %s: %s", path, e)
        return {}

    logger.debug("Loaded config from %s", path)
    return config


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def get_config(
    config_path: Path | None = None,
    env: EnvReader | None = None,
    # CLI overrides (highest precedence)
    backend: str | None = None,
    profile: Path | None = None,
) -> OrchestratorConfig:
    """Get configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides the env variable).
        env: Environment reader, os.environ when None.
        backend: CLI override for the backend name.
        profile: CLI override for the encode profile path.

    Returns:
        OrchestratorConfig with merged configuration.

    Raises:
        ValueError: If a merged value fails validation.
    """
    env = env or EnvReader()
    file_config = load_config_file(config_path or get_default_config_path(env))

    logging_file = file_config.get("logging", {})
    log_file = _first(
        env.get_path("LOG_FILE", must_exist=False),
        Path(logging_file["file"]).expanduser() if logging_file.get("file") else None,
    )
    logging_config = LoggingConfig(
        level=_first(
            env.get_choice("LOG_LEVEL", LOG_LEVELS),
            logging_file.get("level"),
            "info",
        ),
        file=log_file,
        format=_first(
            env.get_choice("LOG_FORMAT", LOG_FORMATS),
            logging_file.get("format"),
            "text",
        ),
        include_stderr=_first(
            env.get_bool("LOG_INCLUDE_STDERR"),
            logging_file.get("include_stderr"),
            False,
        ),
        max_bytes=_first(logging_file.get("max_bytes"), 10_485_760),
        backup_count=_first(logging_file.get("backup_count"), 5),
    )

    encode_file = file_config.get("encode", {})
    file_profile = encode_file.get("profile")
    return OrchestratorConfig(
        logging=logging_config,
        backend=_first(
            backend,
            env.get_str("BACKEND"),
            encode_file.get("backend"),
            "pyav",
        ),
        default_profile=_first(
            profile,
            env.get_path("PROFILE"),
            Path(file_profile).expanduser() if file_profile else None,
        ),
    )


def apply_logging_flags(
    base: LoggingConfig,
    *,
    level: str | None = None,
    file: Path | None = None,
    json_format: bool = False,
) -> LoggingConfig:
    """Apply the global --log-level, --log-file and --log-json flags.

    Unset flags keep the value from the environment or config file.

    Raises:
        ValueError: If the resulting configuration is invalid.
    """
    changes: dict[str, Any] = {}
    if level is not None:
        changes["level"] = level.lower()
    if file is not None:
        changes["file"] = file.expanduser()
    if json_format:
        changes["format"] = "json"
    return dataclasses.replace(base, **changes)

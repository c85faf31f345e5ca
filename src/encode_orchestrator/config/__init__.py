"""Configuration for the encode orchestrator.

Encode options, runtime configuration with CLI > environment > config
file > default precedence, and YAML encode profiles.
"""

from encode_orchestrator.config.env import ENV_PREFIX, EnvReader
from encode_orchestrator.config.loader import (
    ConfigError,
    apply_logging_flags,
    get_config,
    get_default_config_path,
    load_config_file,
)
from encode_orchestrator.config.models import (
    EncodeOptions,
    LoggingConfig,
    OrchestratorConfig,
)
from encode_orchestrator.config.profile import (
    EncodeProfileModel,
    ProfileValidationError,
    load_profile,
    parse_profile,
)

__all__ = [
    "ENV_PREFIX",
    "ConfigError",
    "EncodeOptions",
    "EncodeProfileModel",
    "EnvReader",
    "LoggingConfig",
    "OrchestratorConfig",
    "ProfileValidationError",
    "apply_logging_flags",
    "get_config",
    "get_default_config_path",
    "load_config_file",
    "load_profile",
    "parse_profile",
]

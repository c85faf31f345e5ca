"""Centralized exit codes for all CLI commands.

Exit code ranges:
    0: Success
    1-9: General errors
    10-19: Validation errors (profile, config, options)
    40-49: Encode errors
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for encode-orchestrator CLI commands."""

    SUCCESS = 0

    # General errors (1-9)
    GENERAL_ERROR = 1
    INTERRUPTED = 2

    # Validation errors (10-19)
    PROFILE_VALIDATION_ERROR = 10
    CONFIG_ERROR = 11
    PROFILE_NOT_FOUND = 12
    INVALID_OPTIONS = 13

    # Encode errors (40-49)
    FORMAT_NOT_FOUND = 40
    NO_USABLE_CODEC = 41
    ENCODE_FAILED = 42

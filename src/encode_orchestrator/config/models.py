"""Configuration data models.

This module defines dataclasses for the encode options consumed by an
encode session and for the orchestrator's own runtime configuration.
"""

from dataclasses import dataclass, field
from pathlib import Path

MAX_FPS = 1_000_000.0
MAX_OFFSET = 1_000_000.0

LOG_LEVELS = frozenset({"debug", "info", "warning", "error"})
LOG_FORMATS = frozenset({"text", "json"})


@dataclass(frozen=True)
class EncodeOptions:
    """Validated, immutable options for one encode session.

    Fixed when the session is constructed and never modified by it.
    """

    file: str
    """Output path. "-" writes to standard output."""

    format: str | None = None
    """Comma separated container format candidates, first known one wins."""

    format_options: tuple[str, ...] = ()
    """Container options as "key=value" strings."""

    fps: float = 0.0
    """Fixed output frame rate. 0 lets the session negotiate one."""

    max_fps: float = 0.0
    """Upper frame rate bound for the video producer. 0 = unbounded."""

    video_codec: str | None = None
    """Comma separated video encoder candidates."""

    video_options: tuple[str, ...] = ()
    """Video encoder options as "key=value" strings."""

    audio_codec: str | None = None
    """Comma separated audio encoder candidates."""

    audio_options: tuple[str, ...] = ()
    """Audio encoder options as "key=value" strings."""

    hard_dup: bool = False
    """Producer hint: duplicate frames instead of relying on timestamps."""

    video_offset: float = 0.0
    """Seconds added to video timestamps by the producer."""

    audio_offset: float = 0.0
    """Seconds added to audio timestamps by the producer."""

    copy_ts: bool = False
    raw_ts: bool = False

    auto_fps: bool = False
    """Use the frame rate reported by the video producer if fps is unset."""

    never_drop: bool = False

    video_first: bool = False
    """Force the video stream to stream index 0."""

    audio_first: bool = False
    """Force the audio stream to stream index 0."""

    copy_metadata: bool = True
    """Start from the caller supplied metadata instead of an empty map."""

    set_metadata: tuple[tuple[str, str], ...] = ()
    remove_metadata: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.file:
            raise ValueError("file must not be empty")
        for name in ("fps", "max_fps"):
            value = getattr(self, name)
            if not 0.0 <= value <= MAX_FPS:
                raise ValueError(f"{name} must be between 0 and {MAX_FPS}, got {value}")
        for name in ("video_offset", "audio_offset"):
            value = getattr(self, name)
            if not -MAX_OFFSET <= value <= MAX_OFFSET:
                raise ValueError(
                    f"{name} must be between {-MAX_OFFSET} and {MAX_OFFSET}, got {value}"
                )
        if self.video_first and self.audio_first:
            raise ValueError("video_first and audio_first are mutually exclusive")


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.level.lower() not in LOG_LEVELS:
            raise ValueError(
                f"level must be one of {sorted(LOG_LEVELS)}, got {self.level}"
            )
        if self.format.lower() not in LOG_FORMATS:
            raise ValueError(
                f"format must be one of {sorted(LOG_FORMATS)}, got {self.format}"
            )


@dataclass
class OrchestratorConfig:
    """Main configuration container.

    Aggregates all configuration sections.
    """

    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Backend used when the CLI does not name one: "pyav" or "stub"
    backend: str = "pyav"

    # Encode profile applied when the CLI does not name one
    default_profile: Path | None = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_backends = {"pyav", "stub"}
        if self.backend not in valid_backends:
            raise ValueError(
                f"backend must be one of {valid_backends}, got {self.backend}"
            )

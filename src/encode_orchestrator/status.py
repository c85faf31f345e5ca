"""Progress snapshot of a running encode session."""

from dataclasses import dataclass

# Lower bound for the completed fraction so extrapolation never divides by zero.
MIN_RELATIVE_POSITION = 0.0001

# Lower bound for elapsed wall time when deriving rates.
MIN_ELAPSED_SECONDS = 0.001

BYTES_PER_MEGABYTE = 1048576.0


@dataclass(frozen=True)
class EncodeStatus:
    """Estimates derived from session counters.

    Attributes:
        minutes_remaining: Linear extrapolation of the remaining time.
        megabytes: Extrapolated final output size.
        fps: Average video frames per second, if video was written.
        audio_speed: Audio seconds encoded per wall second, if only audio
            was written.
    """

    minutes_remaining: float
    megabytes: float
    fps: float | None = None
    audio_speed: float | None = None

    def format(self) -> str:
        """Render the snapshot as a compact status string."""
        if self.fps is not None:
            return (
                f"{{{self.minutes_remaining:.1f}min {self.fps:.1f}fps "
                f"{self.megabytes:.1f}MB}}"
            )
        if self.audio_speed is not None:
            return (
                f"{{{self.minutes_remaining:.1f}min {self.audio_speed:.2f}x "
                f"{self.megabytes:.1f}MB}}"
            )
        return f"{{{self.minutes_remaining:.1f}min {self.megabytes:.1f}MB}}"


def compute_status(
    relative_position: float,
    elapsed_seconds: float,
    output_bytes: int | None,
    frames: int,
    audio_seconds: float,
) -> EncodeStatus:
    """Derive an EncodeStatus from raw counters.

    Args:
        relative_position: Fraction of the total work completed (0-1).
        elapsed_seconds: Wall time since the header was written.
        output_bytes: Current output size, or None if there is no file.
        frames: Video frames written.
        audio_seconds: Audio duration written.

    Returns:
        Status snapshot.
    """
    f = max(MIN_RELATIVE_POSITION, relative_position)
    elapsed = max(MIN_ELAPSED_SECONDS, elapsed_seconds)

    minutes = elapsed / 60.0 * (1 - f) / f
    megabytes = output_bytes / BYTES_PER_MEGABYTE / f if output_bytes else 0.0

    if frames:
        return EncodeStatus(minutes, megabytes, fps=frames / elapsed)
    if audio_seconds:
        return EncodeStatus(minutes, megabytes, audio_speed=audio_seconds / elapsed)
    return EncodeStatus(minutes, megabytes)

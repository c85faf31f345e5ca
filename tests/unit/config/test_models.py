"""Tests for configuration models."""

import pytest

from encode_orchestrator.config.models import EncodeOptions, LoggingConfig


class TestEncodeOptions:
    """Tests for EncodeOptions validation."""

    def test_defaults(self) -> None:
        """Should default to copying metadata and no ordering."""
        options = EncodeOptions(file="out.mkv")
        assert options.copy_metadata is True
        assert options.video_first is False
        assert options.fps == 0.0

    def test_empty_file_rejected(self) -> None:
        """Should require an output path."""
        with pytest.raises(ValueError, match="file"):
            EncodeOptions(file="")

    @pytest.mark.parametrize("fps", [-1.0, 1_000_001.0])
    def test_fps_range(self, fps: float) -> None:
        """Should reject frame rates outside 0..1e6."""
        with pytest.raises(ValueError, match="fps"):
            EncodeOptions(file="out.mkv", fps=fps)

    def test_offset_range(self) -> None:
        """Should reject offsets outside +-1e6."""
        with pytest.raises(ValueError, match="audio_offset"):
            EncodeOptions(file="out.mkv", audio_offset=-2_000_000.0)

    def test_both_first_flags_rejected(self) -> None:
        """Should reject video_first together with audio_first."""
        with pytest.raises(ValueError, match="mutually exclusive"):
            EncodeOptions(file="out.mkv", video_first=True, audio_first=True)

    def test_is_frozen(self) -> None:
        """Should not allow mutation."""
        options = EncodeOptions(file="out.mkv")
        with pytest.raises(AttributeError):
            options.fps = 25.0  # type: ignore[misc]


class TestLoggingConfig:
    """Tests for LoggingConfig validation."""

    def test_invalid_level(self) -> None:
        """Should reject unknown levels."""
        with pytest.raises(ValueError, match="level"):
            LoggingConfig(level="verbose")

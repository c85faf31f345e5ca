"""Tests for the check command and encode option flags."""

from encode_orchestrator.cli import main
from encode_orchestrator.cli.exit_codes import ExitCode


def _check(runner, *args: str):
    return runner.invoke(main, ["--backend", "stub", "check", *args])


class TestCheckCommand:
    """Tests for the check command."""

    def test_resolves_defaults(self, runner) -> None:
        """Should report the format and default encoders."""
        result = _check(runner, "out.mkv")
        assert result.exit_code == 0
        assert "Format: matroska (Matroska)" in result.output
        assert "Video encoder: libx264" in result.output
        assert "Audio encoder: aac" in result.output

    def test_explicit_format_and_codec(self, runner) -> None:
        result = _check(runner, "out.bin", "--format", "bogus,nut", "--vc", "ffv1")
        assert result.exit_code == 0
        assert "Format: nut" in result.output
        assert "Video encoder: ffv1" in result.output

    def test_audio_only_format(self, runner) -> None:
        result = _check(runner, "out.wav")
        assert result.exit_code == 0
        assert "Video encoder: -" in result.output

    def test_stdout_output(self, runner) -> None:
        result = _check(runner, "-", "--format", "nut")
        assert result.exit_code == 0
        assert "Output: pipe:1" in result.output

    def test_unknown_format(self, runner) -> None:
        result = _check(runner, "out.xyz")
        assert result.exit_code == ExitCode.FORMAT_NOT_FOUND
        assert "format not found" in result.output

    def test_no_usable_codec(self, runner) -> None:
        result = _check(runner, "out.mkv", "--vc", "nope", "--ac", "nope")
        assert result.exit_code == ExitCode.NO_USABLE_CODEC


class TestEncodeOptionFlags:
    """Tests for profile and flag validation."""

    def test_missing_profile(self, runner, temp_dir) -> None:
        result = _check(runner, "out.mkv", "--profile", str(temp_dir / "none.yaml"))
        assert result.exit_code == ExitCode.PROFILE_NOT_FOUND

    def test_invalid_profile(self, runner, temp_dir) -> None:
        """Should reject unknown profile keys."""
        profile = temp_dir / "bad.yaml"
        profile.write_text("video_codecs: libx264\n")
        result = _check(runner, "out.mkv", "--profile", str(profile))
        assert result.exit_code == ExitCode.PROFILE_VALIDATION_ERROR

    def test_profile_values_used(self, runner, temp_dir) -> None:
        """Should apply the profile and let flags override it."""
        profile = temp_dir / "p.yaml"
        profile.write_text("format: nut\nvideo_codec: ffv1\naudio_codec: flac\n")
        result = _check(
            runner, "out.mkv", "--profile", str(profile), "--ac", "pcm_s16le"
        )
        assert result.exit_code == 0
        assert "Format: nut" in result.output
        assert "Video encoder: ffv1" in result.output
        assert "Audio encoder: pcm_s16le" in result.output

    def test_conflicting_stream_order(self, runner) -> None:
        result = _check(runner, "out.mkv", "--video-first", "--audio-first")
        assert result.exit_code == ExitCode.INVALID_OPTIONS

    def test_negative_fps(self, runner) -> None:
        result = _check(runner, "out.mkv", "--fps", "-1")
        assert result.exit_code == ExitCode.INVALID_OPTIONS

    def test_malformed_metadata(self, runner) -> None:
        result = _check(runner, "out.mkv", "--set-metadata", "novalue")
        assert result.exit_code == 2

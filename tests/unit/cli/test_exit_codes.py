"""Tests for CLI exit codes."""

from encode_orchestrator.cli.exit_codes import ExitCode


class TestExitCode:
    """Tests for ExitCode enum."""

    def test_stable_values(self) -> None:
        """Exit codes are part of the CLI contract."""
        assert ExitCode.SUCCESS == 0
        assert ExitCode.GENERAL_ERROR == 1
        assert ExitCode.PROFILE_VALIDATION_ERROR == 10
        assert ExitCode.PROFILE_NOT_FOUND == 12
        assert ExitCode.INVALID_OPTIONS == 13
        assert ExitCode.FORMAT_NOT_FOUND == 40
        assert ExitCode.NO_USABLE_CODEC == 41

    def test_unique_values(self) -> None:
        values = [code.value for code in ExitCode]
        assert len(values) == len(set(values))

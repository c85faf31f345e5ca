"""Integration tests for the testsrc command on the stub backend."""

import pytest
from click.testing import CliRunner

from encode_orchestrator.backend.stub import HEADER_MAGIC
from encode_orchestrator.cli import main

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def isolated_cli(monkeypatch: pytest.MonkeyPatch, temp_dir) -> None:
    monkeypatch.setenv(
        "ENCODE_ORCHESTRATOR_CONFIG_PATH", str(temp_dir / "missing.toml")
    )
    monkeypatch.setattr(
        "encode_orchestrator.logging.configure_logging", lambda config: None
    )


def _testsrc(output, *args: str):
    return CliRunner().invoke(
        main,
        [
            "--backend", "stub", "testsrc", str(output),
            "--duration", "0.2", "--rate", "10", *args,
        ],
    )


class TestTestsrcCommand:
    """Tests for encoding the synthetic source."""

    def test_writes_output(self, temp_dir) -> None:
        output = temp_dir / "out.nut"
        result = _testsrc(output)
        assert result.exit_code == 0, result.output
        assert f"Wrote {output}" in result.output
        data = output.read_bytes()
        assert data.startswith(HEADER_MAGIC)
        assert b"comment=encode-orchestrator test source" in data

    def test_two_pass(self, temp_dir) -> None:
        """Pass 1 leaves a statistics log that pass 2 consumes."""
        output = temp_dir / "out.nut"
        result = _testsrc(output, "--video-option", "flags=+pass1")
        assert result.exit_code == 0, result.output

        log = temp_dir / "out.nut-vo-lavc-pass1.log"
        content = log.read_text()
        assert "in:0 out:0 size:1200;" in content
        assert "in:1 out:1 size:1200;" in content
        assert content.endswith("#frames:2\n")

        result = _testsrc(output, "--video-option", "flags=+pass2")
        assert result.exit_code == 0, result.output

    def test_pass2_without_log_still_encodes(self, temp_dir) -> None:
        result = _testsrc(temp_dir / "out.nut", "--video-option", "flags=+pass2")
        assert result.exit_code == 0, result.output

    def test_unknown_video_codec_fails(self, temp_dir) -> None:
        result = _testsrc(temp_dir / "out.nut", "--vc", "nope")
        assert result.exit_code == 1
        assert "encoding failed" in result.output

    def test_unknown_format(self, temp_dir) -> None:
        result = _testsrc(temp_dir / "out.xyz")
        assert result.exit_code == 42

    def test_invalid_size(self, temp_dir) -> None:
        result = _testsrc(temp_dir / "out.nut", "--size", "big")
        assert result.exit_code == 2

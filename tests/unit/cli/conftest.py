"""Fixtures for CLI tests."""

import pytest
from click.testing import CliRunner


@pytest.fixture(autouse=True)
def isolated_cli(monkeypatch: pytest.MonkeyPatch, temp_dir) -> None:
    """Keep CLI invocations away from user config and pytest's log handlers."""
    monkeypatch.setenv(
        "ENCODE_ORCHESTRATOR_CONFIG_PATH", str(temp_dir / "missing.toml")
    )
    for name in ("BACKEND", "PROFILE", "LOG_LEVEL", "LOG_FILE", "LOG_FORMAT"):
        monkeypatch.delenv(f"ENCODE_ORCHESTRATOR_{name}", raising=False)
    monkeypatch.setattr(
        "encode_orchestrator.logging.configure_logging", lambda config: None
    )


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()

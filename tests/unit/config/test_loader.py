"""Tests for config loader module."""

from __future__ import annotations

from pathlib import Path

import pytest

from encode_orchestrator.config.env import EnvReader
from encode_orchestrator.config.loader import (
    DEFAULT_CONFIG_FILE,
    ConfigError,
    apply_logging_flags,
    get_config,
    get_default_config_path,
    load_config_file,
)
from encode_orchestrator.config.models import LoggingConfig


class TestGetDefaultConfigPath:
    """Tests for get_default_config_path function."""

    def test_returns_default_when_env_not_set(self) -> None:
        """Should return default path without the env variable."""
        assert get_default_config_path(EnvReader(env={})) == DEFAULT_CONFIG_FILE

    def test_returns_env_path_when_set(self) -> None:
        """Should return env path when ENCODE_ORCHESTRATOR_CONFIG_PATH is set."""
        env = EnvReader(env={"ENCODE_ORCHESTRATOR_CONFIG_PATH": "/custom/config.toml"})
        assert get_default_config_path(env) == Path("/custom/config.toml")


class TestLoadConfigFile:
    """Tests for load_config_file function."""

    def test_missing_file_returns_empty(self, temp_dir: Path) -> None:
        """Should return an empty dict for a missing file."""
        assert load_config_file(temp_dir / "missing.toml") == {}

    def test_parses_toml(self, temp_dir: Path) -> None:
        """Should parse TOML sections."""
        path = temp_dir / "config.toml"
        path.write_text('[encode]\nbackend = "stub"\n')
        assert load_config_file(path) == {"encode": {"backend": "stub"}}

    def test_invalid_toml_returns_empty(self, temp_dir: Path) -> None:
        """Should warn and return empty for invalid TOML."""
        path = temp_dir / "config.toml"
        path.write_text("[encode\n")
        assert load_config_file(path) == {}

    def test_invalid_toml_strict_raises(self, temp_dir: Path) -> None:
        """Should raise ConfigError in strict mode."""
        path = temp_dir / "config.toml"
        path.write_text("[encode\n")
        with pytest.raises(ConfigError):
            load_config_file(path, strict=True)


class TestGetConfig:
    """Tests for get_config precedence."""

    @pytest.fixture
    def config_file(self, temp_dir: Path) -> Path:
        path = temp_dir / "config.toml"
        path.write_text(
            "[encode]\n"
            'backend = "stub"\n'
            "\n"
            "[logging]\n"
            'level = "debug"\n'
            'format = "json"\n'
        )
        return path

    def test_defaults(self, temp_dir: Path) -> None:
        """Should use defaults without file or env."""
        config = get_config(config_path=temp_dir / "none.toml", env=EnvReader(env={}))
        assert config.backend == "pyav"
        assert config.logging.level == "info"
        assert config.logging.format == "text"
        assert config.default_profile is None

    def test_file_values(self, config_file: Path) -> None:
        """Should read values from the config file."""
        config = get_config(config_path=config_file, env=EnvReader(env={}))
        assert config.backend == "stub"
        assert config.logging.level == "debug"
        assert config.logging.format == "json"

    def test_env_overrides_file(self, config_file: Path) -> None:
        """Should prefer environment variables over the file."""
        env = EnvReader(
            env={
                "ENCODE_ORCHESTRATOR_BACKEND": "pyav",
                "ENCODE_ORCHESTRATOR_LOG_LEVEL": "warning",
            }
        )
        config = get_config(config_path=config_file, env=env)
        assert config.backend == "pyav"
        assert config.logging.level == "warning"

    def test_cli_overrides_env(self, config_file: Path) -> None:
        """Should prefer CLI arguments over everything else."""
        env = EnvReader(env={"ENCODE_ORCHESTRATOR_BACKEND": "pyav"})
        config = get_config(config_path=config_file, env=env, backend="stub")
        assert config.backend == "stub"

    def test_invalid_backend_raises(self, temp_dir: Path) -> None:
        """Should reject unknown backend names."""
        env = EnvReader(env={"ENCODE_ORCHESTRATOR_BACKEND": "gstreamer"})
        with pytest.raises(ValueError, match="backend"):
            get_config(config_path=temp_dir / "none.toml", env=env)

    def test_invalid_env_log_level_falls_back_to_file(self, config_file: Path) -> None:
        """Should ignore an unusable env value and use the file's."""
        env = EnvReader(env={"ENCODE_ORCHESTRATOR_LOG_LEVEL": "loud"})
        config = get_config(config_path=config_file, env=env)
        assert config.logging.level == "debug"


class TestApplyLoggingFlags:
    """Tests for apply_logging_flags function."""

    def test_unset_flags_keep_base(self) -> None:
        base = LoggingConfig(level="warning", file=Path("/tmp/a.log"), max_bytes=10)
        assert apply_logging_flags(base) == base

    def test_flags_override(self) -> None:
        """Should apply level, file and JSON format from the CLI."""
        base = LoggingConfig(level="warning", backup_count=2)
        result = apply_logging_flags(
            base, level="DEBUG", file=Path("/tmp/b.log"), json_format=True
        )
        assert result.level == "debug"
        assert result.file == Path("/tmp/b.log")
        assert result.format == "json"
        assert result.backup_count == 2

    def test_invalid_level_raises(self) -> None:
        with pytest.raises(ValueError, match="level"):
            apply_logging_flags(LoggingConfig(), level="verbose")

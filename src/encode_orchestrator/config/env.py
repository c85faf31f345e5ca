"""ENCODE_ORCHESTRATOR_* environment settings.

Settings are looked up by their short name ("LOG_LEVEL") and read from
the prefixed variable ("ENCODE_ORCHESTRATOR_LOG_LEVEL"). Empty values
count as unset. Values that cannot be used are logged and ignored so the
next source in the precedence chain applies.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Collection, Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

ENV_PREFIX = "ENCODE_ORCHESTRATOR_"

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


class EnvReader:
    """Reads orchestrator settings from the environment.

    Example:
        env = EnvReader(env={"ENCODE_ORCHESTRATOR_BACKEND": "stub"})
        env.get_choice("BACKEND", ("pyav", "stub"))  # "stub"
    """

    def __init__(
        self, env: Mapping[str, str] | None = None, prefix: str = ENV_PREFIX
    ) -> None:
        self._env: Mapping[str, str] = env if env is not None else os.environ
        self.prefix = prefix

    def variable(self, name: str) -> str:
        """Full variable name for a setting."""
        return f"{self.prefix}{name}"

    def _raw(self, name: str) -> str | None:
        value = self._env.get(self.variable(name))
        if value is None or not value.strip():
            return None
        return value.strip()

    def get_str(self, name: str) -> str | None:
        return self._raw(name)

    def get_choice(self, name: str, choices: Collection[str]) -> str | None:
        """Read a case-insensitive setting restricted to known values."""
        value = self._raw(name)
        if value is None:
            return None
        if value.lower() not in choices:
            logger.warning(
                "Ignoring %s=%s, expected one of %s",
                self.variable(name),
                value,
                ", ".join(sorted(choices)),
            )
            return None
        return value.lower()

    def get_bool(self, name: str) -> bool | None:
        """Read an on/off setting; unrecognized spellings are ignored."""
        value = self._raw(name)
        if value is None:
            return None
        if value.lower() in _TRUE_VALUES:
            return True
        if value.lower() in _FALSE_VALUES:
            return False
        logger.warning("Ignoring %s=%s, expected a boolean", self.variable(name), value)
        return None

    def get_path(self, name: str, must_exist: bool = True) -> Path | None:
        """Read a path setting.

        Args:
            name: Setting name without the prefix.
            must_exist: Ignore (with a warning) paths that do not exist,
                e.g. an encode profile. Log files may not exist yet.
        """
        value = self._raw(name)
        if value is None:
            return None
        path = Path(value).expanduser()
        if must_exist and not path.exists():
            logger.warning(
                "Environment variable %s points to non-existent path: %s",
                self.variable(name),
                value,
            )
            return None
        return path

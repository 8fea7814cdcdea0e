"""Configuration models using Pydantic."""

import os
import re
import shutil
import sys
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Option keys understood by the backends, with their defaults.
OPTION_USER_SERVICE = "UserService"
OPTION_USER_SERVICE_DEFAULT = False

OPTION_RUNIT_SCRIPT = "RunItScript"

OPTION_RUN_WAIT = "RunWait"

OPTION_SETTLE_TIMEOUT = "SettleTimeout"
OPTION_SETTLE_TIMEOUT_DEFAULT = 6.0

OPTION_SETTLE_INTERVAL = "SettleInterval"
OPTION_SETTLE_INTERVAL_DEFAULT = 0.5

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


class ConfigError(Exception):
    """Configuration error."""

    pass


def parse_duration(value: Any) -> float:
    """Convert a duration option to seconds.

    Accepts ints/floats (seconds), ``timedelta`` values, and strings such
    as ``"6s"``, ``"500ms"`` or ``"2m"``. A bare number string is seconds.
    """
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, int | float):
        seconds = float(value)
    elif isinstance(value, str) and (match := _DURATION_RE.match(value)):
        number, unit = match.groups()
        seconds = float(number) * _DURATION_UNITS[unit or "s"]
    else:
        raise ConfigError(f"Invalid duration: {value!r}")
    if seconds < 0:
        raise ConfigError(f"Duration must not be negative: {value!r}")
    return seconds


class ServiceConfig(BaseModel):
    """Description of a service to install.

    Owned by the caller; backends only read it. The ``options`` map holds
    backend-specific settings, read through the typed ``option_*``
    accessors so each key's default lives in one place.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str = ""
    description: str = ""
    working_directory: str = ""
    executable: str = ""
    arguments: list[str] = Field(default_factory=list)
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not value or value in (".", "..") or "/" in value or "\0" in value:
            raise ValueError(f"invalid service name: {value!r}")
        return value

    def __str__(self) -> str:
        return self.display_name or self.name

    # ------------------------------------------------------------------
    # Option accessors
    # ------------------------------------------------------------------

    def option_str(self, key: str, default: str = "") -> str:
        value = self.options.get(key)
        if value is None:
            return default
        if not isinstance(value, str):
            raise ConfigError(f"Option {key} must be a string, got {value!r}")
        return value

    def option_bool(self, key: str, default: bool = False) -> bool:
        value = self.options.get(key)
        if value is None:
            return default
        if not isinstance(value, bool):
            raise ConfigError(f"Option {key} must be a boolean, got {value!r}")
        return value

    def option_duration(self, key: str, default: float) -> float:
        """Return a duration option in seconds."""
        value = self.options.get(key)
        if value is None:
            return default
        try:
            return parse_duration(value)
        except ConfigError as e:
            raise ConfigError(f"Option {key}: {e}") from e

    def option_callable(
        self, key: str, default: Callable[..., Any] | None = None
    ) -> Callable[..., Any] | None:
        """Return a callable option.

        Exactly one value is ever selected: the configured callable if
        present, otherwise ``default``.
        """
        value = self.options.get(key)
        if value is None:
            return default
        if not callable(value):
            raise ConfigError(f"Option {key} must be callable, got {value!r}")
        return value

    # ------------------------------------------------------------------
    # Executable resolution
    # ------------------------------------------------------------------

    def exec_path(self) -> Path:
        """Resolve the executable to an absolute path.

        Bare command names are looked up on PATH. With no executable
        configured, the currently running program is used.
        """
        executable = self.executable or sys.argv[0]
        if not executable:
            raise ConfigError(f"No executable configured for service {self.name}")

        if os.sep not in executable:
            found = shutil.which(executable)
            if found is None:
                raise ConfigError(f"Executable not found on PATH: {executable}")
            executable = found

        return Path(os.path.abspath(executable))

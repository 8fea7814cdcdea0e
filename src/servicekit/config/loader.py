"""Service configuration loading from TOML files."""

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from servicekit.config.models import ConfigError, ServiceConfig

CONFIG_ENV_VAR = "SERVICEKIT_CONFIG"


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    paths = [Path("service.toml")]  # Current directory
    if env_path := os.environ.get(CONFIG_ENV_VAR):
        paths.append(Path(env_path))
    return paths


def _extract_service_table(raw: dict[str, Any], path: Path) -> dict[str, Any]:
    section = raw.get("service")
    if not isinstance(section, dict):
        raise ConfigError(f"Missing [service] table in {path}")
    return section


def load_service_config(path: Path | None = None) -> ServiceConfig:
    """Load a service configuration from TOML.

    The file holds a ``[service]`` table and an optional
    ``[service.options]`` table, e.g.::

        [service]
        name = "myapp"
        executable = "/usr/local/bin/myapp"
        arguments = ["--port", "8080"]

        [service.options]
        SettleTimeout = "10s"

    Args:
        path: Explicit path to config file. If None, searches default locations.

    Returns:
        Validated ServiceConfig instance.

    Raises:
        FileNotFoundError: If no config file is found.
        ConfigError: If the config file is invalid.
    """
    config_path: Path | None = None

    default_paths = _get_default_config_paths()

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in default_paths:
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    if config_path is None:
        raise FileNotFoundError(
            f"No config file found. Searched: {', '.join(str(p) for p in default_paths)}"
        )

    try:
        with config_path.open("rb") as f:
            raw_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    section = _extract_service_table(raw_config, config_path)

    try:
        return ServiceConfig.model_validate(section)
    except ValidationError as e:
        raise ConfigError(f"Invalid service config in {config_path}: {e}") from e

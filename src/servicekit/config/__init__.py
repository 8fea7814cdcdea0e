"""Configuration module."""

from servicekit.config.loader import load_service_config
from servicekit.config.models import (
    OPTION_RUN_WAIT,
    OPTION_RUNIT_SCRIPT,
    OPTION_SETTLE_INTERVAL,
    OPTION_SETTLE_TIMEOUT,
    OPTION_USER_SERVICE,
    ConfigError,
    ServiceConfig,
    parse_duration,
)
from servicekit.config.settings import RunitSettings

__all__ = [
    "OPTION_RUNIT_SCRIPT",
    "OPTION_RUN_WAIT",
    "OPTION_SETTLE_INTERVAL",
    "OPTION_SETTLE_TIMEOUT",
    "OPTION_USER_SERVICE",
    "ConfigError",
    "RunitSettings",
    "ServiceConfig",
    "load_service_config",
    "parse_duration",
]

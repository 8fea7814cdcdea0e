"""Operating-system service management.

Provides a uniform install/uninstall/start/stop/status contract over the
host supervisor. Implemented backends:
- runit (``sv`` with a supervised service directory)

Example:
    from servicekit.config import ServiceConfig
    from servicekit.service import RunitService

    service = RunitService(program, ServiceConfig(name="web", executable="/usr/bin/web"))
    await service.install()
    state = await service.status()
"""

from servicekit.service.backends import detect_backend, get_backend
from servicekit.service.backends.runit import RunitService
from servicekit.service.base import (
    Program,
    ServiceBackend,
    ServiceState,
    ServiceStatus,
    WaitStrategy,
)
from servicekit.service.errors import (
    AlreadyExistsError,
    ExternalCommandError,
    ServiceError,
    SettleTimeoutError,
    StatusParseError,
    TemplateError,
    UnsupportedFeatureError,
)
from servicekit.service.manager import ServiceManager
from servicekit.service.program import CommandProgram

__all__ = [
    "AlreadyExistsError",
    "CommandProgram",
    "ExternalCommandError",
    "Program",
    "RunitService",
    "ServiceBackend",
    "ServiceError",
    "ServiceManager",
    "ServiceState",
    "ServiceStatus",
    "SettleTimeoutError",
    "StatusParseError",
    "TemplateError",
    "UnsupportedFeatureError",
    "WaitStrategy",
    "detect_backend",
    "get_backend",
]

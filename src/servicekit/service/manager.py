"""High-level service management interface."""

import logging

from servicekit.config.models import ConfigError
from servicekit.service.base import ServiceBackend, ServiceState, ServiceStatus
from servicekit.service.errors import ServiceError, StatusParseError

logger = logging.getLogger(__name__)


class ServiceManager:
    """High-level service management interface.

    Wraps a backend and turns its exceptions into ``(success, message)``
    pairs for the CLI. Only service and configuration errors are caught;
    anything else is a bug and propagates.

    Example:
        manager = ServiceManager(backend)
        success, message = await manager.install()
        status = await manager.status()
    """

    def __init__(self, backend: ServiceBackend):
        self._backend = backend

    @property
    def backend(self) -> ServiceBackend:
        return self._backend

    @property
    def backend_name(self) -> str:
        """Get the name of the active backend."""
        return self._backend.name

    async def install(self) -> tuple[bool, str]:
        try:
            await self._backend.install()
        except (ServiceError, ConfigError) as e:
            logger.error("Install failed: %s", e)
            return False, f"Error installing service: {e}"
        return True, f"Installed {self._backend} using {self.backend_name}"

    async def uninstall(self) -> tuple[bool, str]:
        try:
            await self._backend.uninstall()
        except (ServiceError, ConfigError) as e:
            logger.error("Uninstall failed: %s", e)
            return False, f"Error uninstalling service: {e}"
        return True, f"Uninstalled {self._backend}"

    async def start(self) -> tuple[bool, str]:
        try:
            status = await self.status()
            if status.state == ServiceState.RUNNING:
                return False, f"Service already running (PID {status.pid})"
            await self._backend.start()
        except ServiceError as e:
            return False, f"Error starting service: {e}"
        return True, f"Service {self._backend} started"

    async def stop(self) -> tuple[bool, str]:
        try:
            status = await self.status()
            if status.state == ServiceState.STOPPED:
                return True, "Service already stopped"
            await self._backend.stop()
        except ServiceError as e:
            return False, f"Error stopping service: {e}"
        return True, f"Service {self._backend} stopped"

    async def restart(self) -> tuple[bool, str]:
        try:
            await self._backend.restart()
        except ServiceError as e:
            return False, f"Error restarting service: {e}"
        return True, f"Service {self._backend} restarted"

    async def status(self) -> ServiceStatus:
        """Get current service status, with the pid when running.

        Raises:
            ServiceError: If the supervisor cannot be queried.
        """
        state = await self._backend.status()
        pid = None
        message = None
        if state == ServiceState.RUNNING:
            try:
                pid = await self._backend.get_pid()
            except StatusParseError as e:
                message = str(e)
        return ServiceStatus(state=state, pid=pid, message=message)

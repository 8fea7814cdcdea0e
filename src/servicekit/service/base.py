"""Abstract contract shared by every service backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from servicekit.config.models import ServiceConfig
    from servicekit.logging import ServiceLogger

WaitStrategy = Callable[[], Awaitable[None]]


class ServiceState(Enum):
    """Service running state."""

    RUNNING = "running"
    STOPPED = "stopped"
    UNKNOWN = "unknown"


@dataclass
class ServiceStatus:
    """Service status information."""

    state: ServiceState
    pid: int | None = None
    message: str | None = None


class Program(ABC):
    """Hooks of the program being run as a service.

    ``start`` must not block: it launches the work and returns. ``stop``
    tears it down and returns once it is gone.
    """

    @abstractmethod
    async def start(self, service: ServiceBackend) -> None:
        """Start the program's work."""
        ...

    @abstractmethod
    async def stop(self, service: ServiceBackend) -> None:
        """Stop the program's work."""
        ...


class ServiceBackend(ABC):
    """Abstract interface for service management backends.

    One implementation per host supervisor. Constructing a backend never
    touches the filesystem; every side effect happens in an explicit
    lifecycle call, and each call awaits at most one external command
    at a time.
    """

    config: ServiceConfig

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name (e.g., 'runit')."""
        ...

    @property
    @abstractmethod
    def platform(self) -> str:
        """Platform identifier the backend was built for."""
        ...

    @classmethod
    @abstractmethod
    def is_available(cls) -> bool:
        """Check if this backend's supervisor exists on the current system."""
        ...

    def __str__(self) -> str:
        return str(self.config)

    @abstractmethod
    async def install(self) -> None:
        """Register the service with the supervisor.

        Raises:
            AlreadyExistsError: If the service is already registered.
            UnsupportedFeatureError: If the config asks for something the
                backend cannot do.
        """
        ...

    @abstractmethod
    async def uninstall(self) -> None:
        """Remove the service registration."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Ask the supervisor to start the service."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Ask the supervisor to stop the service."""
        ...

    @abstractmethod
    async def restart(self) -> None:
        """Ask the supervisor to restart the service."""
        ...

    @abstractmethod
    async def status(self) -> ServiceState:
        """Return the supervisor-reported state.

        UNKNOWN is returned, without error, when the supervisor answers but
        its output is not recognised.
        """
        ...

    @abstractmethod
    async def get_pid(self) -> int:
        """Return the pid of the running service process.

        Raises:
            StatusParseError: If no single pid can be read from the output.
        """
        ...

    @abstractmethod
    async def run(self, wait: WaitStrategy | None = None) -> None:
        """Run the program in the foreground until told to stop."""
        ...

    @abstractmethod
    def logger(self) -> ServiceLogger:
        """Return a logger suited to how the process was launched."""
        ...

    @abstractmethod
    def system_logger(self) -> ServiceLogger:
        """Return a logger writing to the host's system log."""
        ...

"""Runit backend for Linux.

A service is a directory ``<definition_dir>/<name>`` holding a ``run``
script, linked into ``<service_dir>`` where ``runsvdir`` picks it up.
Lifecycle commands go through ``sv <verb> <service_dir>/<name>``.
"""

import asyncio
import logging
import shutil
from pathlib import Path

from servicekit.config.models import (
    OPTION_RUN_WAIT,
    OPTION_SETTLE_INTERVAL,
    OPTION_SETTLE_INTERVAL_DEFAULT,
    OPTION_SETTLE_TIMEOUT,
    OPTION_SETTLE_TIMEOUT_DEFAULT,
    OPTION_USER_SERVICE,
    OPTION_USER_SERVICE_DEFAULT,
    ServiceConfig,
)
from servicekit.config.settings import RunitSettings
from servicekit.logging import (
    ServiceLogger,
    console_logger,
    is_interactive,
    system_logger,
)
from servicekit.service.base import Program, ServiceBackend, ServiceState, WaitStrategy
from servicekit.service.command import SupervisorControl
from servicekit.service.errors import SettleTimeoutError, UnsupportedFeatureError
from servicekit.service.registration import Registration
from servicekit.service.runner import run_foreground
from servicekit.service.status import interpret_pid, interpret_status
from servicekit.service.template import render_run_script

logger = logging.getLogger(__name__)

PLATFORM = "linux-runit"


class RunitService(ServiceBackend):
    """Runit service backend.

    Uses ``sv`` for service management. Definition stored in
    ``/etc/runit/<name>/run``, linked from ``/etc/service/<name>``.
    Both roots come from ``RunitSettings``.
    """

    def __init__(
        self,
        program: Program,
        config: ServiceConfig,
        settings: RunitSettings | None = None,
        control: SupervisorControl | None = None,
    ):
        self.program = program
        self.config = config
        self.settings = settings or RunitSettings.from_env()
        self.control = control or SupervisorControl(self.settings.control_binary)
        self.registration = Registration(
            definition_path=self.settings.definition_dir / config.name,
            live_path=self.settings.service_dir / config.name,
        )

    @property
    def name(self) -> str:
        return "runit"

    @property
    def platform(self) -> str:
        return PLATFORM

    @classmethod
    def is_available(cls, settings: RunitSettings | None = None) -> bool:
        """Check whether ``runsvdir`` is on PATH."""
        probe = (settings or RunitSettings.from_env()).probe_binary
        return shutil.which(probe) is not None

    @property
    def live_path(self) -> Path:
        """Path handed to ``sv``."""
        return self.registration.live_path

    def _check_user_service(self) -> None:
        if self.config.option_bool(OPTION_USER_SERVICE, OPTION_USER_SERVICE_DEFAULT):
            raise UnsupportedFeatureError("User services are not supported on runit")

    # ------------------------------------------------------------------
    # Install / Uninstall
    # ------------------------------------------------------------------

    async def install(self) -> None:
        """Write the definition, link it live, and wait for runsv.

        On failure after the directory is created, whatever was written is
        left in place for inspection; ``uninstall`` cleans up either half.
        """
        self._check_user_service()
        timeout = self.config.option_duration(
            OPTION_SETTLE_TIMEOUT, OPTION_SETTLE_TIMEOUT_DEFAULT
        )
        interval = self.config.option_duration(
            OPTION_SETTLE_INTERVAL, OPTION_SETTLE_INTERVAL_DEFAULT
        )

        self.registration.create_directory()
        exec_path = self.config.exec_path()
        script = render_run_script(self.config, exec_path)
        self.registration.write_run_script(script)
        self.registration.activate()
        logger.info("Installed %s as %s", self.config.name, self.live_path)

        await self._settle(timeout, interval)

    async def _settle(self, timeout: float, interval: float) -> ServiceState:
        """Poll status until the supervisor reports a recognised state.

        A timeout of zero skips the wait.

        Raises:
            SettleTimeoutError: If no state is reported within ``timeout``.
        """
        if timeout <= 0:
            return ServiceState.UNKNOWN

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            state = await self.status()
            if state is not ServiceState.UNKNOWN:
                logger.debug("%s settled as %s", self.config.name, state.value)
                return state
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise SettleTimeoutError(self.live_path, timeout)
            await asyncio.sleep(min(interval, remaining))

    async def uninstall(self) -> None:
        self._check_user_service()
        self.registration.remove()
        logger.info("Uninstalled %s", self.config.name)

    # ------------------------------------------------------------------
    # Start / Stop
    # ------------------------------------------------------------------

    async def start(self) -> None:
        await self.control.run("up", str(self.live_path))

    async def stop(self) -> None:
        await self.control.run("down", str(self.live_path))

    async def restart(self) -> None:
        await self.control.run("restart", str(self.live_path))

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    async def status(self) -> ServiceState:
        result = await self.control.query("status", str(self.live_path))
        return interpret_status(result)

    async def get_pid(self) -> int:
        result = await self.control.query("status", str(self.live_path))
        return interpret_pid(result)

    # ------------------------------------------------------------------
    # Foreground
    # ------------------------------------------------------------------

    async def run(self, wait: WaitStrategy | None = None) -> None:
        """Run the program in the foreground.

        The wait strategy is, in order: the ``wait`` argument, the
        ``RunWait`` option, or waiting for SIGINT/SIGTERM.
        """
        strategy = wait or self.config.option_callable(OPTION_RUN_WAIT)
        await run_foreground(self, self.program, strategy)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def logger(self) -> ServiceLogger:
        if is_interactive():
            return console_logger(self.config.name)
        return self.system_logger()

    def system_logger(self) -> ServiceLogger:
        return system_logger(self.config.name)

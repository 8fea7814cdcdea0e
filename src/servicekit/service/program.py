"""Program hooks that run an external command as the service's work."""

import asyncio
import logging
import signal

from servicekit.service.base import Program, ServiceBackend

logger = logging.getLogger(__name__)

STOP_TIMEOUT = 3.0


class CommandProgram(Program):
    """Spawns a command on start and terminates it on stop.

    Stop sends SIGTERM, waits up to ``stop_timeout`` seconds, then kills.
    """

    def __init__(
        self,
        command: list[str],
        cwd: str | None = None,
        stop_timeout: float = STOP_TIMEOUT,
    ):
        if not command:
            raise ValueError("command must not be empty")
        self.command = command
        self.cwd = cwd
        self.stop_timeout = stop_timeout
        self._proc: asyncio.subprocess.Process | None = None

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc else None

    @property
    def returncode(self) -> int | None:
        return self._proc.returncode if self._proc else None

    async def start(self, service: ServiceBackend) -> None:
        self._proc = await asyncio.create_subprocess_exec(
            *self.command,
            cwd=self.cwd,
            stdin=asyncio.subprocess.DEVNULL,
        )
        logger.info("Started %s (pid %d)", service, self._proc.pid)

    async def stop(self, service: ServiceBackend) -> None:
        proc = self._proc
        if proc is None or proc.returncode is not None:
            return

        try:
            proc.send_signal(signal.SIGTERM)
        except ProcessLookupError:
            await proc.wait()
            return

        try:
            await asyncio.wait_for(proc.wait(), timeout=self.stop_timeout)
        except TimeoutError:
            logger.warning("%s did not exit after SIGTERM, killing", service)
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.wait()
        logger.info("Stopped %s (exit %s)", service, proc.returncode)

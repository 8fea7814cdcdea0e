"""Bridge to an external supervisor control binary (``sv`` and friends)."""

import asyncio
import logging
from dataclasses import dataclass

from servicekit.service.errors import ExternalCommandError

logger = logging.getLogger(__name__)

# Shell conventions for "command not found" and "cannot execute".
EXIT_NOT_FOUND = 127
EXIT_CANNOT_EXECUTE = 126


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one control binary invocation.

    ``output`` is stdout and stderr combined. ``error`` is set only for
    transport failures (missing binary, spawn or I/O errors, signal
    termination); a plain non-zero exit leaves it None so callers can read
    the exit code in context.
    """

    returncode: int
    output: str
    error: ExternalCommandError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0


class SupervisorControl:
    """Runs ``<binary> <verb> <args...>`` and captures the result."""

    def __init__(self, binary: str):
        self.binary = binary

    async def query(self, verb: str, *args: str) -> CommandResult:
        """Run a command whose exit code the caller interprets."""
        argv = (verb, *args)
        logger.debug("Running %s %s", self.binary, " ".join(argv))

        try:
            proc = await asyncio.create_subprocess_exec(
                self.binary,
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                stdin=asyncio.subprocess.DEVNULL,
            )
        except FileNotFoundError:
            return self._failure(argv, EXIT_NOT_FOUND, "", "executable not found")
        except OSError as e:
            return self._failure(argv, EXIT_CANNOT_EXECUTE, "", str(e))

        try:
            stdout, _ = await proc.communicate()
        except OSError as e:
            returncode = proc.returncode if proc.returncode else EXIT_CANNOT_EXECUTE
            return self._failure(argv, returncode, "", f"reading output: {e}")

        output = stdout.decode(errors="replace")
        returncode = proc.returncode if proc.returncode is not None else 0
        logger.debug("%s %s exited %d: %s", self.binary, verb, returncode, output.strip())

        if returncode < 0:
            return self._failure(
                argv, returncode, output, f"terminated by signal {-returncode}"
            )
        return CommandResult(returncode=returncode, output=output)

    async def run(self, verb: str, *args: str) -> str:
        """Run a command that must succeed.

        Returns:
            The combined output.

        Raises:
            ExternalCommandError: On any transport error or non-zero exit.
        """
        result = await self.query(verb, *args)
        if result.error is not None:
            raise result.error
        if result.returncode != 0:
            raise ExternalCommandError(
                self.binary, (verb, *args), result.returncode, result.output
            )
        return result.output

    def _failure(
        self, argv: tuple[str, ...], returncode: int, output: str, reason: str
    ) -> CommandResult:
        error = ExternalCommandError(self.binary, argv, returncode, output, reason)
        return CommandResult(returncode=returncode, output=output, error=error)

"""Exception hierarchy for service backends.

Every failure surfaces to the caller unchanged; nothing here is retried.
"""

from pathlib import Path


class ServiceError(Exception):
    """Base class for all service management errors."""


class AlreadyExistsError(ServiceError):
    """Install was attempted over an existing registration."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Service definition already exists: {path}")


class UnsupportedFeatureError(ServiceError):
    """The backend cannot provide the requested capability."""


class StatusParseError(ServiceError):
    """Supervisor output did not match the expected pattern."""

    def __init__(self, message: str, output: str):
        self.output = output
        super().__init__(f"{message}: {output.strip()!r}")


class ExternalCommandError(ServiceError):
    """The supervisor control binary could not be run or failed."""

    def __init__(
        self,
        binary: str,
        args: tuple[str, ...],
        returncode: int,
        output: str = "",
        reason: str | None = None,
    ):
        self.binary = binary
        self.command_args = args
        self.returncode = returncode
        self.output = output
        command = " ".join((binary, *args))
        detail = reason or output.strip() or f"exit status {returncode}"
        super().__init__(f"{command} failed: {detail}")


class TemplateError(ServiceError):
    """The run script template could not be rendered."""


class SettleTimeoutError(ServiceError):
    """The supervisor did not pick up a new registration in time."""

    def __init__(self, path: Path, timeout: float):
        self.path = path
        self.timeout = timeout
        super().__init__(
            f"Supervisor did not report a state for {path} within {timeout:g}s"
        )

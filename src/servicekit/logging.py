"""Centralized logging configuration for servicekit.

Entry points (the CLI) call configure_logging() early. Backends hand out
a ServiceLogger: an interactive console sink when attached to a terminal,
otherwise the host's syslog.

Logging Levels:
- DEBUG: supervisor commands and their raw output
- INFO: lifecycle transitions (installed, started, stopped)
- WARNING: best-effort cleanup that did not apply
- ERROR: failures reported back to the caller
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

LOG_LEVEL_ENV = "SERVICEKIT_LOG_LEVEL"
DEFAULT_SYSLOG_ADDRESS = "/dev/log"


class ComponentFormatter(logging.Formatter):
    """Formatter that extracts component name from logger path.

    Converts full module paths to short component names:
    - servicekit.service.backends.runit -> service
    - servicekit.cli.app -> cli
    """

    def format(self, record: logging.LogRecord) -> str:
        parts = record.name.split(".")
        if len(parts) >= 2 and parts[0] == "servicekit":
            record.component = parts[1]
        else:
            record.component = parts[0]
        return super().format(record)


def configure_logging(level: str | None = None, use_rich: bool = False) -> None:
    """Configure logging for servicekit.

    Call this once at application startup.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
            If None, uses SERVICEKIT_LOG_LEVEL env var or WARNING.
        use_rich: Use Rich handler for colorful output.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        level = "WARNING"

    if use_rich:
        from rich.logging import RichHandler

        console_handler: logging.Handler = RichHandler(
            rich_tracebacks=False,
            show_path=False,
            show_time=True,
            markup=False,
        )
        console_handler.setFormatter(ComponentFormatter("%(component)s | %(message)s"))
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )

    logging.basicConfig(
        level=getattr(logging, level),
        handlers=[console_handler],
        force=True,
    )


def is_interactive() -> bool:
    """Return True when running attached to a terminal."""
    try:
        return sys.stdin.isatty() and sys.stderr.isatty()
    except (AttributeError, ValueError):
        # Closed or replaced streams
        return False


class ServiceLogger:
    """Opaque reporting channel handed to a service program.

    Wraps a dedicated ``logging.Logger`` so console and syslog sinks can be
    swapped without the caller noticing.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def error(self, msg: str, *args: object) -> None:
        self._logger.error(msg, *args)

    def warning(self, msg: str, *args: object) -> None:
        self._logger.warning(msg, *args)

    def info(self, msg: str, *args: object) -> None:
        self._logger.info(msg, *args)


def _dedicated_logger(name: str, handler: logging.Handler) -> logging.Logger:
    logger = logging.getLogger(name)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def console_logger(name: str) -> ServiceLogger:
    """Logger writing to the terminal through Rich."""
    from rich.logging import RichHandler

    handler = RichHandler(show_path=False, show_time=True, markup=False)
    return ServiceLogger(_dedicated_logger(f"servicekit.console.{name}", handler))


def system_logger(
    name: str, address: str | Path | tuple[str, int] = DEFAULT_SYSLOG_ADDRESS
) -> ServiceLogger:
    """Logger writing to the host syslog, tagged with the service name.

    Raises:
        OSError: If the syslog socket cannot be opened.
    """
    if isinstance(address, Path):
        address = str(address)
    handler = logging.handlers.SysLogHandler(
        address=address,
        facility=logging.handlers.SysLogHandler.LOG_DAEMON,
    )
    handler.setFormatter(logging.Formatter(f"{name}: %(message)s"))
    return ServiceLogger(_dedicated_logger(f"servicekit.syslog.{name}", handler))

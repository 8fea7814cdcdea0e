"""Interpretation of ``sv status`` output.

All pattern matching on supervisor prose lives here. Typical lines::

    run: /etc/service/web: (pid 1234) 56s
    down: /etc/service/web: 3s, normally up
    fail: /etc/service/web: runsv not running
    warning: /etc/service/web: unable to open supervise/ok: file does not exist
"""

import re

from servicekit.service.base import ServiceState
from servicekit.service.command import CommandResult
from servicekit.service.errors import StatusParseError

PID_RE = re.compile(r"\bpid (\d+)\b")
MAX_PID = 2**32 - 1
FAIL_PREFIX = "fail:"


def parse_status(output: str) -> ServiceState:
    # sv reports its own failures as "fail: ..."; the text may mention runsv.
    if output.lstrip().startswith(FAIL_PREFIX):
        return ServiceState.UNKNOWN
    if "run" in output:
        return ServiceState.RUNNING
    if "down" in output:
        return ServiceState.STOPPED
    return ServiceState.UNKNOWN


def parse_pid(output: str) -> int:
    """Extract the single ``pid <digits>`` token from status output.

    Raises:
        StatusParseError: If there is no pid token, more than one, or the
            value is not a valid process id.
    """
    matches = PID_RE.findall(output)
    if not matches:
        raise StatusParseError("No pid in supervisor output", output)
    if len(matches) > 1:
        raise StatusParseError("Ambiguous pid in supervisor output", output)

    pid = int(matches[0])
    if not 0 < pid <= MAX_PID:
        raise StatusParseError(f"Pid {pid} out of range", output)
    return pid


def interpret_status(result: CommandResult) -> ServiceState:
    """Map a status query result to a state.

    A transport error with a non-zero exit is raised so that an unreachable
    supervisor stays distinguishable from a stopped service.
    """
    if result.error is not None and result.returncode != 0:
        raise result.error
    return parse_status(result.output)


def interpret_pid(result: CommandResult) -> int:
    if result.error is not None and result.returncode != 0:
        raise result.error
    return parse_pid(result.output)

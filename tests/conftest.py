"""Shared test fixtures and factories."""

from pathlib import Path

import pytest

from servicekit.config import RunitSettings, ServiceConfig
from servicekit.service.backends.runit import RunitService
from servicekit.service.base import Program, ServiceBackend
from servicekit.service.command import CommandResult, SupervisorControl


class FakeControl(SupervisorControl):
    """Supervisor control that answers from a script instead of running sv."""

    def __init__(self, *results: CommandResult | str):
        super().__init__("sv")
        self.calls: list[tuple[str, ...]] = []
        self._results = [
            CommandResult(returncode=0, output=r) if isinstance(r, str) else r
            for r in results
        ] or [CommandResult(returncode=0, output="")]

    async def query(self, verb: str, *args: str) -> CommandResult:
        self.calls.append((verb, *args))
        # The last result repeats once the script runs out
        if len(self._results) > 1:
            return self._results.pop(0)
        return self._results[0]


class RecordingProgram(Program):
    """Program that records hook calls."""

    def __init__(self, start_error: Exception | None = None):
        self.events: list[str] = []
        self.start_error = start_error

    async def start(self, service: ServiceBackend) -> None:
        self.events.append("start")
        if self.start_error:
            raise self.start_error

    async def stop(self, service: ServiceBackend) -> None:
        self.events.append("stop")


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def runit_settings(tmp_path: Path) -> RunitSettings:
    """Runit roots under tmp_path, with the live tree already present."""
    service_dir = tmp_path / "service"
    service_dir.mkdir()
    return RunitSettings(service_dir=service_dir, definition_dir=tmp_path / "runit")


@pytest.fixture
def service_config() -> ServiceConfig:
    return ServiceConfig(
        name="web",
        display_name="Web Server",
        working_directory="/srv/web",
        executable="/usr/bin/web",
        arguments=["--port", "8080"],
        options={"SettleTimeout": "1s", "SettleInterval": "10ms"},
    )


@pytest.fixture
def program() -> RecordingProgram:
    return RecordingProgram()


@pytest.fixture
def make_service(runit_settings, service_config, program):
    """Factory for a RunitService wired to a FakeControl."""

    def factory(
        *results: CommandResult | str, config: ServiceConfig | None = None
    ) -> RunitService:
        return RunitService(
            program,
            config or service_config,
            settings=runit_settings,
            control=FakeControl(*results),
        )

    return factory

"""Tests for the runit backend."""

import asyncio
import os
import stat
from pathlib import Path

import pytest

from servicekit.config import ServiceConfig
from servicekit.service.backends.runit import RunitService
from servicekit.service.base import ServiceState
from servicekit.service.command import CommandResult
from servicekit.service.errors import (
    AlreadyExistsError,
    ExternalCommandError,
    ServiceError,
    SettleTimeoutError,
    StatusParseError,
    TemplateError,
    UnsupportedFeatureError,
)
from servicekit.service.registration import RegistrationState

from tests.conftest import RecordingProgram

SV_RUNNING = "run: /etc/service/web: (pid 4242) 3s\n"
SV_DOWN = "down: /etc/service/web: 8s, normally up\n"
SV_NOT_SUPERVISED = (
    "warning: /etc/service/web: unable to open supervise/ok: file does not exist\n"
)


def _with_options(config: ServiceConfig, **options) -> ServiceConfig:
    return config.model_copy(update={"options": {**config.options, **options}})


# =============================================================================
# Construction
# =============================================================================


class TestRunitServiceBasics:
    def test_constructor_touches_nothing(self, make_service, runit_settings):
        make_service()
        assert not runit_settings.definition_dir.exists()
        assert list(runit_settings.service_dir.iterdir()) == []

    def test_paths(self, make_service, runit_settings):
        service = make_service()
        assert service.live_path == runit_settings.service_dir / "web"
        assert service.registration.definition_path == runit_settings.definition_dir / "web"

    def test_name_and_platform(self, make_service):
        service = make_service()
        assert service.name == "runit"
        assert service.platform == "linux-runit"

    def test_str_prefers_display_name(self, make_service, service_config):
        assert str(make_service()) == "Web Server"
        bare = service_config.model_copy(update={"display_name": ""})
        assert str(make_service(config=bare)) == "web"

    def test_is_available(self, monkeypatch):
        monkeypatch.setattr(
            "servicekit.service.backends.runit.shutil.which",
            lambda name: "/usr/bin/runsvdir" if name == "runsvdir" else None,
        )
        assert RunitService.is_available() is True

    def test_is_not_available(self, monkeypatch):
        monkeypatch.setattr(
            "servicekit.service.backends.runit.shutil.which", lambda name: None
        )
        assert RunitService.is_available() is False

    def test_is_available_uses_environment_settings(self, monkeypatch):
        probed = []
        monkeypatch.setattr(
            "servicekit.service.backends.runit.RunitSettings.from_env",
            classmethod(lambda cls: cls(probe_binary="custom-runsvdir")),
        )
        monkeypatch.setattr(
            "servicekit.service.backends.runit.shutil.which",
            lambda name: probed.append(name),
        )

        assert RunitService.is_available() is False
        assert probed == ["custom-runsvdir"]

    def test_settings_default_from_env(self, monkeypatch, tmp_path, program, service_config):
        monkeypatch.setenv("RUN_SV_DIR", str(tmp_path / "sv"))
        monkeypatch.setenv("RUN_IT_DIR", str(tmp_path / "it"))

        service = RunitService(program, service_config)

        assert service.live_path == tmp_path / "sv" / "web"
        assert service.registration.definition_path == tmp_path / "it" / "web"


# =============================================================================
# Install
# =============================================================================


class TestInstall:
    @pytest.mark.asyncio
    async def test_install_writes_definition_and_link(self, make_service):
        service = make_service(SV_RUNNING)

        await service.install()

        registration = service.registration
        run_script = registration.run_script_path
        assert run_script.read_text() == (
            "#!/bin/sh\n"
            "exec 2>&1\n"
            "cd /srv/web\n"
            "exec /usr/bin/web --port 8080\n"
        )
        assert stat.S_IMODE(run_script.stat().st_mode) == 0o755
        assert service.live_path.is_symlink()
        assert Path(os.readlink(service.live_path)) == registration.definition_path
        assert registration.state == RegistrationState.LIVE

    @pytest.mark.asyncio
    async def test_install_then_status_running(self, make_service):
        service = make_service(SV_RUNNING)

        await service.install()

        assert await service.status() == ServiceState.RUNNING
        assert service.control.calls[0] == ("status", str(service.live_path))

    @pytest.mark.asyncio
    async def test_install_twice_fails_and_keeps_original(self, make_service, service_config):
        await make_service(SV_RUNNING).install()
        first = make_service().registration.run_script_path.read_text()

        changed = service_config.model_copy(update={"arguments": ["--other"]})
        service = make_service(SV_RUNNING, config=changed)
        with pytest.raises(AlreadyExistsError) as exc_info:
            await service.install()

        assert exc_info.value.path == service.registration.definition_path
        assert service.registration.run_script_path.read_text() == first
        assert service.control.calls == []

    @pytest.mark.asyncio
    async def test_user_service_rejected_without_writes(
        self, make_service, service_config, runit_settings
    ):
        config = _with_options(service_config, UserService=True)
        service = make_service(config=config)

        with pytest.raises(UnsupportedFeatureError):
            await service.install()

        assert not runit_settings.definition_dir.exists()
        assert list(runit_settings.service_dir.iterdir()) == []
        assert service.control.calls == []

    @pytest.mark.asyncio
    async def test_install_over_stale_live_link_fails(self, make_service, tmp_path):
        service = make_service(SV_RUNNING)
        service.live_path.symlink_to(tmp_path / "elsewhere")

        with pytest.raises(AlreadyExistsError) as exc_info:
            await service.install()

        assert exc_info.value.path == service.live_path
        assert not service.registration.definition_path.exists()
        assert service.control.calls == []

    @pytest.mark.asyncio
    async def test_template_error_leaves_directory(self, make_service, service_config):
        config = _with_options(service_config, RunItScript="exec {{ missing }}\n")
        service = make_service(config=config)

        with pytest.raises(TemplateError):
            await service.install()

        registration = service.registration
        assert registration.definition_path.is_dir()
        assert not registration.run_script_path.exists()
        assert not service.live_path.is_symlink()
        assert registration.is_partial

    @pytest.mark.asyncio
    async def test_settle_polls_until_state_known(self, make_service):
        service = make_service(SV_NOT_SUPERVISED, SV_NOT_SUPERVISED, SV_DOWN)

        await service.install()

        assert len(service.control.calls) == 3

    @pytest.mark.asyncio
    async def test_settle_timeout(self, make_service, service_config):
        config = _with_options(service_config, SettleTimeout="50ms")
        service = make_service(
            CommandResult(returncode=1, output=SV_NOT_SUPERVISED), config=config
        )

        with pytest.raises(SettleTimeoutError) as exc_info:
            await service.install()

        assert exc_info.value.path == service.live_path
        # The registration stays in place for inspection
        assert service.registration.state == RegistrationState.LIVE

    @pytest.mark.asyncio
    async def test_settle_disabled(self, make_service, service_config):
        config = _with_options(service_config, SettleTimeout=0)
        service = make_service(config=config)

        await service.install()

        assert service.control.calls == []
        assert service.live_path.is_symlink()

    @pytest.mark.asyncio
    async def test_settle_propagates_unreachable_supervisor(self, make_service):
        error = ExternalCommandError("sv", ("status",), 127, "", "executable not found")
        service = make_service(CommandResult(returncode=127, output="", error=error))

        with pytest.raises(ExternalCommandError):
            await service.install()


# =============================================================================
# Uninstall
# =============================================================================


class TestUninstall:
    @pytest.mark.asyncio
    async def test_uninstall_removes_both_halves(self, make_service):
        service = make_service(SV_RUNNING)
        await service.install()

        await service.uninstall()

        assert not service.live_path.is_symlink()
        assert not service.registration.definition_path.exists()
        assert service.registration.state == RegistrationState.ABSENT

    @pytest.mark.asyncio
    async def test_uninstall_absent_is_noop(self, make_service):
        service = make_service()
        await service.uninstall()
        await service.uninstall()
        assert service.registration.state == RegistrationState.ABSENT

    @pytest.mark.asyncio
    async def test_uninstall_directory_only(self, make_service):
        service = make_service()
        service.registration.create_directory()

        await service.uninstall()

        assert not service.registration.definition_path.exists()

    @pytest.mark.asyncio
    async def test_uninstall_dangling_link_only(self, make_service):
        service = make_service()
        service.live_path.symlink_to(service.registration.definition_path)

        await service.uninstall()

        assert not service.live_path.is_symlink()

    @pytest.mark.asyncio
    async def test_uninstall_reports_removal_failure(self, make_service, monkeypatch):
        service = make_service(SV_RUNNING)
        await service.install()

        def fail_rmtree(path, *args, **kwargs):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr(
            "servicekit.service.registration.shutil.rmtree", fail_rmtree
        )

        with pytest.raises(ServiceError, match="Failed to remove"):
            await service.uninstall()

        # The link went first
        assert not service.live_path.is_symlink()

    @pytest.mark.asyncio
    async def test_uninstall_user_service_rejected(self, make_service, service_config):
        config = _with_options(service_config, UserService=True)
        with pytest.raises(UnsupportedFeatureError):
            await make_service(config=config).uninstall()


# =============================================================================
# Lifecycle commands
# =============================================================================


class TestLifecycle:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("method", "verb"),
        [("start", "up"), ("stop", "down"), ("restart", "restart")],
    )
    async def test_verbs(self, make_service, method, verb):
        service = make_service()

        await getattr(service, method)()

        assert service.control.calls == [(verb, str(service.live_path))]

    @pytest.mark.asyncio
    async def test_start_failure_raises(self, make_service):
        service = make_service(
            CommandResult(returncode=1, output="fail: web: unable to change to service directory")
        )
        with pytest.raises(ExternalCommandError, match="up"):
            await service.start()


class TestStatusAndPid:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("output", "expected"),
        [
            (SV_RUNNING, ServiceState.RUNNING),
            (SV_DOWN, ServiceState.STOPPED),
            (SV_NOT_SUPERVISED, ServiceState.UNKNOWN),
        ],
    )
    async def test_status(self, make_service, output, expected):
        assert await make_service(output).status() == expected

    @pytest.mark.asyncio
    async def test_status_unreachable_supervisor_raises(self, make_service):
        error = ExternalCommandError("sv", ("status",), 127, "", "executable not found")
        service = make_service(CommandResult(returncode=127, output="", error=error))

        with pytest.raises(ExternalCommandError):
            await service.status()

    @pytest.mark.asyncio
    async def test_get_pid(self, make_service):
        service = make_service(SV_RUNNING)
        assert await service.get_pid() == 4242
        assert service.control.calls == [("status", str(service.live_path))]

    @pytest.mark.asyncio
    async def test_get_pid_when_down(self, make_service):
        with pytest.raises(StatusParseError):
            await make_service(SV_DOWN).get_pid()


# =============================================================================
# Foreground run and logging
# =============================================================================


class TestRun:
    @pytest.mark.asyncio
    async def test_run_with_wait_argument(self, make_service, program):
        async def wait():
            program.events.append("wait")

        await make_service().run(wait)

        assert program.events == ["start", "wait", "stop"]

    @pytest.mark.asyncio
    async def test_run_wait_option(self, runit_settings, service_config):
        program = RecordingProgram()

        async def wait():
            program.events.append("option-wait")

        config = _with_options(service_config, RunWait=wait)
        service = RunitService(program, config, settings=runit_settings)

        await service.run()

        assert program.events == ["start", "option-wait", "stop"]

    @pytest.mark.asyncio
    async def test_run_start_error_short_circuits(self, runit_settings, service_config):
        program = RecordingProgram(start_error=RuntimeError("boom"))
        waited = asyncio.Event()

        async def wait():
            waited.set()

        service = RunitService(program, service_config, settings=runit_settings)
        with pytest.raises(RuntimeError, match="boom"):
            await service.run(wait)

        assert program.events == ["start"]
        assert not waited.is_set()


class TestLogger:
    def test_interactive_uses_console(self, make_service, monkeypatch):
        sentinel = object()
        monkeypatch.setattr(
            "servicekit.service.backends.runit.is_interactive", lambda: True
        )
        monkeypatch.setattr(
            "servicekit.service.backends.runit.console_logger", lambda name: sentinel
        )
        assert make_service().logger() is sentinel

    def test_non_interactive_uses_syslog(self, make_service, monkeypatch):
        sentinel = object()
        monkeypatch.setattr(
            "servicekit.service.backends.runit.is_interactive", lambda: False
        )
        monkeypatch.setattr(
            "servicekit.service.backends.runit.system_logger", lambda name: sentinel
        )
        assert make_service().logger() is sentinel

"""Service lifecycle commands."""

import asyncio
import sys
from pathlib import Path
from typing import Annotated

import typer

from servicekit.cli.console import console, dim, error, success, warning

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to service config file (default: ./service.toml or $SERVICEKIT_CONFIG)",
    ),
]
BackendOption = Annotated[
    str | None,
    typer.Option(
        "--backend",
        "-b",
        help="Backend to use (default: auto-detect)",
    ),
]


def _load_backend(
    config_path: Path | None, backend_name: str | None, resolve_executable: bool = False
):
    """Build the backend for a config file, exiting on failure.

    The executable is only resolved when ``resolve_executable`` is set, so
    that lifecycle commands keep working after it has been removed.
    """
    from servicekit.config import ConfigError, load_service_config
    from servicekit.service import CommandProgram, ServiceError, get_backend

    try:
        config = load_service_config(config_path)
        executable = config.executable or sys.argv[0]
        if resolve_executable:
            executable = str(config.exec_path())
        program = CommandProgram(
            [executable, *config.arguments], cwd=config.working_directory or None
        )
        return get_backend(backend_name, program, config)
    except (FileNotFoundError, ConfigError, ServiceError, ValueError) as e:
        error(str(e))
        raise typer.Exit(1) from e


def _run_service_action(
    action_name: str, config_path: Path | None, backend_name: str | None
) -> None:
    """Run a service manager action and handle the result.

    Args:
        action_name: Name of the ServiceManager method to call.
        config_path: Config file to load.
        backend_name: Backend override.
    """
    from servicekit.service import ServiceManager

    manager = ServiceManager(_load_backend(config_path, backend_name))
    action = getattr(manager, action_name)
    result, message = asyncio.run(action())

    if result:
        success(message)
    else:
        error(message)
        raise typer.Exit(1)


def register(app: typer.Typer) -> None:
    """Register service lifecycle commands."""

    @app.command("install")
    def service_install(
        config: ConfigOption = None, backend: BackendOption = None
    ) -> None:
        """Install the service with the host supervisor."""
        _run_service_action("install", config, backend)

    @app.command("uninstall")
    def service_uninstall(
        config: ConfigOption = None, backend: BackendOption = None
    ) -> None:
        """Remove the service from the host supervisor."""
        _run_service_action("uninstall", config, backend)

    @app.command("start")
    def service_start(
        config: ConfigOption = None, backend: BackendOption = None
    ) -> None:
        """Start the service."""
        _run_service_action("start", config, backend)

    @app.command("stop")
    def service_stop(
        config: ConfigOption = None, backend: BackendOption = None
    ) -> None:
        """Stop the service."""
        _run_service_action("stop", config, backend)

    @app.command("restart")
    def service_restart(
        config: ConfigOption = None, backend: BackendOption = None
    ) -> None:
        """Restart the service."""
        _run_service_action("restart", config, backend)

    @app.command("status")
    def service_status(
        config: ConfigOption = None, backend: BackendOption = None
    ) -> None:
        """Show service status."""
        from servicekit.cli.console import create_table
        from servicekit.service import ServiceError, ServiceManager, ServiceState

        service = _load_backend(config, backend)
        manager = ServiceManager(service)
        try:
            status = asyncio.run(manager.status())
        except ServiceError as e:
            error(str(e))
            raise typer.Exit(1) from e

        table = create_table(
            "Service Status",
            [
                ("Property", "cyan"),
                ("Value", ""),
            ],
        )

        state_colors = {
            ServiceState.RUNNING: "green",
            ServiceState.STOPPED: "yellow",
            ServiceState.UNKNOWN: "dim",
        }
        state_color = state_colors.get(status.state, "white")
        table.add_row("Service", str(service))
        table.add_row("State", f"[{state_color}]{status.state.value}[/{state_color}]")
        table.add_row("Backend", manager.backend_name)
        table.add_row("Platform", service.platform)

        if status.pid:
            table.add_row("PID", str(status.pid))

        if status.message:
            table.add_row("Message", status.message)

        console.print(table)

        if status.state == ServiceState.UNKNOWN:
            dim("The supervisor output was not recognised; is the service installed?")

    @app.command("pid")
    def service_pid(
        config: ConfigOption = None, backend: BackendOption = None
    ) -> None:
        """Print the pid of the running service."""
        from servicekit.service import ServiceError

        service = _load_backend(config, backend)
        try:
            pid = asyncio.run(service.get_pid())
        except ServiceError as e:
            error(str(e))
            raise typer.Exit(1) from e
        console.print(str(pid))

    @app.command("run")
    def service_run(
        config: ConfigOption = None, backend: BackendOption = None
    ) -> None:
        """Run the service program in the foreground until interrupted."""
        service = _load_backend(config, backend, resolve_executable=True)
        try:
            asyncio.run(service.run())
        except OSError as e:
            error(f"Failed to run {service}: {e}")
            raise typer.Exit(1) from e
        warning(f"{service} stopped")

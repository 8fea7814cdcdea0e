"""Main CLI application."""

from typing import Annotated

import typer

from servicekit.cli.commands import service

app = typer.Typer(
    name="servicekit",
    help="servicekit - install and control OS services",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logging",
        ),
    ] = False,
) -> None:
    """Install and control OS services."""
    from servicekit.logging import configure_logging

    configure_logging(level="DEBUG" if verbose else None, use_rich=True)


service.register(app)


if __name__ == "__main__":
    app()

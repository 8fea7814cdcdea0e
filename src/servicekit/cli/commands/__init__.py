"""CLI command modules."""

from servicekit.cli.commands import service

__all__ = ["service"]

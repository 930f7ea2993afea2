"""CLI command registration."""

import typer

from radiocache.cli.commands.cache import register_cache_commands


def register_all_commands(app: typer.Typer) -> None:
    """Register all CLI commands with the main app."""
    register_cache_commands(app)


__all__ = ["register_all_commands"]

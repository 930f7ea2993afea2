"""Cache maintenance CLI commands."""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Annotated, Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from radiocache.cli.decorators import handle_errors
from radiocache.core.cache import EnhancedCacheService, create_default_cache_service


logger = logging.getLogger(__name__)
console = Console()

cache_app = typer.Typer(help="Cache management commands", no_args_is_help=True)

T = TypeVar("T")


def _format_size(size_bytes: float) -> str:
    """Format size in human readable format."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} TB"


def _format_timestamp(epoch_ms: int) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def _run(
    ctx: typer.Context, operation: Callable[[EnhancedCacheService], Awaitable[T]]
) -> T:
    """Run an operation against the configured cache and dispose it afterwards."""

    async def runner() -> T:
        service = create_default_cache_service(ctx.obj.user_config)
        async with service:
            return await operation(service)

    return asyncio.run(runner())


@cache_app.command(name="stats")
@handle_errors
def cache_stats(
    ctx: typer.Context,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: text or json"),
    ] = "text",
) -> None:
    """Show size and item counts of the persistent cache."""

    async def collect(service: EnhancedCacheService) -> dict[str, Any]:
        stats = await service.get_statistics()
        return {
            "cache_path": str(ctx.obj.user_config.cache_path),
            "namespace": service.config.namespace,
            "cache_size": await service.get_cache_size(),
            "max_cache_size": service.max_cache_size,
            "disk_item_count": stats.disk_item_count,
            "disk_cache_size": stats.disk_cache_size,
        }

    data = _run(ctx, collect)

    if output_format.lower() == "json":
        typer.echo(json.dumps(data, indent=2))
        return

    table = Table(title="Cache Statistics")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Location", data["cache_path"])
    table.add_row("Namespace", data["namespace"])
    table.add_row("Entries", str(data["disk_item_count"]))
    table.add_row("Size", _format_size(data["cache_size"]))
    table.add_row("Limit", _format_size(data["max_cache_size"]))
    console.print(table)


@cache_app.command(name="keys")
@handle_errors
def cache_keys(
    ctx: typer.Context,
    pattern: Annotated[
        str | None,
        typer.Option(
            "--pattern",
            help="Filter keys by pattern (case-insensitive substring match)",
        ),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", help="Limit number of keys displayed"),
    ] = None,
    metadata: Annotated[
        bool,
        typer.Option("--metadata", help="Include size, creation and expiry"),
    ] = False,
) -> None:
    """List persisted cache keys, oldest first."""
    entries = _run(ctx, lambda service: service.persistent_tier.scan_metadata())
    entries.sort(key=lambda entry: entry[1].created if entry[1] else 0)

    if pattern:
        entries = [(key, meta) for key, meta in entries if pattern.lower() in key.lower()]
    if limit is not None:
        entries = entries[:limit]

    if not entries:
        console.print("[yellow]No cache keys found[/yellow]")
        return

    if not metadata:
        for key, _meta in entries:
            typer.echo(key)
        return

    table = Table(title=f"Cache Keys ({len(entries)})")
    table.add_column("Key", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Created")
    table.add_column("Expires")
    for key, meta in entries:
        if meta is None:
            table.add_row(key, "-", "[red]corrupted[/red]", "-")
        else:
            table.add_row(
                key,
                _format_size(meta.size),
                _format_timestamp(meta.created),
                _format_timestamp(meta.expiry),
            )
    console.print(table)


@cache_app.command(name="get")
@handle_errors
def cache_get(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key")],
) -> None:
    """Print a cached value as JSON."""
    value = _run(ctx, lambda service: service.get(key))
    if value is None:
        console.print(f"[yellow]No cached value for key: {key}[/yellow]")
        raise typer.Exit(1)
    typer.echo(json.dumps(value, indent=2))


@cache_app.command(name="set")
@handle_errors
def cache_set(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key")],
    value: Annotated[str, typer.Argument(help="JSON value to store")],
    ttl: Annotated[
        int | None,
        typer.Option("--ttl", help="Time-to-live in seconds (default from config)"),
    ] = None,
    as_string: Annotated[
        bool,
        typer.Option("--string", help="Store VALUE as a plain string"),
    ] = False,
) -> None:
    """Store a value in the cache."""
    payload = value if as_string else json.loads(value)
    _run(ctx, lambda service: service.set(key, payload, expiry=ttl))
    console.print(f"[green]Stored {key}[/green]")


@cache_app.command(name="remove")
@handle_errors
def cache_remove(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key")],
) -> None:
    """Remove a cached value."""
    _run(ctx, lambda service: service.remove(key))
    console.print(f"[green]Removed {key}[/green]")


@cache_app.command(name="clear")
@handle_errors
def cache_clear(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """Remove every cached value in the configured namespace."""
    if not force:
        confirm = typer.confirm("Clear all cached values?")
        if not confirm:
            console.print("[yellow]Cancelled[/yellow]")
            return

    _run(ctx, lambda service: service.clear())
    console.print("[green]Cache cleared[/green]")


@cache_app.command(name="cleanup")
@handle_errors
def cache_cleanup(ctx: typer.Context) -> None:
    """Remove expired entries."""
    removed = _run(ctx, lambda service: service.clear_expired())
    console.print(f"[green]Removed {removed} expired entries[/green]")


def register_cache_commands(app: typer.Typer) -> None:
    """Register cache commands with the main app."""
    app.add_typer(cache_app, name="cache")

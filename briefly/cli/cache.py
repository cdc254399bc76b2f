"""Cache management commands."""

import asyncio
from datetime import timedelta
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..cache import CacheManager
from ..db import close_connection_pool
from ..errors import CacheError
from .common import create_cache_store, load_cli_config

console = Console()
cache_app = typer.Typer(help="Manage the content and summary cache")

ConfigOption = typer.Option(None, "--config", "-c", help="Configuration file")


def _manager(config_path: Optional[Path]) -> CacheManager:
    config = load_cli_config(config_path)
    return CacheManager(
        create_cache_store(config, persistent=True),
        content_ttl=timedelta(hours=config.config.cache.content_ttl_hours),
        summary_ttl=timedelta(days=config.config.cache.summary_ttl_days),
    )


@cache_app.command("stats")
def cache_stats(config_path: Optional[Path] = ConfigOption) -> None:
    """Show cache entry counts."""
    manager = _manager(config_path)
    try:
        stats = asyncio.run(manager.stats())
    except CacheError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)
    finally:
        close_connection_pool()

    table = Table(title="Cache Statistics")
    table.add_column("Kind", style="cyan")
    table.add_column("Entries", style="green")
    table.add_column("TTL", style="yellow")
    table.add_row("Content", str(stats.content_entries), str(manager.content_ttl))
    table.add_row("Summary", str(stats.summary_entries), str(manager.summary_ttl))
    console.print(table)


@cache_app.command("clear")
def cache_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    config_path: Optional[Path] = ConfigOption,
) -> None:
    """Delete every cache entry."""
    if not yes and not typer.confirm("Delete all cached content and summaries?"):
        raise typer.Exit(0)

    manager = _manager(config_path)
    try:
        removed = asyncio.run(manager.clear())
    except CacheError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)
    finally:
        close_connection_pool()
    console.print(f"✅ Removed {removed} cache entries")


@cache_app.command("cleanup")
def cache_cleanup(config_path: Optional[Path] = ConfigOption) -> None:
    """Delete expired cache entries."""
    manager = _manager(config_path)
    try:
        removed = asyncio.run(manager.cleanup())
    except CacheError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)
    finally:
        close_connection_pool()
    console.print(f"✅ Removed {removed} expired cache entries")

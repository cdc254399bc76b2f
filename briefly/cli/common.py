"""Helpers shared by CLI commands."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..cache import CacheStore, MemoryCacheStore
from ..config import Config
from ..db import PostgresCacheStore, init_database, validate_connection

console = Console()


def load_cli_config(config_path: Optional[Path]) -> Config:
    """Load configuration, exiting with a message when it is invalid."""
    config = Config(config_path)
    try:
        config.config
    except ValueError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)
    return config


def create_cache_store(config: Config, persistent: bool = False) -> CacheStore:
    """
    Build the configured cache store.

    Runs fall back to an in-memory cache when Postgres is unreachable.
    With ``persistent=True`` an in-memory store is refused and the
    command exits.
    """
    if config.config.cache.backend != "postgres":
        if persistent:
            _refuse("the configured cache backend is in-memory and does not outlive a run")
        return MemoryCacheStore()

    db_config = config.get_db_config()
    console.print("[dim]Checking database connection...[/dim]")
    if not validate_connection(db_config):
        if persistent:
            _refuse("the Postgres cache is unreachable")
        console.print(
            "[yellow]⚠️  Database connection failed, using an in-memory cache for this run[/yellow]"
        )
        return MemoryCacheStore()

    init_database(db_config)
    return PostgresCacheStore(db_config)


def _refuse(reason: str) -> None:
    console.print(
        f"[red]❌ Cache commands need the persistent cache: {reason}.[/red]\n"
        "Set [bold]cache.backend: postgres[/bold] and check the database settings."
    )
    raise typer.Exit(1)

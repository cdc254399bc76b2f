"""Init command implementation."""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import DEFAULT_CONFIG_PATH, ConfigModel, save_config
from ..db import init_database, validate_connection

console = Console()


def init_command(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Configuration file to create",
    ),
    postgres: bool = typer.Option(
        True,
        "--postgres/--memory",
        help="Use Postgres for the persistent cache (--memory keeps it per run)",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("briefly", "--db-name", help="Database name"),
    db_user: str = typer.Option("briefly_user", "--db-user", help="Database user"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config"),
) -> None:
    """Create a configuration file and, optionally, the cache schema."""
    console.print(Panel.fit("📰 Briefly - Initialization", style="bold blue"))

    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists: {config_path} (use --force to overwrite)[/yellow]")
        raise typer.Exit(1)

    config = ConfigModel(
        cache={"backend": "postgres" if postgres else "memory"},
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "BRIEFLY_DB_PASSWORD",
        },
    )
    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    if postgres:
        console.print("\n[bold]Testing database connection...[/bold]")
        db_config = config.postgres.model_dump()

        if not validate_connection(db_config):
            console.print(
                "[red]❌ Database connection failed![/red]\n"
                "Please ensure Postgres is running and credentials are correct.\n"
                "Set the password via environment variable: "
                "[bold]export BRIEFLY_DB_PASSWORD=your_password[/bold]"
            )
            raise typer.Exit(1)

        console.print("✅ Database connection successful")
        init_database(db_config)
        console.print("✅ Cache schema initialized")

    console.print(
        Panel(
            f"[green]✅ Briefly initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n\n"
            f"Next steps:\n"
            f"1. Set LLM API key: [bold]export OPENAI_API_KEY=your_key[/bold]\n"
            f"2. Run: [bold]briefly digest links.md[/bold]",
            style="green",
        )
    )

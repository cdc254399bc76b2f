"""Digest command implementation."""

from pathlib import Path
from typing import List, Optional

import pendulum
import typer
from rich.console import Console
from rich.panel import Panel

from ..db import close_connection_pool
from ..errors import BrieflyError, FatalPipelineError, PipelineTimeoutError
from ..ingestion import extract_urls
from ..pipeline import DigestPipeline
from .common import create_cache_store, load_cli_config

console = Console()


def digest_command(
    input_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Text or Markdown file containing article links",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the digest as JSON to this file",
    ),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Digest title"),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        help="Concurrent fetch/summarize operations",
        min=1,
        max=20,
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Deadline for the whole run in seconds",
    ),
    themes: Optional[List[str]] = typer.Option(
        None,
        "--theme",
        help="Theme to classify articles into (repeatable)",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file",
    ),
) -> None:
    """Build a digest from the links in INPUT_FILE."""
    config = load_cli_config(config_path)
    if workers is not None:
        config.config.pipeline.max_concurrent = workers
    if themes:
        config.config.pipeline.themes = list(themes)

    urls = extract_urls(input_file.read_text(encoding="utf-8"))
    console.print(f"Found {len(urls)} links in {input_file}")

    if title is None:
        title = f"Digest for {pendulum.now().format('MMM DD, YYYY')}"

    try:
        pipeline = DigestPipeline.from_config(config, store=create_cache_store(config))
        digest = pipeline.run_sync(urls, title=title, timeout=timeout)
    except KeyboardInterrupt:
        console.print("\n[yellow]Digest run interrupted by user[/yellow]")
        raise typer.Exit(130)
    except PipelineTimeoutError as e:
        console.print(f"[red]⏱  {e}[/red]")
        raise typer.Exit(1)
    except FatalPipelineError as e:
        console.print(f"[red]❌ Digest failed: {e}[/red]")
        raise typer.Exit(1)
    except BrieflyError as e:
        console.print(f"[red]Pipeline failed: {e}[/red]")
        raise typer.Exit(1)
    finally:
        close_connection_pool()

    console.print(Panel(digest.executive_summary, title=digest.metadata.title, style="blue"))
    for section in digest.sections:
        console.print(f"\n[bold cyan]{section.cluster.label}[/bold cyan] ({len(section.articles)} articles)")
        for article in section.articles:
            console.print(f"  • {article.title or article.url} [dim]{article.url}[/dim]")

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(digest.model_dump_json(indent=2), encoding="utf-8")
        console.print(f"\n✅ Wrote digest: {output}")

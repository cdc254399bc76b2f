"""Main CLI application."""

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from .cache import cache_app
from .digest import digest_command
from .init import init_command

app = typer.Typer(
    name="briefly",
    help="Briefly - Article Digest Generator",
    no_args_is_help=True,
)

# Register commands
app.command("init")(init_command)
app.command("digest")(digest_command)
app.add_typer(cache_app, name="cache", help="Manage the content and summary cache")


if __name__ == "__main__":
    app()

"""Allow ``python -m briefly``."""

from .cli.app import app

app()

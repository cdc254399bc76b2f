"""Command-line interface for Briefly."""

from .app import app

__all__ = ["app"]

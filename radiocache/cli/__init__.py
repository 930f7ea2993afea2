"""Command line interface for radiocache."""

from .app import app, main


__all__ = ["app", "main"]

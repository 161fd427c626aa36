"""Command line interface for the token proxy."""

from .main import app, main


__all__ = ["app", "main"]

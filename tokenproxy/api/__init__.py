"""HTTP API for the token exchange proxy."""

from .app import create_app


__all__ = ["create_app"]

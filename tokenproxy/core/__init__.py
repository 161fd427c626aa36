"""Core building blocks shared across the token proxy."""

from tokenproxy._version import __version__


__all__ = ["__version__"]

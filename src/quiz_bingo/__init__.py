"""Printable quiz bingo cards with an answer-calling list."""

from .version import __version__

__all__ = ["__version__"]

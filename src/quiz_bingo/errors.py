"""Error taxonomy for card generation and export."""

from __future__ import annotations


class BingoError(Exception):
    """Base class for errors reported to the caller of a generation run."""


class PoolTooSmallError(BingoError, ValueError):
    """Raised when the item pool cannot fill a single card."""

    def __init__(self, pool_size: int, cells: int):
        super().__init__(
            f"Pool of {pool_size} items cannot fill a card of {cells} cells"
        )
        self.pool_size = pool_size
        self.cells = cells


class GenerationError(BingoError, RuntimeError):
    """Content provider failed (network, HTTP status or unparseable reply)."""


class RenderError(BingoError, RuntimeError):
    """An element failed to produce a bitmap; the export is aborted."""

"""
Layout data types: placed blocks, finished pages and the running cursor.

Pages and blocks are frozen once built. The only mutable object is the
LayoutCursor, which belongs to a single export run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from PIL import Image

BLOCK_CARD = "card"
BLOCK_TABLE = "table"
BLOCK_TITLE = "title"


@dataclass(frozen=True)
class PlacedBlock:
    """
    A visual block at a rectangle on the page (millimetres, origin top-left).

    Title blocks carry `text` and no image; `y` is then the text baseline and
    `x` the horizontal centre.
    """

    kind: str
    x: float
    y: float
    width: float
    height: float
    image: Optional[Image.Image] = None
    text: Optional[str] = None
    font_size: float = 0.0

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def right(self) -> float:
        return self.x + self.width


@dataclass(frozen=True)
class Page:
    index: int
    blocks: Tuple[PlacedBlock, ...]

    def of_kind(self, kind: str) -> List[PlacedBlock]:
        return [b for b in self.blocks if b.kind == kind]


@dataclass
class LayoutCursor:
    """
    Mutable page cursor for one export.

    Holds the finished pages, the blocks of the page being filled and the
    vertical position on it. Never shared between exports.
    """

    y: float = 0.0
    pages: List[Page] = field(default_factory=list)
    current: List[PlacedBlock] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    _open: bool = False

    @property
    def page_index(self) -> int:
        return len(self.pages)

    def new_page(self, y: float) -> None:
        """Close the page in progress (if any) and start an empty one at `y`."""
        if self._open:
            self.pages.append(Page(index=len(self.pages), blocks=tuple(self.current)))
        self.current = []
        self._open = True
        self.y = y

    def place(self, block: PlacedBlock) -> None:
        if not self._open:
            raise RuntimeError("place() called before new_page()")
        self.current.append(block)

    def finish(self) -> "LayoutResult":
        if self._open:
            self.pages.append(Page(index=len(self.pages), blocks=tuple(self.current)))
            self.current = []
            self._open = False
        return LayoutResult(pages=tuple(self.pages), warnings=list(self.warnings))


@dataclass(frozen=True)
class LayoutResult:
    pages: Tuple[Page, ...]
    warnings: List[str] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def total_blocks(self) -> int:
        return sum(len(p.blocks) for p in self.pages)

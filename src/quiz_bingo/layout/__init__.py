"""
Page layout engine.

Places card images in a two-column grid and splits the calling-list bitmap
into page strips that end on row boundaries.
"""

from .config import PageConfig
from .models import LayoutCursor, LayoutResult, Page, PlacedBlock
from .paginator import (
    build_document_layout,
    find_safe_break,
    max_strip_height,
    paginate_table,
    place_cards,
    plan_table_strips,
)

__all__ = [
    "LayoutCursor",
    "LayoutResult",
    "Page",
    "PageConfig",
    "PlacedBlock",
    "build_document_layout",
    "find_safe_break",
    "max_strip_height",
    "paginate_table",
    "place_cards",
    "plan_table_strips",
]

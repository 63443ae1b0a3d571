"""Pillow renderers producing the bitmaps the layout engine places."""

from .cards import CardStyle, render_card
from .table import TableBitmap, TableStyle, render_calling_list
from .text import latex_to_text

__all__ = [
    "CardStyle",
    "TableBitmap",
    "TableStyle",
    "latex_to_text",
    "render_calling_list",
    "render_card",
]

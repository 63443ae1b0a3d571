"""
Page geometry for the exported document.

All values are millimetres on a portrait sheet; the PDF writer converts to
points. Defaults reproduce an A4 sheet with two 90 mm card columns.
"""

from __future__ import annotations

from dataclasses import dataclass

A4_WIDTH_MM = 210.0
A4_HEIGHT_MM = 297.0


@dataclass(frozen=True)
class PageConfig:
    """
    Layout configuration (immutable).

    Attributes:
        page_width: Sheet width
        page_height: Sheet height
        margin: Margin on every side
        card_width: Placed width of one card image
        card_gap: Horizontal gap between the two card columns
        row_gap: Vertical gap added after each row of cards
        top_padding: Extra space below the top margin on continuation pages
        title_y: Baseline of the title on the first page
        title_size: Title font size in points
        cards_start_y: Cursor position for the first card row on page one
    """

    page_width: float = A4_WIDTH_MM
    page_height: float = A4_HEIGHT_MM
    margin: float = 10.0
    card_width: float = 90.0
    card_gap: float = 10.0
    row_gap: float = 10.0
    top_padding: float = 10.0
    title_y: float = 20.0
    title_size: float = 22.0
    cards_start_y: float = 30.0

    def __post_init__(self) -> None:
        if self.page_width <= 0 or self.page_height <= 0:
            raise ValueError("Page dimensions must be positive")
        if self.content_width <= 0 or self.printable_height <= 0:
            raise ValueError("Margins exceed page size")
        if self.margin + 2 * self.card_width + self.card_gap > self.page_width:
            raise ValueError("Two card columns do not fit across the page")

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    @property
    def printable_height(self) -> float:
        return self.page_height - 2 * self.margin

    @property
    def page_bottom(self) -> float:
        return self.page_height - self.margin

    @property
    def continuation_top(self) -> float:
        return self.margin + self.top_padding

"""
Module: layout.paginator

Purpose:
    Place rendered card images and the calling-list bitmap onto fixed-size
    pages.

Key Functions:
    - place_cards(): two-column card grid with page breaks between rows
    - find_safe_break(): last table row boundary inside a cut window
    - plan_table_strips(): split a tall bitmap into page-sized strips
    - paginate_table(): place the strips, one page each
    - build_document_layout(): title, cards and table on one cursor

Algorithm (table):
    The table is rendered once. Row bottoms are recorded in layout units and
    scaled to bitmap pixels. Each strip is at most one printable page tall;
    when more bitmap remains than fits, the strip is shortened to end on the
    last row boundary above the raw cut. A single row taller than a page has
    no such boundary and is split.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

from PIL import Image

from ..render.table import TableBitmap
from .config import PageConfig
from .models import BLOCK_CARD, BLOCK_TABLE, BLOCK_TITLE, LayoutCursor, LayoutResult, PlacedBlock

logger = logging.getLogger(__name__)


def card_height(image: Image.Image, config: PageConfig) -> float:
    """Placed height of a card image scaled to the fixed card width."""
    return image.height * config.card_width / image.width


def card_x(col: int, config: PageConfig) -> float:
    return config.margin + col * (config.card_width + config.card_gap)


def place_cards(cursor: LayoutCursor, images: Sequence[Image.Image], config: PageConfig) -> None:
    """
    Place card images two per row, in order, on the cursor's current page.

    A page break is only considered before the first card of a row. The
    cursor moves down after the second card of a row, or after the last
    card when it sits alone in its row.
    """
    last = len(images) - 1
    for i, image in enumerate(images):
        col = i % 2
        height = card_height(image, config)

        if col == 0 and cursor.y + height > config.page_bottom:
            cursor.new_page(config.continuation_top)

        cursor.place(
            PlacedBlock(
                kind=BLOCK_CARD,
                x=card_x(col, config),
                y=cursor.y,
                width=config.card_width,
                height=height,
                image=image,
            )
        )

        if col == 1 or i == last:
            cursor.y += height + config.row_gap


def find_safe_break(breakpoints: Sequence[float], start: float, cut: float) -> Optional[float]:
    """Largest breakpoint strictly between `start` and `cut`, or None."""
    best: Optional[float] = None
    for bp in breakpoints:
        if start < bp < cut and (best is None or bp > best):
            best = bp
    return best


def max_strip_height(bitmap_width: int, config: PageConfig) -> int:
    """Tallest strip (bitmap pixels) that fits the printable height at content width."""
    ratio = config.content_width / bitmap_width
    return max(1, int(math.floor(config.printable_height / ratio)))


def plan_table_strips(
    bitmap_width: int,
    bitmap_height: int,
    breakpoints: Sequence[int],
    config: PageConfig,
) -> Tuple[List[Tuple[int, int]], List[str]]:
    """
    Split [0, bitmap_height) into (top, height) strips, one per page.

    Returns the strips and a warning for every strip that had to cut through
    a row.
    """
    max_strip = max_strip_height(bitmap_width, config)
    strips: List[Tuple[int, int]] = []
    warnings: List[str] = []
    src_y = 0
    remaining = bitmap_height
    while remaining > 0:
        strip = min(remaining, max_strip)
        if remaining > max_strip:
            cut = src_y + strip
            safe = find_safe_break(breakpoints, src_y, cut)
            if safe is not None:
                strip = int(safe) - src_y
            else:
                msg = f"Table row at {src_y}px taller than one page; splitting at {cut}px"
                logger.warning(msg)
                warnings.append(msg)
        strips.append((src_y, strip))
        src_y += strip
        remaining -= strip
    return strips, warnings


def paginate_table(cursor: LayoutCursor, table: TableBitmap, config: PageConfig) -> None:
    """Place the calling list on fresh pages, one strip per page."""
    image = table.image
    strips, warnings = plan_table_strips(image.width, image.height, table.row_bottoms_px(), config)
    cursor.warnings.extend(warnings)
    ratio = config.content_width / image.width

    for top, height in strips:
        cursor.new_page(config.margin)
        strip = image.crop((0, top, image.width, top + height))
        placed_height = height * ratio
        cursor.place(
            PlacedBlock(
                kind=BLOCK_TABLE,
                x=config.margin,
                y=config.margin,
                width=config.content_width,
                height=placed_height,
                image=strip,
            )
        )
        cursor.y = config.margin + placed_height

    logger.debug("Table of %dpx split into %d strips", image.height, len(strips))


def build_document_layout(
    title: str,
    card_images: Sequence[Image.Image],
    table: Optional[TableBitmap],
    config: PageConfig = PageConfig(),
    cursor: Optional[LayoutCursor] = None,
) -> LayoutResult:
    """Lay out the title page, card pages and table pages on one cursor."""
    cursor = cursor or LayoutCursor()
    cursor.new_page(config.cards_start_y)
    cursor.place(
        PlacedBlock(
            kind=BLOCK_TITLE,
            x=config.page_width / 2,
            y=config.title_y,
            width=0.0,
            height=0.0,
            text=title,
            font_size=config.title_size,
        )
    )
    place_cards(cursor, card_images, config)
    if table is not None:
        paginate_table(cursor, table, config)

    result = cursor.finish()
    logger.info(
        "Laid out %d cards and %s onto %d pages",
        len(card_images),
        "a calling list" if table is not None else "no calling list",
        result.page_count,
    )
    return result

"""
Module: output.pdf

Purpose:
    Write a LayoutResult to a PDF with ReportLab. Each Page becomes one PDF
    page; blocks are drawn at their millimetre rectangles.

Dependencies:
    - reportlab: PDF generation
    - PIL: Image handling
"""

from __future__ import annotations

import io
import logging
import re
from pathlib import Path

from PIL import Image
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ..layout.config import PageConfig
from ..layout.models import BLOCK_TITLE, LayoutResult, Page, PlacedBlock

logger = logging.getLogger(__name__)

TITLE_FONT = "Helvetica-Bold"
JPEG_QUALITY = 95


def default_pdf_name(subject: str) -> str:
    return f"Bingo-{re.sub(r'[^a-z0-9]', '_', subject, flags=re.IGNORECASE)}.pdf"


def render_to_pdf(layout: LayoutResult, output_path: Path, config: PageConfig = PageConfig()) -> None:
    """
    Render layout result to a PDF file.

    Raises:
        OSError: If the PDF cannot be written
    """
    if layout.page_count == 0:
        logger.warning("Empty layout, creating empty PDF")

    page_size = (config.page_width * mm, config.page_height * mm)
    c = canvas.Canvas(str(output_path), pagesize=page_size)
    c.setTitle(output_path.stem)

    for page in layout.pages:
        _render_page(c, page, config)
        c.showPage()

    c.save()
    logger.info("Rendered %d pages to %s", layout.page_count, output_path)


def _render_page(c: canvas.Canvas, page: Page, config: PageConfig) -> None:
    for block in page.blocks:
        if block.kind == BLOCK_TITLE:
            _draw_title(c, block, config)
        else:
            _draw_image(c, block, config)


def _draw_title(c: canvas.Canvas, block: PlacedBlock, config: PageConfig) -> None:
    c.saveState()
    c.setFont(TITLE_FONT, block.font_size)
    c.drawCentredString(block.x * mm, (config.page_height - block.y) * mm, block.text or "")
    c.restoreState()


def _draw_image(c: canvas.Canvas, block: PlacedBlock, config: PageConfig) -> None:
    # PDF origin is bottom-left; layout origin is top-left
    y_pt = (config.page_height - block.y - block.height) * mm
    c.drawImage(
        _pil_to_reader(block.image),
        block.x * mm,
        y_pt,
        width=block.width * mm,
        height=block.height * mm,
    )


def _pil_to_reader(img: Image.Image) -> ImageReader:
    buf = io.BytesIO()
    img.convert("RGB").save(buf, format="JPEG", quality=JPEG_QUALITY)
    buf.seek(0)
    return ImageReader(buf)

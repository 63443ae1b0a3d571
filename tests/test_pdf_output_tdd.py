from __future__ import annotations

import re
from pathlib import Path

from PIL import Image

from quiz_bingo.layout import build_document_layout
from quiz_bingo.output import default_pdf_name, render_to_pdf
from quiz_bingo.render.table import TableBitmap


def page_count(pdf: bytes) -> int:
    return len(re.findall(rb"/Type /Page\b", pdf))


def test_pdf_has_one_page_per_layout_page(tmp_path: Path):
    cards = [Image.new("RGB", (600, 700), "white")] * 10
    table_img = Image.new("RGB", (380, 1000), "white")
    table = TableBitmap(image=table_img, layout_height=500, row_bottoms=tuple(range(50, 501, 50)))
    layout = build_document_layout("Bingo: Geography", cards, table)

    out = tmp_path / "bingo.pdf"
    render_to_pdf(layout, out)
    data = out.read_bytes()
    assert data.startswith(b"%PDF")
    assert page_count(data) == layout.page_count == 5


def test_default_pdf_name_replaces_non_alphanumerics():
    assert default_pdf_name("World War 2!") == "Bingo-World_War_2_.pdf"
    assert default_pdf_name("Maths") == "Bingo-Maths.pdf"

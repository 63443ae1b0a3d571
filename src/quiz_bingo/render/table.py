"""Render the calling list as one tall bitmap with recorded row boundaries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from PIL import Image, ImageDraw

from ..models import Item
from .text import display_text, load_font, wrap_text


@dataclass(frozen=True)
class TableStyle:
    scale: int = 2
    width: int = 800
    padding: int = 16
    cell_padding: int = 12
    title_font: int = 24
    intro_font: int = 14
    body_font: int = 16
    number_col: int = 56
    answer_col: int = 220
    check_col: int = 64
    check_box: int = 22
    title: str = "Calling list"


@dataclass(frozen=True)
class TableBitmap:
    """Rendered table plus the geometry needed to cut it safely.

    `layout_height` and `row_bottoms` are in layout units; the image is
    `layout_height * scale` pixels tall.
    """

    image: Image.Image
    layout_height: float
    row_bottoms: Tuple[float, ...]

    @property
    def scale_factor(self) -> float:
        return self.image.height / self.layout_height

    def row_bottoms_px(self) -> List[int]:
        factor = self.scale_factor
        return [int(round(bottom * factor)) for bottom in self.row_bottoms]


def _column_edges(style: TableStyle, width: int) -> List[int]:
    s = style.scale
    left = style.padding * s
    right = width - style.padding * s
    number = left + style.number_col * s
    check = right - style.check_col * s
    answer = check - style.answer_col * s
    return [left, number, answer, check, right]


def render_calling_list(items: Sequence[Item], is_math: bool, style: TableStyle = TableStyle()) -> TableBitmap:
    s = style.scale
    width = style.width * s
    pad = style.padding * s
    cp = style.cell_padding * s
    edges = _column_edges(style, width)

    title_font = load_font(style.title_font * s, bold=True)
    intro_font = load_font(style.intro_font * s)
    body_font = load_font(style.body_font * s)
    bold_font = load_font(style.body_font * s, bold=True)
    line_h = int(style.body_font * s * 1.35)

    intro = (
        f"These are the {len(items)} items in the game. Read the question (left) aloud; "
        "players look for the answer (right) on their card."
    )
    intro_lines = wrap_text(intro, intro_font, width - 2 * pad)
    intro_line_h = int(style.intro_font * s * 1.4)

    header = ["#", "Question", "Answer (on card)", "Check"]
    rows: List[Tuple[List[str], List[str]]] = []
    for item in items:
        problem = wrap_text(display_text(item.problem, is_math), body_font, edges[2] - edges[1] - 2 * cp)
        answer = wrap_text(display_text(item.answer, is_math), bold_font, edges[3] - edges[2] - 2 * cp)
        rows.append((problem, answer))

    title_h = int(style.title_font * s * 1.6)
    y = pad + title_h + len(intro_lines) * intro_line_h + pad
    table_top = y
    header_h = line_h + 2 * cp
    row_heights = [max(len(p), len(a), 1) * line_h + 2 * cp for p, a in rows]
    height = table_top + header_h + sum(row_heights) + pad

    img = Image.new("RGB", (width, height), "white")
    draw = ImageDraw.Draw(img)
    draw.text((width / 2, pad + title_h / 2), style.title, font=title_font, fill="black", anchor="mm")
    for i, line in enumerate(intro_lines):
        draw.text(
            (width / 2, pad + title_h + intro_line_h * (i + 0.5)),
            line,
            font=intro_font,
            fill="#4b5563",
            anchor="mm",
        )

    draw.rectangle([edges[0], y, edges[-1], y + header_h], fill="#f3f4f6", outline="#d1d5db", width=s)
    for col, label in enumerate(header):
        draw.text((edges[col] + cp, y + cp), label, font=bold_font, fill="black")
    y += header_h

    row_bottoms: List[float] = []
    for index, ((problem, answer), row_h) in enumerate(zip(rows, row_heights), start=1):
        fill = "#f9fafb" if index % 2 == 0 else "white"
        draw.rectangle([edges[0], y, edges[-1], y + row_h], fill=fill, outline="#d1d5db", width=s)
        draw.text(((edges[0] + edges[1]) / 2, y + cp), str(index), font=body_font, fill="#6b7280", anchor="ma")
        for i, line in enumerate(problem):
            draw.text((edges[1] + cp, y + cp + i * line_h), line, font=body_font, fill="black")
        for i, line in enumerate(answer):
            draw.text((edges[2] + cp, y + cp + i * line_h), line, font=bold_font, fill="black")
        box = style.check_box * s
        bx = (edges[3] + edges[4] - box) / 2
        by = y + (row_h - box) / 2
        draw.rectangle([bx, by, bx + box, by + box], outline="#9ca3af", width=s)
        y += row_h
        row_bottoms.append(y / s)

    for x in edges[1:-1]:
        draw.line([(x, table_top), (x, y)], fill="#d1d5db", width=s)

    return TableBitmap(image=img, layout_height=height / s, row_bottoms=tuple(row_bottoms))

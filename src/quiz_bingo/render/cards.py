from __future__ import annotations

from dataclasses import dataclass

from PIL import Image, ImageDraw

from ..models import Card, GridShape
from .text import display_text, load_font, wrap_text


@dataclass(frozen=True)
class CardStyle:
    """Card geometry in layout units; bitmaps are drawn at `scale` pixels per unit."""

    scale: int = 2
    width: int = 300
    padding: int = 16
    header_height: int = 30
    header_gap: int = 8
    outer_border: int = 2
    cell_border: int = 1
    header_font: int = 14
    base_font: float = 17.6  # 1.1rem
    min_font: float = 11.2  # 0.7rem

    def cell_font_size(self, shape: GridShape) -> float:
        # shrink text as the grid grows
        return max(self.min_font, self.base_font - max(shape.rows, shape.cols) * 1.6)


def render_card(card: Card, shape: GridShape, is_math: bool, style: CardStyle = CardStyle()) -> Image.Image:
    """Draw a bingo card: "Bingo card #N" header above a grid of square cells."""
    if len(card.cells) != shape.cells:
        raise ValueError(f"Card {card.id} has {len(card.cells)} cells, grid needs {shape.cells}")

    s = style.scale
    width = style.width * s
    pad = style.padding * s
    grid_width = width - 2 * pad
    cell = grid_width // shape.cols
    grid_width = cell * shape.cols
    grid_left = (width - grid_width) // 2
    header_h = style.header_height * s
    grid_top = pad + header_h + style.header_gap * s
    height = grid_top + cell * shape.rows + pad

    img = Image.new("RGB", (width, height), "white")
    draw = ImageDraw.Draw(img)
    draw.rectangle([0, 0, width - 1, height - 1], outline="black", width=style.outer_border * s)

    header_font = load_font(style.header_font * s, bold=True)
    title = f"BINGO CARD #{card.id}"
    draw.text((width / 2, pad + header_h / 2), title, font=header_font, fill="black", anchor="mm")
    rule_y = pad + header_h
    draw.line([(pad, rule_y), (width - pad, rule_y)], fill="black", width=style.outer_border * s)

    cell_font = load_font(int(round(style.cell_font_size(shape) * s)), bold=True)
    inner = cell - 8 * s
    line_h = cell_font.size * 1.2 if hasattr(cell_font, "size") else 14 * s
    for r, row in enumerate(card.rows(shape.cols)):
        for c, item in enumerate(row):
            x0 = grid_left + c * cell
            y0 = grid_top + r * cell
            draw.rectangle([x0, y0, x0 + cell, y0 + cell], outline="black", width=style.cell_border * s)
            lines = wrap_text(display_text(item.answer, is_math), cell_font, inner)
            max_lines = max(1, int(inner // line_h))
            if len(lines) > max_lines:
                lines = lines[:max_lines]
                lines[-1] = lines[-1].rstrip() + "…"
            text_top = y0 + (cell - line_h * len(lines)) / 2
            for i, line in enumerate(lines):
                draw.text(
                    (x0 + cell / 2, text_top + line_h * (i + 0.5)),
                    line,
                    font=cell_font,
                    fill="#111827",
                    anchor="mm",
                )
    draw.rectangle(
        [grid_left, grid_top, grid_left + grid_width, grid_top + cell * shape.rows],
        outline="black",
        width=style.outer_border * s,
    )
    return img

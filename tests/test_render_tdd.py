from __future__ import annotations

import pytest

from quiz_bingo.models import Card, GridShape, Item
from quiz_bingo.render import CardStyle, render_calling_list, render_card
from quiz_bingo.render.text import display_text, latex_to_text


def items(n: int) -> list[Item]:
    return [Item(id=f"item-{i}", problem=f"What is {i} + {i}?", answer=str(2 * i)) for i in range(n)]


def test_card_image_width_and_square_cells():
    shape = GridShape(3, 3)
    image = render_card(Card(id=1, cells=tuple(items(9))), shape, is_math=False)
    style = CardStyle()
    assert image.width == style.width * style.scale
    assert image.height > image.width


def test_larger_grid_uses_smaller_font():
    style = CardStyle()
    assert style.cell_font_size(GridShape(5, 5)) < style.cell_font_size(GridShape(3, 3))
    assert style.cell_font_size(GridShape(5, 5)) >= style.min_font


def test_card_with_wrong_cell_count_is_rejected():
    with pytest.raises(ValueError):
        render_card(Card(id=1, cells=tuple(items(8))), GridShape(3, 3), is_math=False)


def test_calling_list_row_geometry():
    pool = items(6)
    table = render_calling_list(pool, is_math=False)
    bottoms = table.row_bottoms
    assert len(bottoms) == len(pool)
    assert all(a < b for a, b in zip(bottoms, bottoms[1:]))
    assert bottoms[-1] < table.layout_height
    assert table.scale_factor == pytest.approx(2.0)
    px = table.row_bottoms_px()
    assert all(isinstance(v, int) for v in px)
    assert px[-1] < table.image.height


def test_long_question_makes_taller_row():
    pool = [
        Item(id="a", problem="Short?", answer="x"),
        Item(id="b", problem=" ".join(["a very long question"] * 20), answer="y"),
        Item(id="c", problem="Short?", answer="z"),
    ]
    b = render_calling_list(pool, is_math=False).row_bottoms
    assert (b[1] - b[0]) > (b[2] - b[1])


@pytest.mark.parametrize(
    "latex, expected",
    [
        (r"\frac{1}{2}", "1/2"),
        (r"3 \times 4", "3 × 4"),
        (r"x^2", "x²"),
        (r"x^{10}", "x¹⁰"),
        (r"H_2O", "H₂O"),
        (r"\sqrt{16}", "√(16)"),
        (r"\text{cm}", "cm"),
    ],
)
def test_latex_to_text(latex, expected):
    assert latex_to_text(latex) == expected


def test_display_text_leaves_plain_text_alone():
    assert display_text("x^2", is_math=False) == "x^2"
    assert display_text("x^2", is_math=True) == "x²"

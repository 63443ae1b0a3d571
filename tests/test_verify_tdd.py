from __future__ import annotations

from quiz_bingo.assembler import assemble_cards
from quiz_bingo.models import Card, Item
from quiz_bingo.rng import create_rng
from quiz_bingo.verify import (
    chi2_wilson_hilferty_pvalue,
    compute_frequencies,
    uniformity_test,
    verify,
)


def pool(n: int) -> tuple[Item, ...]:
    return tuple(Item(id=f"item-{i}", problem=f"q{i}", answer=f"a{i}") for i in range(n))


def test_verify_reports_checks_and_usage():
    items = pool(12)
    cards = assemble_cards(items, 20, 3, 3, create_rng("py_random", 123))
    rep = verify(cards, items, rows=3, cols=3)
    assert rep["ok_cell_count"] is True
    assert rep["ok_no_duplicates_within_cards"] is True
    assert rep["ok_cells_from_pool"] is True
    assert rep["card_count"] == 20
    assert rep["pool_size"] == 12
    assert rep["grid"] == {"rows": 3, "cols": 3, "cells": 9}
    assert sum(rep["frequencies"].values()) == 20 * 9
    assert 0.0 <= rep["tests"]["usage"]["chi2"]["p_value"] <= 1.0
    assert rep["capacity"]["feasible"] is True


def test_verify_flags_foreign_and_duplicate_cells():
    items = pool(10)
    stranger = Item(id="zzz", problem="?", answer="?")
    bad = [
        Card(id=1, cells=items[:8] + (stranger,)),
        Card(id=2, cells=items[:8] + (items[0],)),
    ]
    rep = verify(bad, items, rows=3, cols=3)
    assert rep["ok_cells_from_pool"] is False
    assert rep["ok_no_duplicates_within_cards"] is False
    assert rep["ok_cell_count"] is True


def test_unused_items_have_zero_frequency():
    items = pool(10)
    cards = [Card(id=1, cells=items[:9])]
    freqs = compute_frequencies(cards, items)
    assert freqs["item-9"] == 0
    assert freqs["item-0"] == 1


def test_uniformity_of_perfectly_even_usage():
    result = uniformity_test({"a": 5, "b": 5, "c": 5})
    assert result["max_minus_min"] == 0
    assert result["chi2"]["stat"] == 0.0


def test_pvalue_bounds():
    assert chi2_wilson_hilferty_pvalue(0.0, 0) == 1.0
    assert chi2_wilson_hilferty_pvalue(1000.0, 5) < 0.001

from __future__ import annotations

import math
from collections import Counter
from typing import Dict, Sequence

from .feasibility import check_pool_capacity, minimum_pool
from .models import Card, Item
from .uniqueness import count_identical_cards


def compute_frequencies(cards: Sequence[Card], pool: Sequence[Item]) -> Dict[str, int]:
    counts: Counter[str] = Counter()
    for card in cards:
        counts.update(card.item_ids)
    # every pool item present, unused ones with 0
    for item in pool:
        counts.setdefault(item.id, 0)
    return dict(counts)


def check_no_duplicates_within_cards(cards: Sequence[Card]) -> bool:
    for card in cards:
        ids = card.item_ids
        if len(set(ids)) != len(ids):
            return False
    return True


def check_cells_from_pool(cards: Sequence[Card], pool: Sequence[Item]) -> bool:
    known = {item.id for item in pool}
    return all(item_id in known for card in cards for item_id in card.item_ids)


def chi2_wilson_hilferty_pvalue(stat: float, df: int) -> float:
    if df <= 0:
        return 1.0
    # Wilson-Hilferty: cube-root transform of chi-square to a normal variate
    t = (stat / df) ** (1.0 / 3.0)
    mu = 1.0 - 2.0 / (9.0 * df)
    sigma = math.sqrt(2.0 / (9.0 * df))
    z = (t - mu) / sigma

    def phi(val: float) -> float:
        return 0.5 * (1.0 + math.erf(val / math.sqrt(2.0)))

    p_right = 1.0 - phi(z)
    return max(0.0, min(1.0, p_right))


def uniformity_test(freqs: Dict[str, int], alpha: float = 0.05) -> Dict[str, object]:
    total = sum(freqs.values())
    size = len(freqs)
    if total == 0 or size == 0:
        return {"max_minus_min": 0, "chi2": {"stat": 0.0, "df": 0, "p_value": 1.0}}
    expected = total / size
    stat = sum((count - expected) ** 2 / expected for count in freqs.values())
    df = max(size - 1, 1)
    p = chi2_wilson_hilferty_pvalue(stat, df)
    return {
        "max_minus_min": max(freqs.values()) - min(freqs.values()),
        "chi2": {"stat": round(stat, 6), "df": df, "p_value": round(p, 6)},
        "alpha": alpha,
        "engine": "wilson_hilferty",
    }


def verify(cards: Sequence[Card], pool: Sequence[Item], *, rows: int, cols: int) -> Dict[str, object]:
    """Audit report for a dealt card set against the pool it was drawn from."""
    freqs = compute_frequencies(cards, pool)
    capacity = check_pool_capacity(
        pool_size=len(pool), rows=rows, cols=cols, card_count=len(cards)
    )
    used = sum(1 for count in freqs.values() if count > 0)
    return {
        "grid": {"rows": rows, "cols": cols, "cells": rows * cols},
        "card_count": len(cards),
        "pool_size": len(pool),
        "minimum_pool": minimum_pool(rows, cols, max(len(cards), 1)),
        "frequencies": freqs,
        "pool_coverage": round(used / len(pool), 6) if pool else 0.0,
        "identical_cards": count_identical_cards(cards),
        "capacity": {"feasible": capacity.feasible, "reasons": capacity.reasons},
        "tests": {"usage": uniformity_test(freqs)},
        "ok_cell_count": all(len(c.cells) == rows * cols for c in cards),
        "ok_no_duplicates_within_cards": check_no_duplicates_within_cards(cards),
        "ok_cells_from_pool": check_cells_from_pool(cards, pool),
    }

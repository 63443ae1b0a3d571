from __future__ import annotations

from dataclasses import dataclass
from typing import List

POOL_SIZE_CEILING = 100


@dataclass
class Feasibility:
    feasible: bool
    reasons: List[str]


def combinations(n: int, r: int) -> int:
    """C(n, r) via the multiplicative formula, rounded to absorb float drift."""
    if r > n:
        return 0
    if r == 0 or r == n:
        return 1
    if r > n / 2:
        r = n - r
    res = 1.0
    for i in range(1, r + 1):
        res = res * (n - i + 1) / i
    return int(round(res))


def minimum_pool(rows: int, cols: int, card_count: int) -> int:
    """Smallest pool whose k-combinations cover `card_count` cards, k = rows*cols.

    The search stops at POOL_SIZE_CEILING. The result is never below k + 1,
    since a pool of exactly k items makes every card identical.
    Callers validate card_count >= 1.
    """
    k = rows * cols
    size = k
    while True:
        if combinations(size, k) >= card_count:
            break
        size += 1
        if size > POOL_SIZE_CEILING:
            size = POOL_SIZE_CEILING
            break
    return max(size, k + 1)


def check_pool_capacity(*, pool_size: int, rows: int, cols: int, card_count: int) -> Feasibility:
    k = rows * cols
    reasons: List[str] = []
    if pool_size < k:
        reasons.append(f"pool_size {pool_size} < cells per card {k}")
        return Feasibility(feasible=False, reasons=reasons)
    if combinations(pool_size, k) < card_count:
        reasons.append(f"C({pool_size},{k}) < {card_count}: some cards will repeat")
    if pool_size == k:
        reasons.append("pool_size == cells per card: every card holds the same items")
    return Feasibility(feasible=True, reasons=reasons)

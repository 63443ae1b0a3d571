"""Deal bingo cards from a shared item pool."""

from __future__ import annotations

import logging
from typing import List, Sequence, TypeVar

from .errors import PoolTooSmallError
from .models import Card, Item
from .rng import RandomSource

logger = logging.getLogger(__name__)

T = TypeVar("T")


def shuffled(items: Sequence[T], rng: RandomSource) -> List[T]:
    """Return a uniformly random permutation of `items` (Fisher-Yates)."""
    arr = list(items)
    for i in range(len(arr) - 1, 0, -1):
        j = rng.randint(0, i)
        arr[i], arr[j] = arr[j], arr[i]
    return arr


def assemble_cards(
    pool: Sequence[Item],
    card_count: int,
    rows: int,
    cols: int,
    rng: RandomSource,
) -> List[Card]:
    """Build `card_count` cards, each the head of an independent pool shuffle.

    Cards are not guaranteed to be distinct from each other; with a small pool
    and many cards repeats are expected. Raises PoolTooSmallError before
    producing anything when the pool cannot fill one card.
    """
    cells = rows * cols
    if len(pool) < cells:
        raise PoolTooSmallError(len(pool), cells)

    cards: List[Card] = []
    for card_id in range(1, card_count + 1):
        deal = shuffled(pool, rng)
        cards.append(Card(id=card_id, cells=tuple(deal[:cells])))

    logger.debug("Assembled %d cards of %d cells from a pool of %d", len(cards), cells, len(pool))
    return cards

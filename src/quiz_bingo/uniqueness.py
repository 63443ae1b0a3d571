from __future__ import annotations

import hashlib
import json
from collections import Counter
from typing import Iterable, Sequence, Tuple

from .models import Card


def card_key(card: Card) -> Tuple[str, ...]:
    """Order-independent identity of a card: two cards with the same items win together."""
    return tuple(sorted(card.item_ids))


def card_hash(card: Card) -> str:
    payload = json.dumps(card.item_ids, ensure_ascii=True, separators=(",", ":"))
    return "sha256:" + hashlib.sha256(payload.encode("utf-8")).hexdigest()


def cards_hash(cards: Iterable[Card]) -> str:
    hashes = [card_hash(c) for c in cards]
    payload = json.dumps(hashes, ensure_ascii=True, separators=(",", ":"))
    return "sha256:" + hashlib.sha256(payload.encode("utf-8")).hexdigest()


def count_identical_cards(cards: Sequence[Card]) -> int:
    """Number of cards whose item set already appeared on an earlier card."""
    seen = Counter(card_key(c) for c in cards)
    return sum(c - 1 for c in seen.values() if c > 1)

from __future__ import annotations

import csv
import json
import platform
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Sequence

from .models import Card, Item, SubjectContext, make_pool, pool_index
from .uniqueness import card_hash, cards_hash


def ensure_parent(path: Path, *, mkdirs: bool) -> None:
    parent = path.parent
    if not parent.exists() and mkdirs:
        parent.mkdir(parents=True, exist_ok=True)


def check_writable(path: Path, *, mkdirs: bool, overwrite: bool) -> None:
    if path.exists() and not overwrite:
        raise FileExistsError(
            f"Refusing to overwrite existing file without --force: {path}"
        )
    ensure_parent(path, mkdirs=mkdirs)
    if not path.parent.exists():
        raise FileNotFoundError(f"Output directory does not exist: {path.parent}")


def write_json(path: Path, data: object, *, mkdirs: bool, overwrite: bool) -> None:
    check_writable(path, mkdirs=mkdirs, overwrite=overwrite)
    text = json.dumps(data, ensure_ascii=False, sort_keys=True, indent=2)
    path.write_text(text + "\n", encoding="utf-8")


def build_run_meta(
    *,
    app_version: str,
    params_hash: str,
    seed: int,
    rng_engine: str,
    rows: int,
    cols: int,
    context: SubjectContext,
) -> Dict[str, object]:
    return {
        "app_version": app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "python_version": sys.version.split()[0],
        "platform": platform.system().lower(),
        "params_hash": params_hash,
        "seed": seed,
        "rng_engine": rng_engine,
        "hash_algorithm": "sha256",
        "rows": rows,
        "cols": cols,
        "subject": context.subject,
        "is_math": context.is_math,
    }


def emit_cards_json(
    path: Path,
    *,
    cards: Sequence[Card],
    pool: Sequence[Item],
    run_meta: Dict[str, object],
    mkdirs: bool,
    overwrite: bool,
) -> None:
    entries: List[Dict[str, object]] = []
    for card in cards:
        entries.append(
            {"id": card.id, "cells": card.item_ids, "card_hash": card_hash(card)}
        )
    data = {
        "run_meta": run_meta,
        "pool": [item.to_dict() for item in pool],
        "cards": entries,
        "cards_hash": cards_hash(cards),
    }
    write_json(path, data, mkdirs=mkdirs, overwrite=overwrite)


def emit_report_json(
    path: Path, *, report: Dict[str, object], mkdirs: bool, overwrite: bool
) -> None:
    write_json(path, report, mkdirs=mkdirs, overwrite=overwrite)


def emit_calling_csv(
    path: Path,
    *,
    items: Sequence[Item],
    mkdirs: bool,
    overwrite: bool,
) -> None:
    check_writable(path, mkdirs=mkdirs, overwrite=overwrite)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["#", "problem", "answer"])
        for idx, item in enumerate(items, start=1):
            writer.writerow([idx, item.problem, item.answer])


@dataclass
class CardsFile:
    run_meta: Dict[str, object]
    pool: tuple
    cards: List[Card]

    @property
    def context(self) -> SubjectContext:
        return SubjectContext(
            subject=str(self.run_meta.get("subject", "")),
            is_math=bool(self.run_meta.get("is_math", False)),
        )


def load_cards_json(path: Path) -> CardsFile:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or "pool" not in data or "cards" not in data:
        raise ValueError(f"Not a cards file: {path}")
    pool = make_pool(Item.from_dict(entry) for entry in data["pool"])
    by_id = pool_index(pool)
    cards: List[Card] = []
    for entry in data["cards"]:
        try:
            cells = tuple(by_id[item_id] for item_id in entry["cells"])
        except KeyError as exc:
            raise ValueError(f"Card {entry.get('id')} references unknown item {exc}") from exc
        cards.append(Card(id=int(entry["id"]), cells=cells))
    return CardsFile(run_meta=dict(data.get("run_meta") or {}), pool=pool, cards=cards)

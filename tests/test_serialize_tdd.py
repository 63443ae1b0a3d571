from __future__ import annotations

import csv
import json
from pathlib import Path

import pytest

from quiz_bingo.models import Card, Item, SubjectContext, make_pool
from quiz_bingo.serialize import (
    build_run_meta,
    emit_calling_csv,
    emit_cards_json,
    load_cards_json,
)


def sample():
    pool = make_pool(Item(id=f"item-{i}", problem=f"q{i}", answer=f"a{i}") for i in range(10))
    cards = [Card(id=1, cells=pool[:9]), Card(id=2, cells=pool[1:10])]
    meta = build_run_meta(
        app_version="0.0.0",
        params_hash="sha256:x",
        seed=5,
        rng_engine="py_random",
        rows=3,
        cols=3,
        context=SubjectContext("Physics", True),
    )
    return pool, cards, meta


def test_cards_file_reloads(tmp_path: Path):
    pool, cards, meta = sample()
    path = tmp_path / "out" / "cards.json"
    emit_cards_json(path, cards=cards, pool=pool, run_meta=meta, mkdirs=True, overwrite=False)

    loaded = load_cards_json(path)
    assert loaded.pool == pool
    assert loaded.cards == cards
    assert loaded.context == SubjectContext("Physics", True)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["cards_hash"].startswith("sha256:")


def test_refuses_overwrite_without_force(tmp_path: Path):
    pool, cards, meta = sample()
    path = tmp_path / "cards.json"
    emit_cards_json(path, cards=cards, pool=pool, run_meta=meta, mkdirs=True, overwrite=False)
    with pytest.raises(FileExistsError):
        emit_cards_json(path, cards=cards, pool=pool, run_meta=meta, mkdirs=True, overwrite=False)
    emit_cards_json(path, cards=cards, pool=pool, run_meta=meta, mkdirs=True, overwrite=True)


def test_unknown_item_in_cards_file(tmp_path: Path):
    path = tmp_path / "cards.json"
    path.write_text(
        json.dumps({"pool": [{"id": "a", "problem": "q", "answer": "a"}], "cards": [{"id": 1, "cells": ["b"]}]}),
        encoding="utf-8",
    )
    with pytest.raises(ValueError):
        load_cards_json(path)


def test_calling_csv(tmp_path: Path):
    pool, _cards, _meta = sample()
    path = tmp_path / "calling.csv"
    emit_calling_csv(path, items=pool, mkdirs=True, overwrite=False)
    with path.open(encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["#", "problem", "answer"]
    assert rows[1] == ["1", "q0", "a0"]
    assert len(rows) == 11


def test_duplicate_ids_rejected():
    with pytest.raises(ValueError):
        make_pool([Item("a", "q", "x"), Item("a", "q2", "y")])

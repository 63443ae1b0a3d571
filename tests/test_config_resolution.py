from __future__ import annotations

import os
from pathlib import Path

import pytest

from quiz_bingo.config import resolve_parameters, validate_parameters


def test_defaults_without_sources():
    resolved, params_hash, cfg = resolve_parameters(config_path_str=None, cli_overrides={}, env={})
    assert (resolved["rows"], resolved["cols"], resolved["cards"]) == (3, 3, 30)
    assert resolved["seed"] == {"engine": "py_random"}
    assert params_hash.startswith("sha256:")
    assert cfg is None


def test_env_precedence_over_config(tmp_path: Path, monkeypatch):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("rows: 4\ncards: 10\n", encoding="utf-8")
    monkeypatch.setenv("QUIZ_BINGO_ROWS", "5")

    resolved, params_hash, _ = resolve_parameters(
        config_path_str=str(cfg), cli_overrides={}, env=os.environ
    )
    assert resolved["rows"] == 5
    assert resolved["cards"] == 10
    assert params_hash.startswith("sha256:")


def test_cli_precedence_over_env(tmp_path: Path, monkeypatch):
    cfg = tmp_path / "config.json"
    cfg.write_text('{"cols": 4}', encoding="utf-8")
    monkeypatch.setenv("QUIZ_BINGO_COLS", "5")

    resolved, _hash, _ = resolve_parameters(
        config_path_str=str(cfg), cli_overrides={"cols": 3}, env=os.environ
    )
    assert resolved["cols"] == 3


def test_seed_override_keeps_engine():
    resolved, _hash, _ = resolve_parameters(
        config_path_str=None, cli_overrides={"seed.value": 42}, env={"QUIZ_BINGO_IS_MATH": "yes"}
    )
    assert resolved["seed"] == {"engine": "py_random", "value": 42}
    assert resolved["is_math"] is True


def test_path_normalization_cli_vs_config(tmp_path: Path, monkeypatch):
    cfg_dir = tmp_path / "cfg"
    cfg_dir.mkdir()
    cfg = cfg_dir / "conf.yaml"
    cfg.write_text("out_cards: cards.json\n", encoding="utf-8")

    monkeypatch.chdir(tmp_path)
    resolved, _hash, _ = resolve_parameters(
        config_path_str=str(cfg),
        cli_overrides={"out_report": "rep.json"},
        env={},
    )
    assert Path(resolved["out_cards"]).parent == cfg_dir.resolve()
    assert Path(resolved["out_report"]).parent == tmp_path.resolve()


def test_missing_config_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        resolve_parameters(config_path_str=str(tmp_path / "nope.yaml"), cli_overrides={}, env={})


def test_params_hash_ignores_output_and_logging():
    base = {"rows": 4, "cols": 4, "cards": 25, "topic": "Rivers", "seed.value": 7, "log_level": "INFO"}
    _, h1, _ = resolve_parameters(config_path_str=None, cli_overrides=base, env={})
    altered = dict(base, log_level="DEBUG", out_pdf="/tmp/x.pdf")
    _, h2, _ = resolve_parameters(config_path_str=None, cli_overrides=altered, env={})
    assert h1 == h2
    changed = dict(base, cards=26)
    _, h3, _ = resolve_parameters(config_path_str=None, cli_overrides=changed, env={})
    assert h3 != h1


@pytest.mark.parametrize(
    "override",
    [
        {"rows": 2},
        {"cols": 6},
        {"cards": 0},
        {"pool_size": 8},
        {"mode": "fuzzy"},
        {"rows": "three"},
    ],
)
def test_validate_rejects_bad_settings(override):
    resolved, _hash, _ = resolve_parameters(config_path_str=None, cli_overrides=override, env={})
    with pytest.raises(ValueError):
        validate_parameters(resolved)


def test_validate_accepts_defaults():
    resolved, _hash, _ = resolve_parameters(config_path_str=None, cli_overrides={"pool_size": 9}, env={})
    validate_parameters(resolved)


@pytest.mark.parametrize("seed_line", ["seed: 7\n", "seed:\n  value: seven\n"])
def test_validate_rejects_malformed_seed(tmp_path: Path, seed_line):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(seed_line, encoding="utf-8")
    resolved, _hash, _ = resolve_parameters(config_path_str=str(cfg), cli_overrides={}, env={})
    with pytest.raises(ValueError, match="seed"):
        validate_parameters(resolved)

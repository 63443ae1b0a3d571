from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

import yaml

from .models import GRID_MAX, GRID_MIN

ENV_PREFIX = "QUIZ_BINGO_"

PATH_KEYS = ("out_pdf", "out_cards", "out_report", "calling_csv", "log_file", "pool_file", "image")

INT_KEYS = {"rows", "cols", "cards", "pool_size", "seed.value"}
BOOL_KEYS = {"is_math"}


def _read_config_file(config_path: Path | None) -> Dict[str, Any]:
    if not config_path:
        return {}
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    suffix = config_path.suffix.lower()
    text = config_path.read_text(encoding="utf-8")
    if suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
        if not isinstance(data, dict):
            raise ValueError("Top-level YAML config must be a mapping")
        return data
    if suffix == ".json":
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("Top-level JSON config must be a mapping")
        return data
    raise ValueError(f"Unsupported config extension: {suffix}")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _collect_env_vars(env: Mapping[str, str]) -> Dict[str, Any]:
    """Map ENV variables with QUIZ_BINGO_ prefix to config keys.

    Explicit map; unknown variables are ignored.
    """
    mapping: Dict[str, str] = {
        # Grid and deal
        f"{ENV_PREFIX}ROWS": "rows",
        f"{ENV_PREFIX}COLS": "cols",
        f"{ENV_PREFIX}CARDS": "cards",
        f"{ENV_PREFIX}POOL_SIZE": "pool_size",
        # Content
        f"{ENV_PREFIX}SUBJECT": "subject",
        f"{ENV_PREFIX}TOPIC": "topic",
        f"{ENV_PREFIX}IMAGE": "image",
        f"{ENV_PREFIX}MODE": "mode",
        f"{ENV_PREFIX}IS_MATH": "is_math",
        f"{ENV_PREFIX}POOL_FILE": "pool_file",
        f"{ENV_PREFIX}MODEL": "model",
        # Seed
        f"{ENV_PREFIX}SEED_VALUE": "seed.value",
        f"{ENV_PREFIX}SEED_ENGINE": "seed.engine",
        # Output & UX
        f"{ENV_PREFIX}LOG_LEVEL": "log_level",
        f"{ENV_PREFIX}LOG_FORMAT": "log_format",
        f"{ENV_PREFIX}LOG_FILE": "log_file",
        f"{ENV_PREFIX}OUT_PDF": "out_pdf",
        f"{ENV_PREFIX}OUT_CARDS": "out_cards",
        f"{ENV_PREFIX}OUT_REPORT": "out_report",
        f"{ENV_PREFIX}CALLING_CSV": "calling_csv",
    }

    result: Dict[str, Any] = {}
    for env_key, cfg_key in mapping.items():
        if env_key not in env:
            continue
        raw = env[env_key]
        if cfg_key in INT_KEYS:
            try:
                result[cfg_key] = int(raw)
            except ValueError:
                result[cfg_key] = raw
        elif cfg_key in BOOL_KEYS:
            result[cfg_key] = _parse_bool(raw)
        else:
            result[cfg_key] = raw
    return result


def _set_nested(config: Dict[str, Any], dotted_key: str, value: Any) -> None:
    parts = dotted_key.split(".")
    cursor = config
    for part in parts[:-1]:
        if part not in cursor or not isinstance(cursor[part], dict):
            cursor[part] = {}
        cursor = cursor[part]
    cursor[parts[-1]] = value


def _apply_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = json.loads(json.dumps(base))  # deep copy via JSON
    for key, value in overrides.items():
        if "." in key:
            _set_nested(merged, key, value)
        elif isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def canonical_json_dumps(data: Any) -> str:
    return json.dumps(data, ensure_ascii=True, sort_keys=True, separators=(",", ":"))


def compute_params_hash(resolved: Mapping[str, Any]) -> str:
    include = {
        "rows",
        "cols",
        "cards",
        "pool_size",
        "subject",
        "topic",
        "mode",
        "is_math",
        "model",
        # seed
        "seed.engine",
        "seed.value",
    }

    def extract(path: str, source: Mapping[str, Any]) -> Any:
        cur: Any = source
        for part in path.split("."):
            if not isinstance(cur, Mapping) or part not in cur:
                return None
            cur = cur[part]
        return cur

    contract: Dict[str, Any] = {}
    for item in include:
        value = extract(item, resolved)
        if value is not None:
            contract[item] = value

    digest = hashlib.sha256(canonical_json_dumps(contract).encode("utf-8")).hexdigest()
    return f"sha256:{digest}"


def resolve_paths(
    resolved: Dict[str, Any],
    config_file: Path | None,
    cli_overrides: Dict[str, Any],
) -> Dict[str, Any]:
    """Normalize paths per policy.

    - Paths from config file: resolve relative to config directory
    - Paths from CLI: resolve relative to CWD
    """
    cwd = Path.cwd()
    cfg_dir = config_file.parent if config_file else None

    def normalize(path_value: str | None, is_cli: bool) -> str | None:
        if path_value is None or path_value == "":
            return None
        p = Path(path_value)
        if p.is_absolute():
            return str(p)
        base = cwd if is_cli else (cfg_dir or cwd)
        return str((base / p).resolve())

    result = dict(resolved)
    cli_keys = {k for k in cli_overrides.keys() if k in PATH_KEYS}

    for key in PATH_KEYS:
        value = resolved.get(key)
        if value is None:
            continue
        result[key] = normalize(str(value), key in cli_keys)

    return result


def resolve_parameters(
    *,
    config_path_str: str | None,
    cli_overrides: Dict[str, Any],
    env: Mapping[str, str] | None = None,
) -> Tuple[Dict[str, Any], str, Path | None]:
    """Resolve parameters with precedence CLI > ENV > config > defaults.

    Returns (resolved_params, params_hash, config_path)
    """
    config_path = Path(config_path_str).resolve() if config_path_str else None
    file_cfg = _read_config_file(config_path) if config_path else {}
    env_map = _collect_env_vars(os.environ if env is None else env)

    defaults: Dict[str, Any] = {
        "rows": 3,
        "cols": 3,
        "cards": 30,
        "mode": "similar",
        "model": "google/gemini-2.0-flash-001",
        "seed": {"engine": "py_random"},
        "log_level": "INFO",
        "log_format": "text",
    }

    merged = _apply_overrides(defaults, file_cfg)
    merged = _apply_overrides(merged, env_map)
    merged = _apply_overrides(merged, cli_overrides)

    merged = resolve_paths(merged, config_path, cli_overrides)

    params_hash = compute_params_hash(merged)
    return merged, params_hash, config_path


def validate_parameters(resolved: Mapping[str, Any]) -> None:
    """Reject grid, card and pool settings the generator cannot honour."""
    for key in ("rows", "cols"):
        value = resolved.get(key)
        if not isinstance(value, int) or not GRID_MIN <= value <= GRID_MAX:
            raise ValueError(f"{key} must be an integer within {GRID_MIN}..{GRID_MAX}: {value!r}")
    cards = resolved.get("cards")
    if not isinstance(cards, int) or cards < 1:
        raise ValueError(f"cards must be an integer >= 1: {cards!r}")
    pool_size = resolved.get("pool_size")
    if pool_size is not None:
        cells = resolved["rows"] * resolved["cols"]
        if not isinstance(pool_size, int) or pool_size < cells:
            raise ValueError(f"pool_size must be an integer >= {cells}: {pool_size!r}")
    if resolved.get("mode") not in ("similar", "exact"):
        raise ValueError(f"mode must be 'similar' or 'exact': {resolved.get('mode')!r}")
    seed = resolved.get("seed")
    if not isinstance(seed, Mapping):
        raise ValueError(f"seed must be a mapping with 'engine' and optional 'value': {seed!r}")
    if seed.get("value") is not None and not isinstance(seed.get("value"), int):
        raise ValueError(f"seed.value must be an integer: {seed.get('value')!r}")

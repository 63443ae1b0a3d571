from __future__ import annotations

import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import typer

from .config import resolve_parameters, validate_parameters
from .content import OpenRouterProvider, StaticPoolProvider
from .errors import BingoError
from .feasibility import minimum_pool
from .logging_setup import setup_logging
from .models import Card, GridShape, Item, SubjectContext
from .output.pdf import default_pdf_name
from .pipeline import GenerationParams, deal, export_pdf, generate
from .rng import derive_seed, fresh_seed
from .serialize import (
    build_run_meta,
    check_writable,
    emit_calling_csv,
    emit_cards_json,
    emit_report_json,
    load_cards_json,
)
from .verify import verify as verify_cards
from .version import __version__

app = typer.Typer(help="Quiz bingo card and calling-list generator")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(0)


@app.callback()
def common_options(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show application version and exit",
        is_eager=True,
        callback=_version_callback,
    ),
) -> None:
    pass


def _fail(exc: Exception) -> None:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


@app.command("pool-size")
def pool_size(
    rows: int = typer.Option(3, "--rows", min=3, max=5, help="Grid rows"),
    cols: int = typer.Option(3, "--cols", min=3, max=5, help="Grid columns"),
    cards: int = typer.Option(30, "--cards", min=1, help="Number of cards"),
) -> None:
    """Print the minimum number of distinct items for the requested cards."""
    typer.echo(str(minimum_pool(rows, cols, cards)))


@app.command()
def run(
    config: str = typer.Option(None, "--config", help="Path to config file (YAML/JSON)"),
    topic: str = typer.Option(None, "--topic", help="Topic text for the content provider"),
    image: str = typer.Option(None, "--image", help="Reference image (file path)"),
    mode: str = typer.Option(None, "--mode", help="similar|exact (with --image)"),
    subject: str = typer.Option(None, "--subject", help="Skip subject detection and use this subject"),
    math: Optional[bool] = typer.Option(None, "--math/--no-math", help="Force LaTeX rendering on or off"),
    rows: int = typer.Option(None, "--rows", help="Grid rows (3-5)"),
    cols: int = typer.Option(None, "--cols", help="Grid columns (3-5)"),
    cards: int = typer.Option(None, "--cards", help="Number of cards"),
    pool_size: int = typer.Option(None, "--pool-size", help="Items to generate (default: minimum)"),
    pool_file: str = typer.Option(None, "--pool-file", help="Read items from JSON/YAML instead of the API"),
    seed: int = typer.Option(None, "--seed", help="RNG seed (random when omitted)"),
    out_pdf: str = typer.Option(None, "--out-pdf", help="PDF output path"),
    out_cards: str = typer.Option(None, "--out-cards", help="cards.json output path"),
    out_report: str = typer.Option(None, "--out-report", help="report.json output path"),
    calling_csv: str = typer.Option(None, "--calling-csv", help="Calling list CSV path (optional)"),
    log_file: str = typer.Option(None, "--log-file", help="Log file path"),
    log_level: str = typer.Option(None, "--log-level", help="DEBUG|INFO|WARN|ERROR"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Resolve params and exit"),
    force: bool = typer.Option(False, "--force", help="Overwrite outputs if they exist"),
    no_mkdirs: bool = typer.Option(False, "--no-mkdirs", help="Do not create parent directories"),
) -> None:
    """Generate an item pool, deal cards and export the PDF."""

    cli_overrides: Dict[str, Any] = {
        key: value
        for key, value in {
            "topic": topic,
            "image": image,
            "mode": mode,
            "subject": subject,
            "is_math": math,
            "rows": rows,
            "cols": cols,
            "cards": cards,
            "pool_size": pool_size,
            "pool_file": pool_file,
            "seed.value": seed,
            "out_pdf": out_pdf,
            "out_cards": out_cards,
            "out_report": out_report,
            "calling_csv": calling_csv,
            "log_file": log_file,
            "log_level": log_level,
        }.items()
        if value is not None
    }

    resolved, params_hash, _cfg_path = resolve_parameters(
        config_path_str=config, cli_overrides=cli_overrides
    )

    setup_logging(
        level=str(resolved.get("log_level", "INFO")),
        log_file=resolved.get("log_file"),
        json_format=(str(resolved.get("log_format", "text")) == "json"),
    )

    try:
        validate_parameters(resolved)
    except ValueError as exc:
        _fail(exc)

    if dry_run:
        typer.echo(f"Minimum pool: {minimum_pool(resolved['rows'], resolved['cols'], resolved['cards'])}")
        typer.echo(f"Params hash: {params_hash}")
        raise typer.Exit(0)

    params = GenerationParams(
        rows=int(resolved["rows"]),
        cols=int(resolved["cols"]),
        cards=int(resolved["cards"]),
        topic=str(resolved.get("topic") or ""),
        pool_size=resolved.get("pool_size"),
        subject=resolved.get("subject"),
        is_math=resolved.get("is_math"),
        image=resolved.get("image"),
        mode=str(resolved.get("mode", "similar")),
        seed=resolved.get("seed", {}).get("value"),
        rng_engine=str(resolved.get("seed", {}).get("engine", "py_random")),
    )

    if resolved.get("pool_file"):
        provider = StaticPoolProvider(Path(resolved["pool_file"]))
    else:
        provider = OpenRouterProvider(model=str(resolved.get("model")))

    start_time = time.time()
    try:
        result = generate(params, provider)
    except (BingoError, ValueError) as exc:
        _fail(exc)
    typer.echo(
        f"Generated {len(result.pool)} items and {len(result.cards)} cards on "
        f"'{result.context.subject}' (seed {result.seed})"
    )

    _write_outputs(
        resolved=resolved,
        params_hash=params_hash,
        params=params,
        result_context=result.context,
        pool=result.pool,
        cards=result.cards,
        seed=result.seed,
        force=force,
        mkdirs=not no_mkdirs,
    )
    typer.echo(f"Done in {time.time() - start_time:.2f}s")
    raise typer.Exit(code=0)


def _write_outputs(
    *,
    resolved: Dict[str, Any],
    params_hash: str,
    params: GenerationParams,
    result_context: SubjectContext,
    pool: Sequence[Item],
    cards: Sequence[Card],
    seed: int,
    force: bool,
    mkdirs: bool,
) -> None:
    shape = GridShape(params.rows, params.cols)
    out_pdf_path = Path(resolved.get("out_pdf") or default_pdf_name(result_context.subject))
    out_cards_path = Path(resolved.get("out_cards") or "cards.json")
    out_report_path = Path(resolved.get("out_report") or "report.json")
    csv_path = Path(resolved["calling_csv"]) if resolved.get("calling_csv") else None

    try:
        # fail before any rendering if an output is in the way
        for path in (out_pdf_path, out_cards_path, out_report_path, csv_path):
            if path is not None:
                check_writable(path, mkdirs=mkdirs, overwrite=force)

        layout = export_pdf(result_context, cards, pool, shape, out_pdf_path)

        run_meta = build_run_meta(
            app_version=__version__,
            params_hash=params_hash,
            seed=seed,
            rng_engine=params.rng_engine,
            rows=params.rows,
            cols=params.cols,
            context=result_context,
        )
        emit_cards_json(
            out_cards_path, cards=cards, pool=pool, run_meta=run_meta, mkdirs=mkdirs, overwrite=force
        )
        report = verify_cards(cards, pool, rows=params.rows, cols=params.cols)
        report["layout"] = {"pages": layout.page_count, "warnings": layout.warnings}
        emit_report_json(out_report_path, report=report, mkdirs=mkdirs, overwrite=force)

        if csv_path is not None:
            emit_calling_csv(csv_path, items=pool, mkdirs=mkdirs, overwrite=force)
    except (BingoError, OSError) as exc:
        _fail(exc)

    typer.echo(f"PDF: {out_pdf_path} ({layout.page_count} pages)")
    typer.echo(f"Output files: {out_cards_path}, {out_report_path}")


@app.command()
def reshuffle(
    cards_file: str = typer.Option(..., "--cards-file", help="Existing cards.json"),
    cards: int = typer.Option(None, "--cards", min=1, help="Number of cards (default: as before)"),
    seed: int = typer.Option(None, "--seed", help="RNG seed (default: derived from the previous run)"),
    out_pdf: str = typer.Option(None, "--out-pdf", help="PDF output path"),
    out_cards: str = typer.Option(None, "--out-cards", help="cards.json output path"),
    out_report: str = typer.Option(None, "--out-report", help="report.json output path"),
    log_level: str = typer.Option("INFO", "--log-level", help="DEBUG|INFO|WARN|ERROR"),
    force: bool = typer.Option(False, "--force", help="Overwrite outputs if they exist"),
    no_mkdirs: bool = typer.Option(False, "--no-mkdirs", help="Do not create parent directories"),
) -> None:
    """Deal new cards from the pool stored in a cards.json and re-export."""
    setup_logging(level=log_level)
    try:
        loaded = load_cards_json(Path(cards_file))
    except (OSError, ValueError) as exc:
        _fail(exc)

    meta = loaded.run_meta
    rows, cols = int(meta.get("rows", 3)), int(meta.get("cols", 3))
    params = GenerationParams(
        rows=rows,
        cols=cols,
        cards=cards or len(loaded.cards),
        rng_engine=str(meta.get("rng_engine", "py_random")),
    )
    if seed is None:
        base = meta.get("seed")
        seed = derive_seed(int(base), 1, "reshuffle") if base is not None else fresh_seed()

    try:
        new_cards = deal(loaded.pool, params, seed)
    except BingoError as exc:
        _fail(exc)
    typer.echo(f"Dealt {len(new_cards)} new cards (seed {seed})")

    resolved = {"out_pdf": out_pdf, "out_cards": out_cards, "out_report": out_report}
    _write_outputs(
        resolved=resolved,
        params_hash=str(meta.get("params_hash", "")),
        params=params,
        result_context=loaded.context,
        pool=loaded.pool,
        cards=new_cards,
        seed=seed,
        force=force,
        mkdirs=not no_mkdirs,
    )
    raise typer.Exit(code=0)


@app.command()
def verify(
    cards_file: str = typer.Option(..., "--cards-file", help="Path to cards.json"),
    out_report: str = typer.Option(None, "--out-report", help="Write the report here instead of stdout"),
    strict: bool = typer.Option(False, "--strict", help="Exit 1 when a check fails"),
    force: bool = typer.Option(False, "--force", help="Overwrite the report if it exists"),
) -> None:
    """Recompute the audit report for an existing cards.json."""
    try:
        loaded = load_cards_json(Path(cards_file))
    except (OSError, ValueError) as exc:
        _fail(exc)

    meta = loaded.run_meta
    report = verify_cards(
        loaded.cards, loaded.pool, rows=int(meta.get("rows", 3)), cols=int(meta.get("cols", 3))
    )
    if out_report:
        try:
            emit_report_json(Path(out_report), report=report, mkdirs=True, overwrite=force)
        except OSError as exc:
            _fail(exc)
        typer.echo(f"Report: {out_report}")
    else:
        typer.echo(json.dumps(report, ensure_ascii=False, sort_keys=True, indent=2))

    ok = all(report[key] for key in ("ok_cell_count", "ok_no_duplicates_within_cards", "ok_cells_from_pool"))
    raise typer.Exit(code=0 if ok or not strict else 1)


def main(_argv: list[str] | None = None) -> int:
    try:
        app(standalone_mode=True)
        return 0
    except SystemExit as e:
        return int(e.code) if e.code is not None else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

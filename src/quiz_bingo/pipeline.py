"""Generation run: size the pool, fetch content, deal cards and export the PDF."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from PIL import Image

from .assembler import assemble_cards
from .content.base import ContentProvider
from .errors import GenerationError, RenderError
from .feasibility import check_pool_capacity, minimum_pool
from .layout import LayoutResult, PageConfig, build_document_layout
from .models import Card, GridShape, Item, SubjectContext, make_pool
from .output.pdf import render_to_pdf
from .render import CardStyle, TableBitmap, TableStyle, render_calling_list, render_card
from .rng import create_rng, fresh_seed

logger = logging.getLogger(__name__)


@dataclass
class GenerationParams:
    """Parameters for one generation run."""

    rows: int
    cols: int
    cards: int
    topic: str = ""
    pool_size: Optional[int] = None
    subject: Optional[str] = None
    is_math: Optional[bool] = None
    image: Optional[str] = None
    mode: str = "similar"
    seed: Optional[int] = None
    rng_engine: str = "py_random"

    @property
    def shape(self) -> GridShape:
        return GridShape(self.rows, self.cols)


@dataclass
class GenerationResult:
    context: SubjectContext
    pool: Tuple[Item, ...]
    cards: List[Card]
    seed: int
    minimum_pool: int
    warnings: List[str] = field(default_factory=list)


def resolve_subject(params: GenerationParams, provider: ContentProvider) -> SubjectContext:
    """Use the operator's subject when given, otherwise ask the provider."""
    if params.subject:
        return SubjectContext(subject=params.subject, is_math=bool(params.is_math))
    context = provider.detect_subject(params.topic, params.image)
    if params.is_math is not None:
        context = SubjectContext(subject=context.subject, is_math=params.is_math)
    return context


def deal(pool: Sequence[Item], params: GenerationParams, seed: int) -> List[Card]:
    rng = create_rng(params.rng_engine, seed)
    return assemble_cards(pool, params.cards, params.rows, params.cols, rng)


def generate(params: GenerationParams, provider: ContentProvider) -> GenerationResult:
    """Run sizing, content generation and card assembly.

    Provider failures propagate as GenerationError; a pool too small for one
    card raises PoolTooSmallError and no cards are returned.
    """
    shape = params.shape
    if params.cards < 1:
        raise ValueError(f"cards must be >= 1: {params.cards}")

    min_pool = minimum_pool(shape.rows, shape.cols, params.cards)
    pool_size = params.pool_size or min_pool
    context = resolve_subject(params, provider)
    logger.info(
        "Generating %d items on %r for %d cards of %dx%d (minimum pool %d)",
        pool_size, context.subject, params.cards, shape.rows, shape.cols, min_pool,
    )

    items = provider.generate_items(context, params.topic, pool_size, params.image, params.mode)
    try:
        pool = make_pool(items)
    except ValueError as exc:
        raise GenerationError(str(exc)) from exc

    warnings: List[str] = []
    if len(pool) < pool_size:
        warnings.append(f"Provider returned {len(pool)} of {pool_size} requested items")
    capacity = check_pool_capacity(
        pool_size=len(pool), rows=shape.rows, cols=shape.cols, card_count=params.cards
    )
    warnings.extend(capacity.reasons)
    for msg in warnings:
        logger.warning(msg)

    seed = params.seed if params.seed is not None else fresh_seed()
    cards = deal(pool, params, seed)
    return GenerationResult(
        context=context, pool=pool, cards=cards, seed=seed, minimum_pool=min_pool, warnings=warnings
    )


def snapshot_cards(
    cards: Sequence[Card], shape: GridShape, is_math: bool, style: CardStyle = CardStyle()
) -> List[Image.Image]:
    """Render every card in order; any failure aborts the export."""
    images: List[Image.Image] = []
    for card in cards:
        try:
            images.append(render_card(card, shape, is_math, style))
        except (OSError, ValueError) as exc:
            raise RenderError(f"Card {card.id} failed to render: {exc}") from exc
    return images


def snapshot_table(items: Sequence[Item], is_math: bool, style: TableStyle = TableStyle()) -> TableBitmap:
    try:
        return render_calling_list(items, is_math, style)
    except (OSError, ValueError) as exc:
        raise RenderError(f"Calling list failed to render: {exc}") from exc


def export_pdf(
    context: SubjectContext,
    cards: Sequence[Card],
    pool: Sequence[Item],
    shape: GridShape,
    output_path: Path,
    config: PageConfig = PageConfig(),
) -> LayoutResult:
    """Render cards and calling list, lay them out and write the PDF."""
    images = snapshot_cards(cards, shape, context.is_math)
    table = snapshot_table(pool, context.is_math) if pool else None
    layout = build_document_layout(f"Bingo: {context.subject}", images, table, config)
    render_to_pdf(layout, output_path, config)
    return layout

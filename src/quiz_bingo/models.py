"""Core data types shared by sizing, assembly, rendering and layout."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

GRID_MIN = 3
GRID_MAX = 5


@dataclass(frozen=True)
class Item:
    """A question/answer pair: `problem` is read aloud, `answer` goes on cards."""

    id: str
    problem: str
    answer: str

    def to_dict(self) -> dict:
        return {"id": self.id, "problem": self.problem, "answer": self.answer}

    @classmethod
    def from_dict(cls, data: dict) -> "Item":
        return cls(id=str(data["id"]), problem=str(data["problem"]), answer=str(data["answer"]))


@dataclass(frozen=True)
class GridShape:
    rows: int
    cols: int

    def __post_init__(self) -> None:
        for name, value in (("rows", self.rows), ("cols", self.cols)):
            if not GRID_MIN <= value <= GRID_MAX:
                raise ValueError(f"{name} must be within {GRID_MIN}..{GRID_MAX}: {value}")

    @property
    def cells(self) -> int:
        return self.rows * self.cols


@dataclass(frozen=True)
class SubjectContext:
    subject: str
    is_math: bool = False


@dataclass(frozen=True)
class Card:
    """One bingo card; `cells` are in row-major order and every cell is filled."""

    id: int
    cells: Tuple[Item, ...]

    def rows(self, cols: int) -> List[Tuple[Item, ...]]:
        return [self.cells[i : i + cols] for i in range(0, len(self.cells), cols)]

    @property
    def item_ids(self) -> List[str]:
        return [item.id for item in self.cells]


def make_pool(items: Iterable[Item]) -> Tuple[Item, ...]:
    """Freeze items into a pool, rejecting duplicate ids."""
    pool = tuple(items)
    seen = set()
    for item in pool:
        if item.id in seen:
            raise ValueError(f"Duplicate item id in pool: {item.id}")
        seen.add(item.id)
    return pool


def pool_index(pool: Sequence[Item]) -> dict:
    return {item.id: item for item in pool}

"""Puzzle value types shared by every puzzle source."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class PuzzleSource:
    path: str  # collection key used by the progress store
    index: int


@dataclass(frozen=True)
class Puzzle:
    fen: str
    moves: tuple[str, ...] = ()
    rating: int = 1500
    rating_deviation: int = 350
    popularity: int = 0
    nb_plays: int = 0
    source: Optional[PuzzleSource] = None


class PuzzleRepository(Protocol):
    """Anything that can hand out puzzles by rating."""

    def query(self, lower_rating: int, upper_rating: int) -> list[Puzzle]: ...

    def count_exercises(self, collection_key: str) -> int: ...

    def rating_bounds(self) -> tuple[int, int]: ...

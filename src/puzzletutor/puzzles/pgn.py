"""PGN puzzle collections.

A collection is a PGN file whose games carry a ``[FEN]`` header and the
solution either in a ``[Solution]``/``[Moves]`` header or as the first
movetext line. The file path is the collection key the progress store
uses, and a puzzle's index is the position of its game in the file, counting
games that are not usable puzzles.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from puzzletutor.puzzles.models import Puzzle, PuzzleSource

_HEADER = re.compile(r'^\[(\w+)\s+"?(.*?)"?\]$')
_MOVE_NUMBER = re.compile(r"^\d+\.(\.\.)?$")
_RESULTS = {"1-0", "0-1", "1/2-1/2", "*"}


def parse_header(line: str) -> Optional[tuple[str, str]]:
    m = _HEADER.match(line)
    if not m:
        return None
    return m.group(1), m.group(2)


def _split_moves(text: str) -> list[str]:
    text = re.sub(r"\{[^}]*\}", " ", text)  # comments
    return [
        tok for tok in text.split()
        if not _MOVE_NUMBER.match(tok) and tok not in _RESULTS
    ]


def _to_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None


def parse_pgn_puzzles(text: str, path: str = "") -> list[Puzzle]:
    """Parse every complete puzzle (position + solution) in ``text``.

    A puzzle's index is the position of its game in the file, so games
    without a position or solution still take up an index.
    """
    puzzles: list[Puzzle] = []
    current: dict = {}
    games = 0

    def flush() -> None:
        nonlocal games
        if not current:
            return
        if current.get("fen") and current.get("moves"):
            puzzles.append(Puzzle(
                fen=current["fen"],
                moves=tuple(current["moves"]),
                rating=current.get("rating", 1500),
                rating_deviation=current.get("rating_deviation", 350),
                popularity=current.get("popularity", 0),
                nb_plays=current.get("nb_plays", 0),
                source=PuzzleSource(path=path, index=games),
            ))
        games += 1
        current.clear()

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            # A blank line between headers and movetext does not end the game
            if current.get("moves") or current.get("movetext"):
                flush()
            continue

        header = parse_header(line)
        if header:
            key, value = header
            if current.get("movetext") or (key == "Event" and current):
                flush()
            current["headers"] = True
            if key == "FEN":
                current["fen"] = value
            elif key in ("Solution", "Moves"):
                current["moves"] = _split_moves(value)
            elif key in ("Rating", "Elo"):
                rating = _to_int(value)
                if rating is not None:
                    current["rating"] = rating
            elif key == "RatingDeviation":
                rd = _to_int(value)
                if rd is not None:
                    current["rating_deviation"] = rd
            elif key == "Popularity":
                popularity = _to_int(value)
                if popularity is not None:
                    current["popularity"] = popularity
            elif key == "NbPlays":
                nb_plays = _to_int(value)
                if nb_plays is not None:
                    current["nb_plays"] = nb_plays
        elif current:
            if current.get("fen") and not current.get("moves"):
                current["moves"] = _split_moves(line)
            current["movetext"] = True

    flush()
    return puzzles


class PgnCollection:
    """A PGN puzzle file served through the repository interface."""

    def __init__(self, path: Path):
        self.path = path
        self.key = str(path)
        self._puzzles: Optional[list[Puzzle]] = None

    @property
    def puzzles(self) -> list[Puzzle]:
        if self._puzzles is None:
            text = self.path.read_bytes().decode("utf-8", errors="replace")
            self._puzzles = parse_pgn_puzzles(text, path=self.key)
        return self._puzzles

    def get(self, position: int) -> Puzzle:
        """The puzzle at ``position`` among the usable puzzles, not its game index."""
        return self.puzzles[position]

    def query(self, lower_rating: int, upper_rating: int) -> list[Puzzle]:
        return [p for p in self.puzzles if lower_rating <= p.rating <= upper_rating]

    def rating_bounds(self) -> tuple[int, int]:
        ratings = [p.rating for p in self.puzzles]
        if not ratings:
            return (0, 0)
        return (min(ratings), max(ratings))

    def count_exercises(self, collection_key: str = "") -> int:
        return len(self.puzzles)

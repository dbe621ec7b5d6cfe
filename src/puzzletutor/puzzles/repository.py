"""SQLite puzzle database (Lichess-style schema)."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterable

from puzzletutor.puzzles.models import Puzzle

DEFAULT_CACHE_SIZE = 20


class PuzzleDatabase:
    """Read puzzles by rating from a ``puzzles`` table.

    ``count_exercises`` ignores its collection key: a database file is a
    single collection.
    """

    def __init__(self, db_path: Path, random: bool = True, cache_size: int = DEFAULT_CACHE_SIZE):
        self.db_path = db_path
        self.random = random
        self.cache_size = cache_size

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def create_schema(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS puzzles (
                    id INTEGER PRIMARY KEY,
                    fen TEXT NOT NULL,
                    moves TEXT NOT NULL,
                    rating INTEGER NOT NULL,
                    rating_deviation INTEGER NOT NULL DEFAULT 0,
                    popularity INTEGER NOT NULL DEFAULT 0,
                    nb_plays INTEGER NOT NULL DEFAULT 0,
                    themes TEXT,
                    game_url TEXT,
                    opening_tags TEXT
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_puzzles_rating ON puzzles(rating)")

    def insert_puzzles(self, puzzles: Iterable[Puzzle]) -> int:
        rows = [
            (p.fen, " ".join(p.moves), p.rating, p.rating_deviation, p.popularity, p.nb_plays)
            for p in puzzles
        ]
        with self._conn() as conn:
            conn.executemany(
                """INSERT INTO puzzles
                   (fen, moves, rating, rating_deviation, popularity, nb_plays)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                rows,
            )
        return len(rows)

    def query(self, lower_rating: int, upper_rating: int) -> list[Puzzle]:
        order = "RANDOM()" if self.random else "rating ASC"
        with self._conn() as conn:
            rows = conn.execute(
                f"""SELECT fen, moves, rating, rating_deviation, popularity, nb_plays
                    FROM puzzles
                    WHERE rating >= ? AND rating <= ?
                    ORDER BY {order}
                    LIMIT ?""",
                (lower_rating, upper_rating, self.cache_size),
            ).fetchall()
        return [
            Puzzle(
                fen=r[0],
                moves=tuple(r[1].split()),
                rating=r[2],
                rating_deviation=r[3],
                popularity=r[4],
                nb_plays=r[5],
            )
            for r in rows
        ]

    def rating_bounds(self) -> tuple[int, int]:
        with self._conn() as conn:
            row = conn.execute("SELECT MIN(rating), MAX(rating) FROM puzzles").fetchone()
        if row is None or row[0] is None:
            return (0, 0)
        return (row[0], row[1])

    def count_exercises(self, collection_key: str = "") -> int:
        with self._conn() as conn:
            return conn.execute("SELECT COUNT(*) FROM puzzles").fetchone()[0]

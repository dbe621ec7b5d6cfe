"""Shared fixtures for PuzzleTutor tests."""

from __future__ import annotations

import pytest

from puzzletutor.config.settings import Settings
from puzzletutor.puzzles.models import Puzzle
from puzzletutor.puzzles.repository import PuzzleDatabase
from puzzletutor.state.events import Signal
from puzzletutor.state.progress import ProgressStore
from puzzletutor.state.storage import MemoryStorage

SAMPLE_PGN = """\
[Event "Puzzle 1"]
[FEN "6k1/5ppp/8/8/8/8/5PPP/3R2K1 w - - 0 1"]
[Rating "1200"]
[Popularity "90"]
[NbPlays "1500"]

1. Rd8# 1-0

[Event "Puzzle 2"]
[FEN "r1bqkbnr/pppp1ppp/2n5/4p3/2B1P3/5Q2/PPPP1PPP/RNB1K1NR w KQkq - 2 3"]
[Solution "f3f7"]
[Rating "1500"]

*

[Event "Puzzle 3"]
[FEN "8/8/8/8/8/5k2/6q1/7K b - - 0 1"]
[Rating "1800"]

1... Qg2# 0-1

[Event "Broken"]
[Rating "2000"]

1. e4 e5 *
"""


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "data")


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def signal():
    return Signal("test:progress-updated")


@pytest.fixture
def emissions(signal):
    """List that grows by one on every signal emission."""
    fired: list[str] = []
    signal.connect(lambda: fired.append(signal.name))
    return fired


@pytest.fixture
def progress(storage, signal):
    return ProgressStore(storage, signal=signal)


@pytest.fixture
def sample_pgn(tmp_path):
    path = tmp_path / "tactics.pgn"
    path.write_text(SAMPLE_PGN)
    return path


@pytest.fixture
def sample_db(tmp_path):
    db = PuzzleDatabase(tmp_path / "puzzles.db3", random=False)
    db.create_schema()
    db.insert_puzzles([
        Puzzle(fen=f"fen-{rating}", moves=("e2e4", "e7e5"), rating=rating)
        for rating in (1000, 1250, 1300, 1450, 1500, 1550, 1700, 2000)
    ])
    return db

"""Tests for the puzzle session driver."""

from __future__ import annotations

import random

import pytest

from puzzletutor.config.settings import AdaptiveConfig, Settings
from puzzletutor.engine.adaptive import Outcome
from puzzletutor.engine.session import PuzzleSession, SessionPuzzle
from puzzletutor.puzzles.models import Puzzle, PuzzleSource
from puzzletutor.puzzles.pgn import PgnCollection
from puzzletutor.state.rating import RatingStore


class FixedRepository:
    """Repository stub over an in-memory puzzle list."""

    def __init__(self, puzzles, bounds=(600, 2800)):
        self.puzzles = puzzles
        self.bounds = bounds
        self.queries: list[tuple[int, int]] = []

    def query(self, lower_rating, upper_rating):
        self.queries.append((lower_rating, upper_rating))
        return [p for p in self.puzzles if lower_rating <= p.rating <= upper_rating]

    def count_exercises(self, collection_key=""):
        return len(self.puzzles)

    def rating_bounds(self):
        return self.bounds


def _even_puzzle(source=None):
    return Puzzle(fen="fen", moves=("e2e4",), rating=1500, source=source)


@pytest.fixture
def repo():
    return FixedRepository([_even_puzzle()])


class TestBand:
    def test_fresh_session_uses_normal_window(self, repo, progress):
        session = PuzzleSession(repo, progress)
        assert session.player_rating == 1500
        assert session.current_band() == (1430, 1570)

    def test_losing_streak_eases(self, repo, progress):
        session = PuzzleSession(repo, progress)
        for _ in range(3):
            session.next_puzzle()
            session.puzzles[-1].outcome = Outcome.INCORRECT
        assert session.current_band() == (1259, 1430)

    def test_incomplete_puzzles_are_ignored(self, repo, progress):
        session = PuzzleSession(repo, progress)
        outcomes = [Outcome.INCORRECT] * 3 + [Outcome.INCOMPLETE]
        session.puzzles = [SessionPuzzle(_even_puzzle(), o) for o in outcomes]
        assert session.recent_outcomes() == [Outcome.INCORRECT] * 3

    def test_band_clamped_to_repository(self, progress):
        repo = FixedRepository([_even_puzzle()], bounds=(1450, 1500))
        session = PuzzleSession(repo, progress)
        assert session.current_band() == (1450, 1500)

    def test_single_rating_repository(self, progress):
        repo = FixedRepository([_even_puzzle()], bounds=(1500, 1500))
        session = PuzzleSession(repo, progress)
        session.player_rating = 2400
        assert session.current_band() == (1500, 1500)

    def test_single_rating_repository_uses_fixed_range(self, progress):
        repo = FixedRepository([_even_puzzle()], bounds=(1500, 1500))
        session = PuzzleSession(repo, progress, rating_range=(1600, 1700))
        assert session.current_band() == (1500, 1500)

    def test_fixed_range_when_not_progressive(self, progress):
        repo = FixedRepository([_even_puzzle()])
        session = PuzzleSession(repo, progress, progressive=False, rating_range=(1100, 1300))
        session.player_rating = 2200
        assert session.current_band() == (1100, 1300)
        session.puzzles = [SessionPuzzle(_even_puzzle(), Outcome.INCORRECT)] * 3
        assert session.current_band() == (1100, 1300)

    def test_fixed_range_clamped_to_repository(self, progress):
        repo = FixedRepository([_even_puzzle()], bounds=(1200, 1800))
        session = PuzzleSession(repo, progress, progressive=False, rating_range=(800, 2400))
        assert session.current_band() == (1200, 1800)

    def test_fixed_range_from_settings(self, progress):
        settings = Settings(adaptive=AdaptiveConfig(progressive=False, rating_range=(1400, 1450)))
        session = PuzzleSession(FixedRepository([_even_puzzle()]), progress, settings=settings)
        assert session.current_band() == (1400, 1450)

    def test_turning_progressive_off_keeps_last_band(self, repo, progress):
        session = PuzzleSession(repo, progress)
        assert session.current_band() == (1430, 1570)
        session.progressive = False
        session.player_rating = 2000
        assert session.current_band() == (1430, 1570)

    def test_settings_change_windows(self, repo, progress):
        settings = Settings(adaptive=AdaptiveConfig(failure_threshold=1))
        session = PuzzleSession(repo, progress, settings=settings)
        session.next_puzzle()
        session.resolve(0, solved=False)
        band = session.current_band()
        assert band.upper < 1500


class TestNextPuzzle:
    def test_draws_from_band(self, repo, progress):
        session = PuzzleSession(repo, progress)
        entry = session.next_puzzle(rng=random.Random(7))
        assert entry.puzzle.rating == 1500
        assert entry.outcome == Outcome.INCOMPLETE
        assert repo.queries == [(1430, 1570)]

    def test_fixed_range_query(self, repo, progress):
        session = PuzzleSession(repo, progress, progressive=False, rating_range=(1450, 1500))
        session.next_puzzle()
        assert repo.queries == [(1450, 1500)]

    def test_empty_band(self, progress):
        repo = FixedRepository([Puzzle(fen="x", rating=2500)])
        session = PuzzleSession(repo, progress)
        with pytest.raises(LookupError):
            session.next_puzzle()
        assert session.puzzles == []

    def test_in_order_skips_solved(self, sample_pgn, progress):
        collection = PgnCollection(sample_pgn)
        progress.record_solved(collection.key, 0)
        session = PuzzleSession(collection, progress)
        entry = session.next_in_order(collection)
        assert entry.puzzle.source.index == 1

    def test_in_order_all_solved(self, sample_pgn, progress):
        collection = PgnCollection(sample_pgn)
        for i in range(3):
            progress.record_solved(collection.key, i)
        session = PuzzleSession(collection, progress)
        with pytest.raises(LookupError):
            session.next_in_order(collection)

    def test_in_order_uses_game_index(self, tmp_path, progress):
        path = tmp_path / "gaps.pgn"
        path.write_text(
            '[Event "broken"]\n[Rating "900"]\n\n1. e4 *\n\n'
            '[Event "a"]\n[FEN "one"]\n\n1. e4 *\n\n'
            '[Event "b"]\n[FEN "two"]\n\n1. d4 *\n'
        )
        collection = PgnCollection(path)
        progress.record_solved(collection.key, 1)
        session = PuzzleSession(collection, progress)
        entry = session.next_in_order(collection)
        assert entry.puzzle.fen == "two"
        assert entry.puzzle.source.index == 2


class TestResolve:
    def test_solve_updates_rating_and_progress(self, progress, emissions):
        source = PuzzleSource(path="set.pgn", index=4)
        session = PuzzleSession(FixedRepository([_even_puzzle(source)]), progress)
        session.next_puzzle()
        assert session.resolve(0, solved=True) == 1520
        assert session.puzzles[0].outcome == Outcome.CORRECT
        assert progress.is_solved("set.pgn", 4)
        assert len(emissions) == 1

    def test_failure_records_nothing(self, progress, emissions):
        source = PuzzleSource(path="set.pgn", index=4)
        session = PuzzleSession(FixedRepository([_even_puzzle(source)]), progress)
        session.next_puzzle()
        assert session.resolve(0, solved=False) == 1480
        assert not progress.is_solved("set.pgn", 4)
        assert emissions == []

    def test_only_first_resolution_counts(self, repo, progress):
        session = PuzzleSession(repo, progress)
        session.next_puzzle()
        session.resolve(0, solved=False)
        assert session.resolve(0, solved=True) == 1480
        assert session.puzzles[0].outcome == Outcome.INCORRECT

    def test_rating_is_persisted(self, repo, progress, storage):
        ratings = RatingStore(storage)
        session = PuzzleSession(repo, progress, rating_store=ratings)
        session.next_puzzle()
        session.resolve(0, solved=True)
        assert RatingStore(storage).load() == 1520

        resumed = PuzzleSession(repo, progress, rating_store=RatingStore(storage))
        assert resumed.player_rating == 1520

"""Puzzle session: pick a puzzle, resolve it, adjust the rating, record progress."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from puzzletutor.config.settings import Settings
from puzzletutor.engine.adaptive import Outcome, resolved_outcomes, select_band
from puzzletutor.engine.ranges import RatingBand, clamp_band
from puzzletutor.engine.rating import update_rating
from puzzletutor.puzzles.models import Puzzle, PuzzleRepository
from puzzletutor.puzzles.pgn import PgnCollection
from puzzletutor.state.progress import ProgressStore
from puzzletutor.state.rating import RatingStore


@dataclass
class SessionPuzzle:
    puzzle: Puzzle
    outcome: Outcome = Outcome.INCOMPLETE


class PuzzleSession:
    """Drives one sitting of puzzle solving against a single repository."""

    def __init__(
        self,
        repository: PuzzleRepository,
        progress: ProgressStore,
        rating_store: Optional[RatingStore] = None,
        settings: Optional[Settings] = None,
        progressive: Optional[bool] = None,
        rating_range: Optional[tuple[int, int]] = None,
    ):
        self.repository = repository
        self.progress = progress
        self.rating_store = rating_store
        self.settings = settings or Settings()
        self.puzzles: list[SessionPuzzle] = []

        adaptive = self.settings.adaptive
        self._normal, self._eased = adaptive.windows()
        self.progressive = adaptive.progressive if progressive is None else progressive
        self.rating_range = RatingBand(*(rating_range or adaptive.rating_range))

        if rating_store is not None:
            self.player_rating = rating_store.load()
        else:
            self.player_rating = float(self.settings.rating.default_rating)

    def recent_outcomes(self) -> list[Outcome]:
        return resolved_outcomes(
            (p.outcome for p in self.puzzles),
            limit=self.settings.adaptive.recent_limit,
        )

    def current_band(self) -> RatingBand:
        """Rating band for the next draw.

        Progressive sessions follow the adaptive band and remember it as the
        fixed range, so switching progressive off keeps the last band. Fixed
        sessions, and sources whose puzzles all share one rating, use
        ``rating_range``. Either way the band is clamped to the source's bounds.
        """
        min_rating, max_rating = self.repository.rating_bounds()
        if not self.progressive or min_rating == max_rating:
            return clamp_band(self.rating_range, min_rating, max_rating)

        band = select_band(
            self.player_rating,
            self.recent_outcomes(),
            normal=self._normal,
            eased=self._eased,
            threshold=self.settings.adaptive.failure_threshold,
        )
        clamped = clamp_band(band, min_rating, max_rating)
        logger.debug("Adaptive band {} clamped to {}", tuple(band), tuple(clamped))
        self.rating_range = clamped
        return clamped

    def _add(self, puzzle: Puzzle) -> SessionPuzzle:
        entry = SessionPuzzle(puzzle=puzzle)
        self.puzzles.append(entry)
        return entry

    def next_puzzle(self, rng: Optional[random.Random] = None) -> SessionPuzzle:
        band = self.current_band()
        candidates = self.repository.query(band.lower, band.upper)
        if not candidates:
            raise LookupError(f"No puzzles rated {band.lower}-{band.upper}")
        return self._add((rng or random).choice(candidates))

    def next_in_order(self, collection: PgnCollection) -> SessionPuzzle:
        """Next puzzle of ``collection`` that has not been solved before."""
        solved = set(self.progress.get_solved_indexes(collection.key))
        for puzzle in collection.puzzles:
            if puzzle.source.index not in solved:
                return self._add(puzzle)
        raise LookupError(f"Every puzzle in {collection.key} is solved")

    def resolve(self, index: int, solved: bool) -> float:
        """Settle puzzle ``index`` of this session and return the player's rating.

        Only the first resolution of a puzzle counts.
        """
        entry = self.puzzles[index]
        if entry.outcome != Outcome.INCOMPLETE:
            return self.player_rating

        entry.outcome = Outcome.CORRECT if solved else Outcome.INCORRECT
        self.player_rating = update_rating(
            self.player_rating,
            entry.puzzle.rating,
            solved,
            k_factor=self.settings.rating.k_factor,
        )
        if self.rating_store is not None:
            self.rating_store.save(self.player_rating)

        source = entry.puzzle.source
        if solved and source is not None:
            self.progress.record_solved(source.path, source.index)
        return self.player_rating

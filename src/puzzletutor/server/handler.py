"""Server handler: dispatches JSON-lines requests to the puzzle engine."""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Callable, Optional

from puzzletutor.config.settings import Settings
from puzzletutor.engine.adaptive import Outcome, select_window
from puzzletutor.engine.ranges import RatingBand, rating_band_for_window
from puzzletutor.engine.rating import expected_score, update_rating
from puzzletutor.engine.session import PuzzleSession, SessionPuzzle
from puzzletutor.puzzles.models import Puzzle
from puzzletutor.puzzles.pgn import PgnCollection
from puzzletutor.puzzles.repository import PuzzleDatabase
from puzzletutor.state.events import PROGRESS_UPDATED, Signal
from puzzletutor.state.progress import ProgressStore
from puzzletutor.state.rating import RatingStore
from puzzletutor.state.storage import KeyValueStorage, SqliteStorage

from .protocol import Notification

DATABASE_SUFFIXES = (".db3", ".db", ".sqlite")


def _puzzle_to_dict(puzzle: Puzzle) -> dict:
    return {
        "fen": puzzle.fen,
        "moves": list(puzzle.moves),
        "rating": puzzle.rating,
        "ratingDeviation": puzzle.rating_deviation,
        "popularity": puzzle.popularity,
        "nbPlays": puzzle.nb_plays,
        "source": asdict(puzzle.source) if puzzle.source else None,
    }


def _entry_to_dict(index: int, entry: SessionPuzzle) -> dict:
    return {
        "index": index,
        "puzzle": _puzzle_to_dict(entry.puzzle),
        "completion": entry.outcome.value,
    }


def _parse_outcomes(raw) -> list[Outcome]:
    try:
        return [Outcome(o) for o in raw or []]
    except ValueError as e:
        raise ValueError(f"Invalid outcome in recentOutcomes: {e}") from e


def _parse_range(raw) -> tuple[int, int]:
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"Invalid ratingRange: {raw!r}")
    try:
        lower, upper = (int(v) for v in raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid ratingRange: {raw!r}") from e
    if lower > upper:
        raise ValueError(f"Invalid ratingRange: {raw!r}")
    return lower, upper


class ServerHandler:
    """Routes incoming requests to engine methods and returns result dicts."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        write_notification: Optional[Callable[[Notification], None]] = None,
        storage: Optional[KeyValueStorage] = None,
        signal: Signal = PROGRESS_UPDATED,
    ):
        self.settings = settings or Settings.load()
        self._write_notification = write_notification or (lambda n: None)

        self.storage = storage or SqliteStorage(self.settings.storage_path)
        self.signal = signal
        self.progress = ProgressStore(
            self.storage,
            signal=signal,
            storage_key=self.settings.storage.progress_key,
            legacy_key=self.settings.storage.legacy_progress_key,
        )
        self.ratings = RatingStore(
            self.storage,
            key=self.settings.storage.rating_key,
            default=self.settings.rating.default_rating,
        )
        self.signal.connect(self._on_progress_updated)

        self._session: Optional[PuzzleSession] = None
        self._collection: Optional[PgnCollection] = None

    def _on_progress_updated(self) -> None:
        self._write_notification(Notification.progress_updated())

    def close(self) -> None:
        self.signal.disconnect(self._on_progress_updated)

    async def dispatch(self, msg: dict) -> dict:
        """Route a request message to the appropriate handler method."""
        method = msg.get("method", "")
        params = msg.get("params", {})

        handler_map = {
            "expectedScore": self._expected_score,
            "updateRating": self._update_rating,
            "getBand": self._get_band,
            "getRating": self._get_rating,
            "openCollection": self._open_collection,
            "nextPuzzle": self._next_puzzle,
            "resolve": self._resolve,
            "getProgress": self._get_progress,
            "recordSolved": self._record_solved,
        }

        handler = handler_map.get(method)
        if handler is None:
            raise ValueError(f"Unknown method: {method}")

        return await handler(params)

    def _require_session(self) -> PuzzleSession:
        if self._session is None:
            raise ValueError("No collection open")
        return self._session

    def _apply_band_options(self, params: dict) -> None:
        """Switch the open session between adaptive and fixed-range selection."""
        session = self._require_session()
        if params.get("ratingRange") is not None:
            session.rating_range = RatingBand(*_parse_range(params["ratingRange"]))
        if params.get("progressive") is not None:
            session.progressive = bool(params["progressive"])

    async def _expected_score(self, params: dict) -> dict:
        return {
            "probability": expected_score(params["playerRating"], params["puzzleRating"]),
        }

    async def _update_rating(self, params: dict) -> dict:
        rating = update_rating(
            params["playerRating"],
            params["puzzleRating"],
            bool(params["solved"]),
            k_factor=params.get("kFactor", self.settings.rating.k_factor),
        )
        return {"rating": rating}

    async def _get_band(self, params: dict) -> dict:
        player_rating = params.get("playerRating")
        if player_rating is None:
            player_rating = self.ratings.load()
        outcomes = _parse_outcomes(params.get("recentOutcomes"))

        adaptive = self.settings.adaptive
        normal, eased = adaptive.windows()
        window = select_window(
            outcomes, normal=normal, eased=eased, threshold=adaptive.failure_threshold,
        )
        band = rating_band_for_window(player_rating, window.min_prob, window.max_prob)
        return {
            "window": window.name,
            "minProb": window.min_prob,
            "maxProb": window.max_prob,
            "lower": band.lower,
            "upper": band.upper,
        }

    async def _get_rating(self, params: dict) -> dict:
        if self._session is not None:
            return {"rating": self._session.player_rating}
        return {"rating": self.ratings.load()}

    async def _open_collection(self, params: dict) -> dict:
        path = Path(params["path"])
        if not path.exists():
            raise ValueError(f"Unknown collection: {path}")

        if path.suffix in DATABASE_SUFFIXES:
            repository = PuzzleDatabase(path, random=not params.get("inOrder", False))
            self._collection = None
        else:
            repository = PgnCollection(path)
            self._collection = repository

        self._session = PuzzleSession(
            repository=repository,
            progress=self.progress,
            rating_store=self.ratings,
            settings=self.settings,
        )
        self._apply_band_options(params)
        key = str(path)
        return {
            "key": key,
            "count": repository.count_exercises(key),
            "solvedCount": self.progress.get_solved_count(key),
            "ratingBounds": list(repository.rating_bounds()),
            "progressive": self._session.progressive,
            "ratingRange": list(self._session.rating_range),
        }

    async def _next_puzzle(self, params: dict) -> dict:
        session = self._require_session()
        self._apply_band_options(params)
        try:
            if params.get("inOrder") and self._collection is not None:
                entry = session.next_in_order(self._collection)
            else:
                entry = session.next_puzzle()
        except LookupError as e:
            return {"puzzle": None, "reason": str(e)}

        result = _entry_to_dict(len(session.puzzles) - 1, entry)
        band = session.current_band()
        result["band"] = [band.lower, band.upper]
        result["progressive"] = session.progressive
        return result

    async def _resolve(self, params: dict) -> dict:
        session = self._require_session()
        index = params["index"]
        if index < 0 or index >= len(session.puzzles):
            raise ValueError(f"Puzzle index {index} out of range")
        rating = session.resolve(index, bool(params["solved"]))
        return {
            "rating": rating,
            "completion": session.puzzles[index].outcome.value,
        }

    async def _get_progress(self, params: dict) -> dict:
        key = params["path"]
        return {
            "solvedCount": self.progress.get_solved_count(key),
            "solvedIndexes": self.progress.get_solved_indexes(key),
        }

    async def _record_solved(self, params: dict) -> dict:
        self.progress.record_solved(params["path"], params["index"])
        return {"ok": True}

"""Persisted player rating."""

from __future__ import annotations

import math

from loguru import logger

from puzzletutor.engine.rating import DEFAULT_PLAYER_RATING
from puzzletutor.state.storage import KeyValueStorage, StorageError

RATING_KEY = "obsidian-chess-studio.puzzle.playerRating"


class RatingStore:
    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = RATING_KEY,
        default: int = DEFAULT_PLAYER_RATING,
    ):
        self.storage = storage
        self.key = key
        self.default = default

    def load(self) -> float:
        try:
            raw = self.storage.get(self.key)
        except StorageError as e:
            logger.warning("Could not read player rating: {}", e)
            return self.default
        if raw is None:
            return self.default
        try:
            value = float(raw)
        except ValueError:
            logger.warning("Ignoring unreadable player rating {!r}", raw)
            return self.default
        if not math.isfinite(value):
            return self.default
        return value

    def save(self, rating: float) -> None:
        try:
            self.storage.set(self.key, str(rating))
        except StorageError as e:
            logger.warning("Could not save player rating: {}", e)

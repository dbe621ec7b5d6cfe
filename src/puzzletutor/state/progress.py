"""Durable record of solved puzzles, keyed by collection and index.

Stored as one JSON object mapping each collection key (a PGN file path) to
an object of ``{"<index>": true}`` markers. The same text is written under the
current key and the legacy key so older releases keep seeing updates; reads
prefer the current key and fall back to the legacy one.
"""

from __future__ import annotations

import json
import math
import re
from numbers import Integral, Real
from typing import Optional

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from puzzletutor.state.events import PROGRESS_UPDATED, Signal
from puzzletutor.state.storage import KeyValueStorage, StorageError

STORAGE_KEY = "obsidian-chess-studio.puzzle.pgnProgress"
LEGACY_STORAGE_KEY = "pawn-appetit.puzzle.pgnProgress"

ProgressRecord = dict[str, dict[str, bool]]

_RECORD_ADAPTER = TypeAdapter(ProgressRecord)

_INDEX_KEY = re.compile(r"-?[0-9]+")


def _index_key(index) -> Optional[str]:
    """Text form of a puzzle index, or None when it is not a usable number."""
    if isinstance(index, bool) or not isinstance(index, Real):
        return None
    try:
        if isinstance(index, Integral):
            return str(int(index))
        value = float(index)
        if not math.isfinite(value) or not value.is_integer():
            return None
        return str(int(value))
    except (OverflowError, ValueError):
        # Past float range, or more digits than int/str conversion allows
        return None


def _parse_index(key: str) -> Optional[int]:
    if not _INDEX_KEY.fullmatch(key):
        return None
    try:
        return int(key)
    except ValueError:
        return None


class ProgressStore:
    def __init__(
        self,
        storage: KeyValueStorage,
        signal: Signal = PROGRESS_UPDATED,
        storage_key: str = STORAGE_KEY,
        legacy_key: str = LEGACY_STORAGE_KEY,
    ):
        self.storage = storage
        self.signal = signal
        self.storage_key = storage_key
        self.legacy_key = legacy_key

    def read_store(self) -> ProgressRecord:
        """Return the persisted record; any failure reads as an empty record."""
        try:
            raw = self.storage.get(self.storage_key)
            if raw is None:
                raw = self.storage.get(self.legacy_key)
        except StorageError as e:
            logger.warning("Could not read puzzle progress: {}", e)
            return {}
        if not raw:
            return {}

        try:
            parsed = _RECORD_ADAPTER.validate_json(raw, strict=True)
        except ValidationError as e:
            logger.warning("Ignoring malformed puzzle progress ({} errors)", e.error_count())
            return {}

        # Only true markers count as solved
        return {
            collection: {idx: True for idx, marker in solved.items() if marker}
            for collection, solved in parsed.items()
        }

    def _write_store(self, record: ProgressRecord) -> bool:
        raw = json.dumps(record, separators=(",", ":"))
        try:
            self.storage.set(self.storage_key, raw)
            self.storage.set(self.legacy_key, raw)
        except StorageError as e:
            logger.warning("Could not save puzzle progress: {}", e)
            return False
        return True

    def record_solved(self, collection_key: str, index) -> None:
        """Mark ``index`` of ``collection_key`` solved; a repeat call does nothing."""
        if not collection_key:
            return
        puzzle_key = _index_key(index)
        if puzzle_key is None:
            return

        record = self.read_store()
        solved = record.setdefault(collection_key, {})
        if any(_parse_index(key) == int(puzzle_key) for key in solved):
            return
        solved[puzzle_key] = True

        if self._write_store(record):
            logger.debug("Recorded puzzle {} of {} as solved", puzzle_key, collection_key)
            self.signal.emit()

    def _solved(self, collection_key: str) -> set[int]:
        """Distinct solved indexes; keys that are not plain integers are skipped."""
        solved = self.read_store().get(collection_key, {})
        indexes = {_parse_index(key) for key in solved}
        indexes.discard(None)
        return indexes

    def get_solved_count(self, collection_key: str) -> int:
        return len(self._solved(collection_key))

    def get_solved_indexes(self, collection_key: str) -> list[int]:
        return sorted(self._solved(collection_key))

    def is_solved(self, collection_key: str, index) -> bool:
        puzzle_key = _index_key(index)
        if puzzle_key is None:
            return False
        return int(puzzle_key) in self._solved(collection_key)

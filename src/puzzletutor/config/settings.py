"""Configuration model for PuzzleTutor."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from loguru import logger
from pydantic import BaseModel, Field, model_validator

from puzzletutor.engine.adaptive import ProbabilityWindow


class WindowConfig(BaseModel):
    min_prob: float
    max_prob: float

    @model_validator(mode="after")
    def _check_bounds(self) -> "WindowConfig":
        if not 0 < self.min_prob < self.max_prob < 1:
            raise ValueError(
                f"window must satisfy 0 < min_prob < max_prob < 1, "
                f"got ({self.min_prob}, {self.max_prob})"
            )
        return self


class RatingConfig(BaseModel):
    k_factor: float = 40
    default_rating: int = 1500


class AdaptiveConfig(BaseModel):
    normal: WindowConfig = Field(default_factory=lambda: WindowConfig(min_prob=0.4, max_prob=0.6))
    eased: WindowConfig = Field(default_factory=lambda: WindowConfig(min_prob=0.6, max_prob=0.8))
    failure_threshold: int = 3
    recent_limit: int = 10
    # With progressive off, puzzles are drawn from the fixed rating_range
    progressive: bool = True
    rating_range: tuple[int, int] = (1000, 2000)

    @model_validator(mode="after")
    def _check_range(self) -> "AdaptiveConfig":
        lower, upper = self.rating_range
        if lower > upper:
            raise ValueError(f"rating_range lower bound exceeds upper: {self.rating_range}")
        return self

    def windows(self) -> tuple[ProbabilityWindow, ProbabilityWindow]:
        """The (normal, eased) windows the adaptive controller switches between."""
        return (
            ProbabilityWindow("normal", self.normal.min_prob, self.normal.max_prob),
            ProbabilityWindow("eased", self.eased.min_prob, self.eased.max_prob),
        )


class StorageConfig(BaseModel):
    # Keys are kept verbatim so stores written by earlier releases stay readable.
    progress_key: str = "obsidian-chess-studio.puzzle.pgnProgress"
    legacy_progress_key: str = "pawn-appetit.puzzle.pgnProgress"
    rating_key: str = "obsidian-chess-studio.puzzle.playerRating"
    db_name: str = "storage.db"


class Settings(BaseModel):
    data_dir: Path = Path.home() / ".puzzletutor"
    log_level: str = "WARNING"
    rating: RatingConfig = Field(default_factory=RatingConfig)
    adaptive: AdaptiveConfig = Field(default_factory=AdaptiveConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @classmethod
    def load(cls) -> "Settings":
        config_path = Path.home() / ".puzzletutor" / "config.yaml"
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
            return cls(**data)
        return cls()

    def save(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        config_path = self.data_dir / "config.yaml"
        with open(config_path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)

    @property
    def storage_path(self) -> Path:
        return self.data_dir / self.storage.db_name

    def get_log_level(self) -> str:
        return os.environ.get("PUZZLETUTOR_LOG_LEVEL") or self.log_level


def configure_logging(level: str = "WARNING") -> None:
    """Route all log output to stderr so stdout stays free for protocol messages."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )

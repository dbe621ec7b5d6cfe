"""Adaptive difficulty: ease off after a losing streak.

The controller keeps no state of its own. The mode is re-derived from the
caller's outcome history on every call, so there is nothing to reset.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

from puzzletutor.engine.ranges import RatingBand, rating_band_for_window

FAILURE_THRESHOLD = 3


class Outcome(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class ProbabilityWindow:
    """Target range for the player's chance of solving the next puzzle."""
    name: str
    min_prob: float
    max_prob: float

    def __post_init__(self) -> None:
        if not 0 < self.min_prob < self.max_prob < 1:
            raise ValueError(
                f"{self.name}: expected 0 < min_prob < max_prob < 1, "
                f"got ({self.min_prob}, {self.max_prob})"
            )


NORMAL = ProbabilityWindow("normal", 0.4, 0.6)
EASED = ProbabilityWindow("eased", 0.6, 0.8)


def consecutive_failures(recent_outcomes: Sequence[Outcome]) -> int:
    """Number of outcomes after the most recent correct one.

    Anything that is not ``correct`` counts; with no correct outcome at all
    the whole history is one streak.
    """
    count = 0
    for outcome in reversed(recent_outcomes):
        if outcome == Outcome.CORRECT:
            return count
        count += 1
    return count


def select_window(
    recent_outcomes: Sequence[Outcome],
    normal: ProbabilityWindow = NORMAL,
    eased: ProbabilityWindow = EASED,
    threshold: int = FAILURE_THRESHOLD,
) -> ProbabilityWindow:
    if consecutive_failures(recent_outcomes) >= threshold:
        return eased
    return normal


def select_band(
    player_rating: float,
    recent_outcomes: Sequence[Outcome],
    normal: ProbabilityWindow = NORMAL,
    eased: ProbabilityWindow = EASED,
    threshold: int = FAILURE_THRESHOLD,
) -> RatingBand:
    window = select_window(recent_outcomes, normal=normal, eased=eased, threshold=threshold)
    return rating_band_for_window(player_rating, window.min_prob, window.max_prob)


def resolved_outcomes(outcomes: Iterable[Outcome], limit: Optional[int] = 10) -> list[Outcome]:
    """Drop unfinished attempts and keep the last ``limit`` results, most recent last."""
    resolved = [o for o in outcomes if o != Outcome.INCOMPLETE]
    if limit is None:
        return resolved
    if limit <= 0:
        return []
    return resolved[-limit:]

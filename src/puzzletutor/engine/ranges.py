"""Rating bands derived from a target success-probability window."""

from __future__ import annotations

import math
from typing import NamedTuple

from loguru import logger

from puzzletutor.engine.rating import round_rating

# Probabilities are kept this far away from 0 and 1 so the inverse stays finite.
PROBABILITY_FLOOR = 1e-4


class RatingBand(NamedTuple):
    lower: int  # easier boundary
    upper: int  # harder boundary


def invert_probability(player_rating: float, probability: float) -> float:
    """Puzzle rating at which ``player_rating`` has exactly ``probability`` to succeed."""
    p = min(max(probability, PROBABILITY_FLOOR), 1 - PROBABILITY_FLOOR)
    return player_rating + 400 * math.log10(1 / p - 1)


def rating_band_for_window(player_rating: float, min_prob: float, max_prob: float) -> RatingBand:
    """Convert a probability window into the equivalent puzzle-rating band.

    The higher success probability maps to the lower (easier) bound.
    """
    lower = round_rating(invert_probability(player_rating, max_prob))
    upper = round_rating(invert_probability(player_rating, min_prob))
    logger.debug(
        "Band for rating {} in window ({}, {}): {}-{}",
        player_rating, min_prob, max_prob, lower, upper,
    )
    return RatingBand(lower, upper)


def clamp_band(band: RatingBand, min_rating: int, max_rating: int) -> RatingBand:
    """Clamp both ends of ``band`` into the ratings a puzzle source actually holds."""
    lower = max(min_rating, min(band.lower, max_rating))
    upper = max(min_rating, min(band.upper, max_rating))
    return RatingBand(lower, upper)

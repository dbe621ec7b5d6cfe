"""Elo-style skill estimation for puzzle attempts."""

from __future__ import annotations

import math

from loguru import logger

DEFAULT_K_FACTOR = 40
DEFAULT_PLAYER_RATING = 1500


def round_rating(value: float) -> int:
    """Round half up, so 1429.5 becomes 1430 and -0.5 becomes 0."""
    return math.floor(value + 0.5)


def expected_score(player_rating: float, puzzle_rating: float) -> float:
    """Probability that a player of ``player_rating`` solves a puzzle of ``puzzle_rating``."""
    return 1 / (1 + 10 ** ((puzzle_rating - player_rating) / 400))


def update_rating(
    player_rating: float,
    puzzle_rating: float,
    solved: bool,
    k_factor: float = DEFAULT_K_FACTOR,
) -> int:
    """Return the player's new rating after one attempt, rounded to an integer.

    An even match moves the rating by ``k_factor / 2`` in either direction;
    the change never exceeds ``k_factor``.
    """
    score = 1 if solved else 0
    expected = expected_score(player_rating, puzzle_rating)
    new_rating = player_rating + k_factor * (score - expected)

    logger.debug(
        "Rating update: player={} puzzle={} solved={} expected={:.3f} -> {:.1f}",
        player_rating, puzzle_rating, solved, expected, new_rating,
    )
    return round_rating(new_rating)

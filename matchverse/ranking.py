from __future__ import annotations

from bisect import bisect_right
from typing import NamedTuple, Optional

# Width of every points bracket
BRACKET_WIDTH = 500
# Tier labels stop here; totals at or above keep their previous label
TIER_CEILING = 4500


class Bracket(NamedTuple):
    lower_bound: int
    win_delta: int
    loss_delta: int
    tier: str


# Ordered by ``lower_bound``. The last bracket's deltas apply to every total
# above 4000, its tier label only up to ``TIER_CEILING``.
BRACKETS: tuple[Bracket, ...] = (
    Bracket(0, 125, -50, "Beginner 01"),
    Bracket(500, 100, -75, "Beginner 02"),
    Bracket(1000, 100, -100, "Beginner 03"),
    Bracket(1500, 50, -100, "Intermediate 01"),
    Bracket(2000, 50, -125, "Intermediate 02"),
    Bracket(2500, 25, -125, "Intermediate 03"),
    Bracket(3000, 25, -135, "Expert 01"),
    Bracket(3500, 20, -135, "Expert 02"),
    Bracket(4000, 20, -250, "Expert 03"),
)

_BOUNDS = [b.lower_bound for b in BRACKETS]
TIERS = tuple(b.tier for b in BRACKETS)


def bracket_for(rank_points: int) -> Bracket:
    """Return the bracket containing ``rank_points``."""
    if rank_points < 0:
        raise ValueError(f"Rank points cannot be negative: {rank_points}")
    return BRACKETS[bisect_right(_BOUNDS, rank_points) - 1]


def calculate_point_delta(rank_points: int, is_winner: bool) -> int:
    """Return the points won or lost by a player currently on ``rank_points``."""
    bracket = bracket_for(rank_points)
    return bracket.win_delta if is_winner else bracket.loss_delta


def rank_tier_for(rank_points: int, current: Optional[str] = None) -> str:
    """Return the tier label for ``rank_points``.

    No tier exists above Expert 03, so totals of ``TIER_CEILING`` or more
    keep ``current`` (Expert 03 when the previous label is unknown).
    """
    if rank_points >= TIER_CEILING:
        return current or BRACKETS[-1].tier
    return bracket_for(rank_points).tier

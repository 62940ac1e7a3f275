from __future__ import annotations

import logging

from .exceptions import InsufficientPointsError
from .helpers import get_user_or_404
from ..ranking import calculate_point_delta, rank_tier_for
from ..storage import Store

logger = logging.getLogger(__name__)


def update_user_points(store: Store, user_id: int, is_winner: bool) -> str:
    """Apply one match outcome to a user's rank points and tier.

    The delta comes from the bracket of the points held before the update.
    Nothing is written when the result would be negative.
    """
    user = get_user_or_404(store, user_id)
    delta = calculate_point_delta(user.rank_points, is_winner)
    new_points = user.rank_points + delta
    if new_points < 0:
        raise InsufficientPointsError(
            f"User {user_id} has {user.rank_points} points and cannot lose {-delta}"
        )
    new_rank = rank_tier_for(new_points, current=user.rank)
    store.update_user(user_id, rank_points=new_points, rank=new_rank)
    logger.info(
        "user %s %s: %s -> %s points (%s)",
        user_id,
        "won" if is_winner else "lost",
        user.rank_points,
        new_points,
        new_rank,
    )
    return f"User {user_id} updated to {new_rank} with {new_points} points"


def update_user_ranking(
    store: Store, winner1_id: int, winner2_id: int, loser1_id: int, loser2_id: int
) -> list[str]:
    """Update all four players one after another.

    Each update commits on its own; a failure leaves earlier updates in place.
    """
    outcomes = [
        (winner1_id, True),
        (winner2_id, True),
        (loser1_id, False),
        (loser2_id, False),
    ]
    return [update_user_points(store, uid, won) for uid, won in outcomes]

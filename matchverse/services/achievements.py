from __future__ import annotations

import logging

from .helpers import get_user_or_404
from ..storage import Store

logger = logging.getLogger(__name__)

PLAYED_10 = "Played 10 games"
WON_5 = "Won 5 games"


def record_game_outcome(store: Store, user_id: int, is_winner: bool) -> list[str]:
    """Count a finished game and return the user's achievements.

    Achievements are awarded only when a counter lands exactly on its
    threshold.
    """
    user = get_user_or_404(store, user_id)
    games_played = user.games_played + 1
    games_won = user.games_won + 1 if is_winner else user.games_won

    achievements = list(user.achievements)
    if games_played == 10 and PLAYED_10 not in achievements:
        achievements.append(PLAYED_10)
    if games_won == 5 and WON_5 not in achievements:
        achievements.append(WON_5)

    store.update_user(
        user_id,
        games_played=games_played,
        games_won=games_won,
        achievements=achievements,
    )
    if achievements != user.achievements:
        logger.info("user %s unlocked %s", user_id, achievements[len(user.achievements):])
    return achievements


def get_user_achievements(store: Store, user_id: int) -> list[str]:
    return get_user_or_404(store, user_id).achievements

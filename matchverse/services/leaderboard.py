from __future__ import annotations

from .exceptions import ValidationError
from ..storage import Store


def get_leaderboard(store: Store, limit: int | None = None) -> list[dict]:
    """Return users ranked by points, best first."""
    if limit is not None and limit < 1:
        raise ValidationError("limit must be a positive number")
    users = store.list_users()
    if limit is not None:
        users = users[:limit]
    return [
        {
            "position": pos,
            "user_id": u.user_id,
            "username": u.username,
            "rank_points": u.rank_points,
            "rank": u.rank,
            "games_played": u.games_played,
            "games_won": u.games_won,
        }
        for pos, u in enumerate(users, start=1)
    ]

from __future__ import annotations

import logging

from .achievements import record_game_outcome
from .exceptions import ValidationError
from .helpers import get_match_request_or_404
from .ranking import update_user_ranking
from ..storage import Store

logger = logging.getLogger(__name__)


def submit_match_winners(store: Store, match_id: int, winner1_id: int, winner2_id: int) -> str:
    """Record the winners of a match and update everyone's ranking.

    The players of the match are the request's creator and partner, and the
    losers are whichever of them were not named as winners. Exactly two
    losers are required, so this only succeeds when both winners are
    outside that pair.
    """
    request = get_match_request_or_404(store, match_id)
    if request.created_by_id is None or request.partner_id is None:
        raise ValidationError("Match players are incomplete!")

    all_players = [request.created_by_id, request.partner_id]
    winners = [winner1_id, winner2_id]
    losers = [p for p in all_players if p not in winners]
    if len(losers) != 2:
        raise ValidationError("There should be exactly two losers.")

    if store.get_match_result(match_id):
        raise ValidationError("Result already submitted for this match")

    store.create_match_result(
        match_id,
        winner1_id=winners[0],
        winner2_id=winners[1],
        loser1_id=losers[0],
        loser2_id=losers[1],
        confirmed=True,
    )
    logger.info("match %s: winners %s, losers %s", match_id, winners, losers)

    update_user_ranking(store, winners[0], winners[1], losers[0], losers[1])
    for winner in winners:
        record_game_outcome(store, winner, True)
    for loser in losers:
        record_game_outcome(store, loser, False)

    return (
        f"Winners: {winner1_id}, {winner2_id}. "
        f"Losers: {losers[0]}, {losers[1]}. Rankings updated!"
    )

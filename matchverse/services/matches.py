from __future__ import annotations

import logging
from typing import Iterable

from .exceptions import ValidationError, NotFoundError, AuthorizationError
from .helpers import get_user_or_404, get_booking_or_404, get_match_request_or_404
from ..models import (
    MatchRequest,
    SINGLE,
    DOUBLE,
    MATCH_TYPES,
    ROSTER_SIZE,
    PENDING,
    PENDING_CONFIRMATION,
    SCHEDULED,
    CANCELLED,
)
from ..storage import Store

logger = logging.getLogger(__name__)

MATCHED_STATUSES = (PENDING_CONFIRMATION, SCHEDULED)


def _validate_players(match_type: str, created_by_id: int, partner_id: int | None) -> None:
    if match_type not in MATCH_TYPES:
        raise ValidationError(f"Unknown match type '{match_type}'")
    if match_type == DOUBLE:
        if partner_id is None:
            raise ValidationError("doubles matches require a partner for the first team")
        if partner_id == created_by_id:
            raise ValidationError("partner must be a different player")
    elif partner_id is not None:
        raise ValidationError("singles matches cannot have a partner")


def _pair(
    store: Store,
    request: MatchRequest,
    candidate: MatchRequest,
    replaces: int | None = None,
) -> bool:
    """Move ``request`` and ``candidate`` to ``pending_confirmation`` together.

    ``request`` must still be pending, or, when ``replaces`` is given, still
    be waiting on that declined opponent. Returns ``False`` when the
    candidate is no longer pending. Both rows are updated conditionally
    inside one transaction.
    """
    with store.transaction() as conn:
        claimed = store.update_match_request(
            candidate.request_id,
            conn=conn,
            expected_status=PENDING,
            status=PENDING_CONFIRMATION,
            opponent_id=request.request_id,
        )
        if not claimed:
            return False
        own = store.update_match_request(
            request.request_id,
            conn=conn,
            expected_status=PENDING if replaces is None else PENDING_CONFIRMATION,
            expected_opponent_id=replaces,
            status=PENDING_CONFIRMATION,
            opponent_id=candidate.request_id,
        )
        if not own:
            raise ValidationError(
                f"Match request {request.request_id} is no longer open for pairing"
            )
    logger.info(
        "paired %s requests %s and %s",
        request.match_type,
        request.request_id,
        candidate.request_id,
    )
    return True


def _open_for_pairing(request: MatchRequest | None, replaces: int | None) -> bool:
    if request is None:
        return False
    if replaces is None:
        return request.status == PENDING
    return request.status == PENDING_CONFIRMATION and request.opponent_id == replaces


def try_match_request(
    store: Store, request: MatchRequest, replaces: int | None = None
) -> MatchRequest | None:
    """Pair ``request`` with the oldest pending request of the same type.

    ``replaces`` names the opponent that declined ``request``; without it
    only pending requests are paired. Returns the opponent request, or
    ``None`` when nothing could be paired.
    """
    current = store.get_match_request(request.request_id)
    if not _open_for_pairing(current, replaces):
        logger.debug("request %s is not open for pairing", request.request_id)
        return None
    candidates = store.find_match_requests(
        status=PENDING,
        match_type=current.match_type,
        exclude_id=current.request_id,
    )
    logger.debug(
        "request %s: %d pending %s candidate(s)",
        current.request_id,
        len(candidates),
        current.match_type,
    )
    for candidate in candidates:
        if _pair(store, current, candidate, replaces):
            return store.get_match_request(candidate.request_id)
        logger.debug("candidate %s was taken, trying the next one", candidate.request_id)
    return None


def create_match_request(
    store: Store,
    booking_id: int | None,
    match_type: str,
    created_by_id: int,
    partner_id: int | None = None,
) -> MatchRequest:
    """Store a new pending request and try to pair it straight away."""
    if booking_id is not None:
        get_booking_or_404(store, booking_id)
    _validate_players(match_type, created_by_id, partner_id)
    get_user_or_404(store, created_by_id)
    if partner_id is not None:
        get_user_or_404(store, partner_id)

    request = store.create_match_request(
        match_type,
        created_by_id,
        booking_id=booking_id,
        partner_id=partner_id,
    )
    logger.info(
        "user %s requested a %s match (request %s, booking %s)",
        created_by_id,
        match_type,
        request.request_id,
        booking_id,
    )
    try_match_request(store, request)
    return store.get_match_request(request.request_id)


def _find_sibling(
    store: Store, request: MatchRequest, statuses: Iterable[str]
) -> MatchRequest | None:
    """Return the request paired with ``request``.

    The stored opponent link is used when present; older rows without a link
    fall back to another request on the same booking.
    """
    statuses = tuple(statuses)
    if request.opponent_id is not None:
        opponent = store.get_match_request(request.opponent_id)
        if (
            opponent
            and opponent.status in statuses
            and opponent.opponent_id == request.request_id
        ):
            return opponent
        return None
    if request.booking_id is None:
        return None
    others = store.find_match_requests(
        status=statuses,
        booking_id=request.booking_id,
        exclude_id=request.request_id,
    )
    return others[0] if others else None


def accept_match(store: Store, request_id: int, user_id: int, accepted: bool) -> MatchRequest:
    """Accept or decline a paired request on behalf of one of its players."""
    request = get_match_request_or_404(store, request_id)
    if request.status != PENDING_CONFIRMATION:
        raise ValidationError("Match request is not awaiting confirmation")
    if not request.involves(user_id):
        raise AuthorizationError("User is not part of this match")
    sibling = _find_sibling(store, request, (PENDING_CONFIRMATION,))
    if sibling is None:
        raise NotFoundError("Paired match request not found")

    if accepted:
        with store.transaction() as conn:
            changed = store.update_match_requests(
                [request.request_id, sibling.request_id],
                conn=conn,
                expected_status=PENDING_CONFIRMATION,
                status=SCHEDULED,
            )
            if changed != 2:
                raise ValidationError("Match pairing changed, please try again")
        logger.info(
            "user %s accepted; requests %s and %s scheduled",
            user_id,
            request.request_id,
            sibling.request_id,
        )
    else:
        changed = store.update_match_request(
            request.request_id,
            expected_status=PENDING_CONFIRMATION,
            status=CANCELLED,
        )
        if not changed:
            raise ValidationError("Match request is not awaiting confirmation")
        logger.info(
            "user %s declined request %s; looking for a new opponent for %s",
            user_id,
            request.request_id,
            sibling.request_id,
        )
        try_match_request(store, sibling, replaces=request.request_id)
    return store.get_match_request(request.request_id)


def list_pending_requests(store: Store) -> list[MatchRequest]:
    return store.find_match_requests(status=PENDING)


def list_matched_requests(store: Store) -> list[MatchRequest]:
    return store.find_match_requests(status=MATCHED_STATUSES)


def list_pending_confirmations(store: Store, user_id: int) -> list[MatchRequest]:
    """Requests of ``user_id`` that wait for an accept or decline."""
    return store.find_match_requests(status=PENDING_CONFIRMATION, involving=user_id)


def list_scheduled_matches(store: Store, user_id: int) -> list[MatchRequest]:
    return store.find_match_requests(status=SCHEDULED, involving=user_id)


def list_available_requests(store: Store, match_type: str, user_id: int) -> list[MatchRequest]:
    """Pending booked requests of ``match_type`` that ``user_id`` could join."""
    if match_type not in MATCH_TYPES:
        raise ValidationError(f"Unknown match type '{match_type}'")
    pending = store.find_match_requests(
        status=PENDING, match_type=match_type, has_booking=True
    )
    return [r for r in pending if not r.involves(user_id)]


def get_matched_users(store: Store, match_id: int) -> tuple[MatchRequest, MatchRequest]:
    """Return both sides of a pairing, starting with ``match_id``."""
    request = get_match_request_or_404(store, match_id)
    if request.status not in MATCHED_STATUSES:
        raise NotFoundError("Match request is not paired")
    opponent = _find_sibling(store, request, MATCHED_STATUSES)
    if opponent is None:
        raise NotFoundError("Opponents not found")
    return request, opponent


def _check_joinable(
    store: Store, target: MatchRequest, match_type: str, joiners: list[int]
) -> None:
    if target.match_type != match_type:
        raise ValidationError(f"Match {target.request_id} is not a {match_type} match")
    if target.status != PENDING:
        raise ValidationError("Match is no longer open")
    if target.booking_id is None:
        raise ValidationError("Match has no booking to join")

    group = store.find_match_requests(
        status=PENDING, match_type=match_type, booking_id=target.booking_id
    )
    roster = {uid for r in group for uid in r.player_ids}
    if roster & set(joiners):
        raise ValidationError("User is already part of this match")
    if len(roster) + len(joiners) > ROSTER_SIZE[match_type]:
        raise ValidationError("Match is full")
    for uid in joiners:
        get_user_or_404(store, uid)


def _join(store: Store, target: MatchRequest, user_id: int, partner_id: int | None) -> MatchRequest:
    request = store.create_match_request(
        target.match_type,
        user_id,
        booking_id=target.booking_id,
        partner_id=partner_id,
    )
    logger.info("user %s joined match %s with request %s", user_id, target.request_id, request.request_id)
    # the target may have been paired since the checks ran
    if not _pair(store, request, target):
        try_match_request(store, request)
    return store.get_match_request(request.request_id)


def join_match(store: Store, match_id: int, user_id: int, partner_id: int | None = None) -> MatchRequest:
    """Join a pending doubles request as the opposing team."""
    target = get_match_request_or_404(store, match_id)
    _validate_players(DOUBLE, user_id, partner_id)
    _check_joinable(store, target, DOUBLE, [user_id, partner_id])
    return _join(store, target, user_id, partner_id)


def join_singles(store: Store, match_id: int, user_id: int) -> MatchRequest:
    """Join a pending singles request as the opponent."""
    target = get_match_request_or_404(store, match_id)
    _check_joinable(store, target, SINGLE, [user_id])
    return _join(store, target, user_id, None)

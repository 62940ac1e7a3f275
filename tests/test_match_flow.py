import pytest

from matchverse.models import PENDING, PENDING_CONFIRMATION, SCHEDULED, CANCELLED
from matchverse.services.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from matchverse.services.matches import (
    accept_match,
    create_match_request,
    get_matched_users,
    list_available_requests,
    list_matched_requests,
    list_pending_confirmations,
    list_pending_requests,
    list_scheduled_matches,
    try_match_request,
    _pair,
)


@pytest.fixture
def booking(store):
    return store.create_booking(court_id=1).booking_id


def _paired_singles(store, booking, a, b):
    r1 = create_match_request(store, booking, "single", a)
    r2 = create_match_request(store, booking, "single", b)
    return store.get_match_request(r1.request_id), r2


def test_first_request_stays_pending(store, booking, make_users):
    (a,) = make_users("a")
    r1 = create_match_request(store, booking, "single", a)
    assert r1.status == PENDING
    assert r1.booking_id == booking
    assert r1.partner_id is None
    assert r1.opponent_id is None


def test_second_request_pairs_both(store, booking, make_users):
    a, b = make_users("a", "b")
    r1, r2 = _paired_singles(store, booking, a, b)
    assert r1.status == PENDING_CONFIRMATION
    assert r2.status == PENDING_CONFIRMATION
    assert r1.opponent_id == r2.request_id
    assert r2.opponent_id == r1.request_id


def test_requests_without_booking_pair(store, make_users):
    a, b = make_users("a", "b")
    create_match_request(store, None, "single", a)
    r2 = create_match_request(store, None, "single", b)
    assert r2.status == PENDING_CONFIRMATION


def test_different_types_do_not_pair(store, booking, make_users):
    a, b, c = make_users("a", "b", "c")
    create_match_request(store, booking, "single", a)
    r2 = create_match_request(store, booking, "double", b, c)
    assert r2.status == PENDING
    assert len(list_pending_requests(store)) == 2


def test_oldest_pending_request_is_chosen(store, make_users):
    a, b, c, d, e, f = make_users("a", "b", "c", "d", "e", "f")
    first = create_match_request(store, None, "double", a, b)
    single = create_match_request(store, None, "single", e)
    second = create_match_request(store, None, "double", c, d)
    assert second.opponent_id == first.request_id
    assert store.get_match_request(single.request_id).status == PENDING

    other = create_match_request(store, None, "single", f)
    assert other.opponent_id == single.request_id
    assert list_pending_requests(store) == []


def test_third_request_waits(store, booking, make_users):
    a, b, c = make_users("a", "b", "c")
    _paired_singles(store, booking, a, b)
    r3 = create_match_request(store, booking, "single", c)
    assert r3.status == PENDING


def test_doubles_require_partner(store, booking, make_users):
    (a,) = make_users("a")
    with pytest.raises(ValidationError):
        create_match_request(store, booking, "double", a)


def test_doubles_partner_must_differ(store, booking, make_users):
    (a,) = make_users("a")
    with pytest.raises(ValidationError):
        create_match_request(store, booking, "double", a, a)


def test_singles_reject_partner(store, booking, make_users):
    a, b = make_users("a", "b")
    with pytest.raises(ValidationError):
        create_match_request(store, booking, "single", a, b)


def test_unknown_match_type(store, booking, make_users):
    (a,) = make_users("a")
    with pytest.raises(ValidationError):
        create_match_request(store, booking, "triple", a)


def test_missing_booking(store, make_users):
    (a,) = make_users("a")
    with pytest.raises(NotFoundError):
        create_match_request(store, 12345, "single", a)
    # the booking is checked before the players
    with pytest.raises(NotFoundError):
        create_match_request(store, 12345, "double", a, a)
    with pytest.raises(NotFoundError):
        create_match_request(store, 12345, "triple", a)
    assert list_pending_requests(store) == []


def test_unknown_user(store, booking):
    with pytest.raises(NotFoundError):
        create_match_request(store, booking, "single", 42)


def test_accept_schedules_both(store, booking, make_users):
    a, b = make_users("a", "b")
    r1, r2 = _paired_singles(store, booking, a, b)
    updated = accept_match(store, r1.request_id, a, True)
    assert updated.status == SCHEDULED
    assert store.get_match_request(r2.request_id).status == SCHEDULED
    assert list_scheduled_matches(store, a)[0].request_id == r1.request_id
    assert list_scheduled_matches(store, b)[0].request_id == r2.request_id


def test_accept_by_partner(store, booking, make_users):
    a, b, c, d = make_users("a", "b", "c", "d")
    r1 = create_match_request(store, booking, "double", a, b)
    create_match_request(store, booking, "double", c, d)
    updated = accept_match(store, r1.request_id, b, True)
    assert updated.status == SCHEDULED


def test_accept_requires_participant(store, booking, make_users):
    a, b, c = make_users("a", "b", "c")
    r1, _ = _paired_singles(store, booking, a, b)
    with pytest.raises(AuthorizationError):
        accept_match(store, r1.request_id, c, True)
    # authorization failures are validation failures too
    with pytest.raises(ValidationError):
        accept_match(store, r1.request_id, c, True)
    assert store.get_match_request(r1.request_id).status == PENDING_CONFIRMATION


def test_accept_requires_pending_confirmation(store, booking, make_users):
    (a,) = make_users("a")
    r1 = create_match_request(store, booking, "single", a)
    with pytest.raises(ValidationError):
        accept_match(store, r1.request_id, a, True)


def test_accept_unknown_request(store):
    with pytest.raises(NotFoundError):
        accept_match(store, 99, 1, True)


def test_scheduled_is_terminal(store, booking, make_users):
    a, b = make_users("a", "b")
    r1, _ = _paired_singles(store, booking, a, b)
    accept_match(store, r1.request_id, a, True)
    with pytest.raises(ValidationError):
        accept_match(store, r1.request_id, a, False)
    assert store.get_match_request(r1.request_id).status == SCHEDULED


def test_decline_repairs_sibling(store, booking, make_users):
    a, b, c = make_users("a", "b", "c")
    r1, r2 = _paired_singles(store, booking, a, b)
    r3 = create_match_request(store, booking, "single", c)
    assert r3.status == PENDING

    declined = accept_match(store, r1.request_id, a, False)
    assert declined.status == CANCELLED

    r2 = store.get_match_request(r2.request_id)
    r3 = store.get_match_request(r3.request_id)
    assert r2.status == PENDING_CONFIRMATION
    assert r3.status == PENDING_CONFIRMATION
    assert r2.opponent_id == r3.request_id
    assert r3.opponent_id == r2.request_id

    accept_match(store, r3.request_id, c, True)
    assert store.get_match_request(r2.request_id).status == SCHEDULED
    assert store.get_match_request(r1.request_id).status == CANCELLED


def test_decline_without_other_requests(store, booking, make_users):
    a, b = make_users("a", "b")
    r1, r2 = _paired_singles(store, booking, a, b)
    accept_match(store, r1.request_id, a, False)
    sibling = store.get_match_request(r2.request_id)
    assert sibling.status == PENDING_CONFIRMATION
    # its opponent was cancelled, so there is nobody left to accept with
    with pytest.raises(NotFoundError):
        accept_match(store, r2.request_id, b, True)


def test_cancelled_request_is_not_repaired(store, booking, make_users):
    a, b, c = make_users("a", "b", "c")
    r1, _ = _paired_singles(store, booking, a, b)
    accept_match(store, r1.request_id, a, False)
    r4 = create_match_request(store, booking, "single", c)
    assert r4.status == PENDING
    assert store.get_match_request(r1.request_id).status == CANCELLED


def test_sibling_found_by_booking_for_unlinked_rows(store, booking, make_users):
    a, b = make_users("a", "b")
    r1 = store.create_match_request("single", a, booking_id=booking, status=PENDING_CONFIRMATION)
    r2 = store.create_match_request("single", b, booking_id=booking, status=PENDING_CONFIRMATION)
    accept_match(store, r1.request_id, a, True)
    assert store.get_match_request(r2.request_id).status == SCHEDULED


def test_get_matched_users(store, booking, make_users):
    a, b = make_users("a", "b")
    r1, r2 = _paired_singles(store, booking, a, b)
    me, opponent = get_matched_users(store, r1.request_id)
    assert me.request_id == r1.request_id
    assert opponent.request_id == r2.request_id

    accept_match(store, r1.request_id, a, True)
    me, opponent = get_matched_users(store, r2.request_id)
    assert opponent.request_id == r1.request_id


def test_get_matched_users_missing(store, make_users):
    (a,) = make_users("a")
    r1 = create_match_request(store, None, "single", a)
    with pytest.raises(NotFoundError):
        get_matched_users(store, r1.request_id)
    with pytest.raises(NotFoundError):
        get_matched_users(store, 500)


def test_read_operations(store, booking, make_users):
    a, b, c, d, e = make_users("a", "b", "c", "d", "e")
    r1 = create_match_request(store, booking, "double", a, b)
    create_match_request(store, booking, "double", c, d)
    r3 = create_match_request(store, booking, "single", e)
    (no_booking,) = make_users("f")
    r4 = create_match_request(store, None, "double", no_booking, e)

    assert [r.request_id for r in list_pending_requests(store)] == [r3.request_id, r4.request_id]
    assert len(list_matched_requests(store)) == 2
    assert [r.request_id for r in list_pending_confirmations(store, b)] == [r1.request_id]
    assert list_pending_confirmations(store, e) == []

    accept_match(store, r1.request_id, a, True)
    assert len(list_matched_requests(store)) == 2
    assert list_pending_confirmations(store, b) == []
    assert [r.status for r in list_scheduled_matches(store, d)] == [SCHEDULED]


def test_available_requests(store, booking, make_users):
    a, b, c = make_users("a", "b", "c")
    mine = create_match_request(store, booking, "single", a)
    assert list_available_requests(store, "single", a) == []
    assert [r.request_id for r in list_available_requests(store, "single", b)] == [mine.request_id]
    assert list_available_requests(store, "double", b) == []


def test_available_requests_need_a_booking(store, make_users):
    a, b, c = make_users("a", "b", "c")
    create_match_request(store, None, "double", a, b)
    assert list_available_requests(store, "double", c) == []


def test_available_requests_exclude_partner(store, booking, make_users):
    a, b, c = make_users("a", "b", "c")
    r1 = create_match_request(store, booking, "double", a, b)
    assert list_available_requests(store, "double", b) == []
    assert [r.request_id for r in list_available_requests(store, "double", c)] == [r1.request_id]


def test_stale_request_is_not_paired_twice(store, booking, make_users):
    a, b, c = make_users("a", "b", "c")
    stale = create_match_request(store, booking, "single", a)
    r2 = create_match_request(store, booking, "single", b)
    r3 = create_match_request(store, booking, "single", c)
    assert stale.status == PENDING
    assert r3.status == PENDING

    assert try_match_request(store, stale) is None
    assert store.get_match_request(r3.request_id).status == PENDING
    assert store.get_match_request(stale.request_id).opponent_id == r2.request_id

    accept_match(store, r2.request_id, b, True)
    assert store.get_match_request(stale.request_id).status == SCHEDULED


def test_pairing_a_taken_request_rolls_back(store, booking, make_users):
    a, b, c = make_users("a", "b", "c")
    stale = create_match_request(store, booking, "single", a)
    create_match_request(store, booking, "single", b)
    r3 = create_match_request(store, booking, "single", c)
    with pytest.raises(ValidationError):
        _pair(store, stale, r3)
    r3 = store.get_match_request(r3.request_id)
    assert r3.status == PENDING
    assert r3.opponent_id is None


def test_repair_needs_the_declined_opponent(store, booking, make_users):
    a, b, c = make_users("a", "b", "c")
    r1, r2 = _paired_singles(store, booking, a, b)
    r3 = create_match_request(store, booking, "single", c)
    assert try_match_request(store, r2, replaces=r3.request_id) is None
    assert store.get_match_request(r3.request_id).status == PENDING
    assert store.get_match_request(r2.request_id).opponent_id == r1.request_id


def test_get_matched_users_after_decline(store, booking, make_users):
    a, b = make_users("a", "b")
    r1, _ = _paired_singles(store, booking, a, b)
    accept_match(store, r1.request_id, a, False)
    with pytest.raises(NotFoundError):
        get_matched_users(store, r1.request_id)

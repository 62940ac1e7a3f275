from .exceptions import NotFoundError
from ..models import User, Booking, MatchRequest
from ..storage import Store


def get_user_or_404(store: Store, user_id: int, conn=None) -> User:
    user = store.get_user(user_id, conn=conn)
    if not user:
        raise NotFoundError(f"User with ID {user_id} not found")
    return user


def get_booking_or_404(store: Store, booking_id: int) -> Booking:
    booking = store.get_booking(booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def get_match_request_or_404(store: Store, request_id: int) -> MatchRequest:
    request = store.get_match_request(request_id)
    if not request:
        raise NotFoundError("Match not found")
    return request

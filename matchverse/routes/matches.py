from dataclasses import asdict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..services import matches as match_service
from ..services.state import get_store
from ..storage import Store

router = APIRouter()


class MatchRequestCreate(BaseModel):
    booking_id: int | None = None
    match_type: str
    created_by_id: int
    partner_id: int | None = None


class AcceptMatchRequest(BaseModel):
    request_id: int
    user_id: int
    accepted: bool


class JoinMatchRequest(BaseModel):
    match_id: int
    user_id: int
    partner_id: int | None = None


class JoinSinglesRequest(BaseModel):
    match_id: int
    user_id: int


@router.post("/match/request")
def create_match_request(data: MatchRequestCreate, store: Store = Depends(get_store)):
    request = match_service.create_match_request(
        store,
        data.booking_id,
        data.match_type,
        data.created_by_id,
        data.partner_id,
    )
    return asdict(request)


@router.post("/match/accept")
def accept_match(data: AcceptMatchRequest, store: Store = Depends(get_store)):
    request = match_service.accept_match(store, data.request_id, data.user_id, data.accepted)
    return asdict(request)


@router.post("/match/join")
def join_match(data: JoinMatchRequest, store: Store = Depends(get_store)):
    request = match_service.join_match(store, data.match_id, data.user_id, data.partner_id)
    return asdict(request)


@router.post("/match/join-singles")
def join_singles(data: JoinSinglesRequest, store: Store = Depends(get_store)):
    request = match_service.join_singles(store, data.match_id, data.user_id)
    return asdict(request)


@router.get("/match/pending")
def list_pending(store: Store = Depends(get_store)):
    return [asdict(r) for r in match_service.list_pending_requests(store)]


@router.get("/match/matched")
def list_matched(store: Store = Depends(get_store)):
    return [asdict(r) for r in match_service.list_matched_requests(store)]


@router.get("/match/available-singles")
def list_available_singles(user_id: int, store: Store = Depends(get_store)):
    return [
        asdict(r)
        for r in match_service.list_available_requests(store, "single", user_id)
    ]


@router.get("/match/available-doubles")
def list_available_doubles(user_id: int, store: Store = Depends(get_store)):
    return [
        asdict(r)
        for r in match_service.list_available_requests(store, "double", user_id)
    ]


@router.get("/match/{match_id}/users")
def get_matched_users(match_id: int, store: Store = Depends(get_store)):
    request, opponent = match_service.get_matched_users(store, match_id)
    return [asdict(request), asdict(opponent)]


@router.get("/players/{user_id}/pending_confirmations")
def list_pending_confirmations(user_id: int, store: Store = Depends(get_store)):
    return [asdict(r) for r in match_service.list_pending_confirmations(store, user_id)]


@router.get("/players/{user_id}/scheduled")
def list_scheduled(user_id: int, store: Store = Depends(get_store)):
    return [asdict(r) for r in match_service.list_scheduled_matches(store, user_id)]

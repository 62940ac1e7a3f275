from fastapi import APIRouter, Depends
from pydantic import BaseModel, PositiveInt

from ..services.results import submit_match_winners
from ..services.state import get_store
from ..storage import Store

router = APIRouter()


class MatchWinners(BaseModel):
    winner1_id: PositiveInt
    winner2_id: PositiveInt


@router.post("/match-result/submit-winners/{match_id}")
def submit_winners(match_id: int, data: MatchWinners, store: Store = Depends(get_store)):
    message = submit_match_winners(store, match_id, data.winner1_id, data.winner2_id)
    return {"status": "ok", "message": message}

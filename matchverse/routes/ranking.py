from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..services.achievements import get_user_achievements
from ..services.leaderboard import get_leaderboard
from ..services.ranking import update_user_ranking
from ..services.state import get_store
from ..storage import Store

router = APIRouter()


class RankingUpdate(BaseModel):
    winner1_id: int
    winner2_id: int
    loser1_id: int
    loser2_id: int


@router.post("/ranking/update")
def update_ranking(data: RankingUpdate, store: Store = Depends(get_store)):
    messages = update_user_ranking(
        store, data.winner1_id, data.winner2_id, data.loser1_id, data.loser2_id
    )
    return {"status": "ok", "updates": messages}


@router.get("/leaderboard")
def leaderboard(limit: int | None = None, store: Store = Depends(get_store)):
    return get_leaderboard(store, limit)


@router.get("/users/{user_id}/achievements")
def user_achievements(user_id: int, store: Store = Depends(get_store)):
    return {"user_id": user_id, "achievements": get_user_achievements(store, user_id)}

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import List, Optional

# Match types
SINGLE = "single"
DOUBLE = "double"
MATCH_TYPES = (SINGLE, DOUBLE)

# Players needed on court for each match type
ROSTER_SIZE = {SINGLE: 2, DOUBLE: 4}

# MatchRequest status values
PENDING = "pending"
PENDING_CONFIRMATION = "pending_confirmation"
SCHEDULED = "scheduled"
CANCELLED = "cancelled"

DEFAULT_RANK = "Beginner 01"


@dataclass
class User:
    """A player account as seen by matchmaking and ranking."""

    user_id: int
    username: str
    rank_points: int = 0
    rank: str = DEFAULT_RANK
    games_played: int = 0
    games_won: int = 0
    # append-only, no duplicates
    achievements: List[str] = field(default_factory=list)


@dataclass
class Booking:
    """A reserved court slot. Owned by the booking subsystem."""

    booking_id: int
    court_id: Optional[int] = None
    user_id: Optional[int] = None
    start_time: Optional[datetime.datetime] = None
    end_time: Optional[datetime.datetime] = None


@dataclass
class MatchRequest:
    """One side's request to play.

    ``opponent_id`` links to the request this one was paired with.
    """

    request_id: int
    match_type: str
    created_by_id: int
    booking_id: Optional[int] = None
    partner_id: Optional[int] = None
    status: str = PENDING
    opponent_id: Optional[int] = None
    created_at: datetime.datetime = field(default_factory=datetime.datetime.now)

    @property
    def player_ids(self) -> list[int]:
        ids = [self.created_by_id]
        if self.partner_id is not None:
            ids.append(self.partner_id)
        return ids

    def involves(self, user_id: int) -> bool:
        return user_id in self.player_ids


@dataclass
class MatchResult:
    """Final outcome of a match. Never modified after creation."""

    result_id: int
    match_id: int
    winner1_id: int
    winner2_id: int
    loser1_id: int
    loser2_id: int
    confirmed: bool = True
    created_at: datetime.datetime = field(default_factory=datetime.datetime.now)

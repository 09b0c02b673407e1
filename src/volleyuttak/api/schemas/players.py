from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from volleyuttak.models import Player


class PlayerName(BaseModel):
    name: str


class PlayersResponse(BaseModel):
    players: List[PlayerName]
    detailed_players: List[Player]
    total_registrations: int
    source: str
    fetched_at: datetime
    message: str | None = None
    error: str | None = None


class FilterResponse(BaseModel):
    players: List[Player]
    total: int
    active_filters: dict[str, str] = Field(default_factory=dict)
    search_term: str = ""


class RevalidateResponse(BaseModel):
    message: str
    timestamp: datetime

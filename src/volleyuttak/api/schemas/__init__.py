"""Pydantic models for API I/O."""

from .players import FilterResponse, PlayerName, PlayersResponse, RevalidateResponse
from .selection import (
    AssignRequest,
    DragEndRequest,
    DragStartRequest,
    MoveRequest,
    NotificationResponse,
    PotentialAddRequest,
    PotentialMoveRequest,
    PotentialRemoveRequest,
    SearchRequest,
    SelectionResponse,
    StatsResponse,
    UnassignRequest,
    ViewResponse,
)

__all__ = [
    "AssignRequest",
    "DragEndRequest",
    "DragStartRequest",
    "FilterResponse",
    "MoveRequest",
    "NotificationResponse",
    "PlayerName",
    "PlayersResponse",
    "PotentialAddRequest",
    "PotentialMoveRequest",
    "PotentialRemoveRequest",
    "RevalidateResponse",
    "SearchRequest",
    "SelectionResponse",
    "StatsResponse",
    "UnassignRequest",
    "ViewResponse",
]

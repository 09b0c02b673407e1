from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from volleyuttak.config import Bucket, Position
from volleyuttak.models import Player


class AssignRequest(BaseModel):
    name: str = Field(..., min_length=1)
    position: Position


class UnassignRequest(BaseModel):
    name: str = Field(..., min_length=1)
    position: Position


class MoveRequest(BaseModel):
    name: str = Field(..., min_length=1)
    from_position: Position
    to_position: Position


class PotentialAddRequest(BaseModel):
    name: str = Field(..., min_length=1)
    bucket: Optional[Bucket] = None


class PotentialRemoveRequest(BaseModel):
    name: str = Field(..., min_length=1)


class PotentialMoveRequest(BaseModel):
    name: str = Field(..., min_length=1)
    bucket: Bucket


class DragStartRequest(BaseModel):
    source_id: str | None = None


class DragEndRequest(BaseModel):
    source_id: str | None = None
    target_id: str | None = None


class SearchRequest(BaseModel):
    term: str = ""


class NotificationResponse(BaseModel):
    id: int
    message: str
    severity: str


class SelectionResponse(BaseModel):
    selection: Dict[str, List[str]]
    potential: Dict[str, List[str]]
    changed: bool | None = None
    action: str | None = None
    notifications: List[NotificationResponse] = Field(default_factory=list)


class StatsResponse(BaseModel):
    total_registrations: int
    selected: int
    available: int
    potential: int


class ViewResponse(BaseModel):
    available: List[Player]
    selection: Dict[str, List[str]]
    potential: Dict[str, List[Player]]
    stats: StatsResponse
    search_term: str
    search_pending: bool
    active_filters: Dict[str, str] = Field(default_factory=dict)
    source: str
    message: str | None = None
    notifications: List[NotificationResponse] = Field(default_factory=list)

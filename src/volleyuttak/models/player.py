"""Canonical player model shared across ingestion, filtering and selection."""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Player(BaseModel):
    """Normalized tryout registration. ``name`` is the identity key."""

    name: str = Field(..., min_length=1)
    registration_number: str = ""
    row_number: int | None = None
    gender: str = ""
    birth_date: str = ""
    year: str = ""
    is_student: str = ""
    previous_team: str = ""
    previous_positions: str = ""
    desired_positions: str = ""
    desired_level: str = ""
    experience: str = ""
    availability: str = ""
    email: str = ""
    phone: str = ""
    selected_for_team: str = ""

    model_config = ConfigDict(frozen=True)

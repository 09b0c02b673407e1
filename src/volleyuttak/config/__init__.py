"""Configuration helpers for positions and runtime settings."""

from .positions import (
    POSITIONS,
    POTENTIAL_BUCKETS,
    UNKNOWN_BUCKET,
    Bucket,
    Position,
    default_potential_bucket,
    default_team_position,
    is_bucket,
    is_position,
    map_positions,
)
from .settings import Settings

__all__ = [
    "Bucket",
    "POSITIONS",
    "POTENTIAL_BUCKETS",
    "Position",
    "Settings",
    "UNKNOWN_BUCKET",
    "default_potential_bucket",
    "default_team_position",
    "is_bucket",
    "is_position",
    "map_positions",
]

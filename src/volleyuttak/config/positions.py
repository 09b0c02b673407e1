"""Position taxonomy and free-text position matching."""

from __future__ import annotations

from typing import Literal, Mapping, Tuple, Union, get_args

from volleyuttak.models import Player


Position = Literal["Midt", "Dia", "Legger", "Libero", "Kant"]
Bucket = Union[Position, Literal["Ukjent"]]

POSITIONS: Tuple[Position, ...] = get_args(Position)
UNKNOWN_BUCKET: Literal["Ukjent"] = "Ukjent"
POTENTIAL_BUCKETS: Tuple[Bucket, ...] = (*POSITIONS, UNKNOWN_BUCKET)

# Registration form labels (Norwegian and English) -> roster positions.
# Order matters: the first alias found decides the default bucket.
POSITION_ALIASES: Mapping[str, Tuple[Position, ...]] = {
    "Midt": ("Midt",),
    "Middle": ("Midt",),
    "Dia": ("Dia",),
    "Diagnoal": ("Dia",),
    "Diagonal": ("Dia",),
    "Opposite hitter": ("Dia",),
    "Legger": ("Legger",),
    "Setter": ("Legger",),
    "Libero": ("Libero",),
    "Kant": ("Kant",),
    "Outside hitter": ("Kant",),
}


def is_position(value: str) -> bool:
    return value in POSITIONS


def is_bucket(value: str) -> bool:
    return value in POTENTIAL_BUCKETS


def map_positions(text: str | None) -> Tuple[Position, ...]:
    """Return the roster positions mentioned in ``text``, each at most once."""

    if not text:
        return ()
    lowered = text.lower()
    matched: list[Position] = []
    for alias, positions in POSITION_ALIASES.items():
        if alias.lower() not in lowered:
            continue
        for position in positions:
            if position not in matched:
                matched.append(position)
    return tuple(matched)


def default_potential_bucket(player: Player) -> Bucket:
    mapped = map_positions(player.desired_positions)
    return mapped[0] if mapped else UNKNOWN_BUCKET


def default_team_position(player: Player) -> Position:
    mapped = map_positions(player.desired_positions)
    return mapped[0] if mapped else POSITIONS[0]


__all__ = [
    "Bucket",
    "POSITIONS",
    "POSITION_ALIASES",
    "POTENTIAL_BUCKETS",
    "Position",
    "UNKNOWN_BUCKET",
    "default_potential_bucket",
    "default_team_position",
    "is_bucket",
    "is_position",
    "map_positions",
]

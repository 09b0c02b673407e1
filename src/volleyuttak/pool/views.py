"""Derived dashboard state: available players, filtered potential groups and stats."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from volleyuttak.config import Bucket, Position
from volleyuttak.models import Player
from volleyuttak.selection.store import SelectionStore

from .filtering import PlayerFilters, filter_names


# Rows without a registration number sort after the numbered ones by feed row.
ROW_NUMBER_OFFSET = 98


@dataclass(frozen=True)
class RosterStats:
    total_registrations: int
    selected: int
    available: int
    potential: int


@dataclass(frozen=True)
class RosterView:
    available: List[Player]
    selection: Dict[Position, List[str]]
    potential: Dict[Bucket, List[Player]]
    stats: RosterStats
    search_term: str = ""
    filters: PlayerFilters = field(default_factory=PlayerFilters)


def sort_key(player: Player) -> float:
    """Registration number, else feed row shifted past the form range, else last."""

    try:
        return float(int(player.registration_number))
    except (TypeError, ValueError):
        pass
    if player.row_number is not None:
        return float(player.row_number + ROW_NUMBER_OFFSET)
    return math.inf


def unique_by_name(players: Iterable[Player]) -> List[Player]:
    seen: set[str] = set()
    unique: List[Player] = []
    for player in players:
        if player.name in seen:
            continue
        seen.add(player.name)
        unique.append(player)
    return unique


def available_players(
    players: Sequence[Player],
    store: SelectionStore,
    visible: set[str] | None = None,
) -> List[Player]:
    assigned = store.assigned_names()
    candidates = [
        player
        for player in unique_by_name(players)
        if player.name not in assigned and (visible is None or player.name in visible)
    ]
    return sorted(candidates, key=sort_key)


def potential_players(
    store: SelectionStore,
    lookup: Dict[str, Player],
    visible: set[str] | None = None,
) -> Dict[Bucket, List[Player]]:
    groups: Dict[Bucket, List[Player]] = {}
    for bucket, names in store.potential_groups().items():
        groups[bucket] = [
            lookup.get(name) or Player(name=name)
            for name in names
            # Stale names are not in the feed and only show when nothing is filtered.
            if visible is None or name in visible
        ]
    return groups


def build_roster_view(
    players: Sequence[Player],
    store: SelectionStore,
    filters: PlayerFilters | None = None,
    search_term: str = "",
    *,
    current_year: int | None = None,
) -> RosterView:
    filters = filters or PlayerFilters()
    narrowing = bool(filters.active()) or bool((search_term or "").strip())
    visible = filter_names(players, filters, search_term, current_year=current_year) if narrowing else None

    lookup: Dict[str, Player] = {}
    for player in players:
        lookup.setdefault(player.name, player)

    available = available_players(players, store, visible)
    potential = potential_players(store, lookup, visible)
    selection = store.selection()
    stats = RosterStats(
        total_registrations=len(players),
        selected=len(store.selected_names()),
        available=len(available),
        potential=sum(len(group) for group in potential.values()),
    )
    return RosterView(
        available=available,
        selection=selection,
        potential=potential,
        stats=stats,
        search_term=search_term or "",
        filters=filters,
    )


__all__ = [
    "ROW_NUMBER_OFFSET",
    "RosterStats",
    "RosterView",
    "available_players",
    "build_roster_view",
    "potential_players",
    "sort_key",
    "unique_by_name",
]

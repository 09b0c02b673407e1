"""Attribute and free-text filtering over the registration list."""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from datetime import date
from typing import Callable, Iterable, Literal, Mapping, Sequence

from volleyuttak.ingest.rows import extract_year
from volleyuttak.models import Player


ALL = "all"

MALE_LABEL = "mann / male"
FEMALE_LABEL = "kvinne / female"

STUDENT_YES_TOKENS = frozenset({"ja", "yes", "y"})
STUDENT_NO_TOKENS = frozenset({"nei", "no", "n"})
PREVIOUS_TEAM_NO_TOKENS = frozenset({"nei", "no", "n", "ingen", "none"})

LEVEL_VARIANTS: Mapping[str, tuple[str, ...]] = {
    "1": ("1", "første", "first"),
    "2": ("2", "andre", "second"),
    "3": ("3", "tredje", "third"),
    "4": ("4", "fjerde", "fourth"),
}

AGE_GROUPS = ("under20", "20-25", "over25")

_TOKEN_SPLIT = re.compile(r"\W+")

StudentClass = Literal["yes", "no", "unknown"]


@dataclass(frozen=True)
class PlayerFilters:
    """Filter dimensions; ``"all"`` disables a dimension."""

    gender: str = ALL
    is_student: str = ALL
    previous_team: str = ALL
    desired_level: str = ALL
    desired_position: str = ALL
    age_group: str = ALL

    @classmethod
    def from_mapping(cls, values: Mapping[str, str | None]) -> "PlayerFilters":
        """Build filters from loose input (query params), blanks mean ``all``."""

        kwargs = {}
        for item in fields(cls):
            raw = values.get(item.name)
            kwargs[item.name] = raw.strip() if raw and raw.strip() else ALL
        return cls(**kwargs)

    def active(self) -> dict[str, str]:
        return {
            item.name: getattr(self, item.name)
            for item in fields(self)
            if getattr(self, item.name) != ALL
        }


def _tokens(text: str) -> set[str]:
    return {token for token in _TOKEN_SPLIT.split(text.lower()) if token}


def classify_student(text: str | None) -> StudentClass:
    """Classify the student answer; mixed or empty answers stay ``unknown``."""

    tokens = _tokens(text or "")
    positive = bool(tokens & STUDENT_YES_TOKENS)
    negative = bool(tokens & STUDENT_NO_TOKENS)
    if positive and not negative:
        return "yes"
    if negative and not positive:
        return "no"
    return "unknown"


def played_previous_team(text: str | None) -> bool:
    value = (text or "").strip()
    if not value:
        return False
    return not (_tokens(value) & PREVIOUS_TEAM_NO_TOKENS)


def resolve_birth_year(player: Player) -> int | None:
    raw = player.year or extract_year(player.birth_date)
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def age_group_for(player: Player, current_year: int) -> str | None:
    year = resolve_birth_year(player)
    if year is None:
        return None
    age = current_year - year
    if age < 20:
        return "under20"
    if age <= 25:
        return "20-25"
    return "over25"


def matches_search(player: Player, search_term: str | None) -> bool:
    term = (search_term or "").strip()
    if not term:
        return True
    if term.lower() in player.name.lower():
        return True
    return bool(player.registration_number) and term in player.registration_number


def _matches_gender(player: Player, option: str) -> bool:
    gender = player.gender.strip().lower()
    if option == "male":
        return gender == MALE_LABEL
    if option == "female":
        return gender == FEMALE_LABEL
    return False


def _matches_level(player: Player, option: str) -> bool:
    level = player.desired_level.lower()
    variants = LEVEL_VARIANTS.get(option, (option.lower(),))
    return any(variant in level for variant in variants)


def _matches_position(player: Player, option: str) -> bool:
    return option.lower() in player.desired_positions.lower()


def _matches_previous_team(player: Player, option: str) -> bool:
    played = played_previous_team(player.previous_team)
    if option == "yes":
        return played
    if option == "no":
        return not played
    return False


def _matches_student(player: Player, option: str) -> bool:
    return classify_student(player.is_student) == option


def _predicates(filters: PlayerFilters, current_year: int) -> list[Callable[[Player], bool]]:
    checks: list[Callable[[Player], bool]] = []
    if filters.gender != ALL:
        checks.append(lambda p: _matches_gender(p, filters.gender))
    if filters.is_student != ALL:
        checks.append(lambda p: _matches_student(p, filters.is_student))
    if filters.previous_team != ALL:
        checks.append(lambda p: _matches_previous_team(p, filters.previous_team))
    if filters.desired_level != ALL:
        checks.append(lambda p: _matches_level(p, filters.desired_level))
    if filters.desired_position != ALL:
        checks.append(lambda p: _matches_position(p, filters.desired_position))
    if filters.age_group != ALL:
        checks.append(lambda p: age_group_for(p, current_year) == filters.age_group)
    return checks


def filter_players(
    players: Iterable[Player],
    filters: PlayerFilters | None = None,
    search_term: str | None = "",
    *,
    current_year: int | None = None,
) -> list[Player]:
    """Return players passing every active filter, preserving input order."""

    filters = filters or PlayerFilters()
    year = current_year if current_year is not None else date.today().year
    checks = _predicates(filters, year)
    return [
        player
        for player in players
        if matches_search(player, search_term) and all(check(player) for check in checks)
    ]


def filter_names(
    players: Sequence[Player],
    filters: PlayerFilters | None = None,
    search_term: str | None = "",
    *,
    current_year: int | None = None,
) -> set[str]:
    return {
        player.name
        for player in filter_players(players, filters, search_term, current_year=current_year)
    }


__all__ = [
    "AGE_GROUPS",
    "ALL",
    "PlayerFilters",
    "age_group_for",
    "classify_student",
    "filter_names",
    "filter_players",
    "matches_search",
    "played_previous_team",
    "resolve_birth_year",
]

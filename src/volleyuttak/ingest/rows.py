"""Normalize raw registration-form rows into :class:`Player` records."""

from __future__ import annotations

import logging
import re
from typing import Any, List, Sequence

from volleyuttak.models import Player


logger = logging.getLogger(__name__)

# Zero-based column indexes in the registration form export (A=0 ... T=19).
NAME_COLUMN = 2
BIRTH_DATE_COLUMN = 3
GENDER_COLUMN = 4
PHONE_COLUMN = 5
PREVIOUS_TEAM_COLUMN = 7
STUDENT_COLUMN = 8
PREVIOUS_POSITIONS_COLUMN = 9
DESIRED_POSITIONS_COLUMN = 10
DESIRED_LEVEL_COLUMN = 11
EXPERIENCE_COLUMN = 12
AVAILABILITY_COLUMN = 13
EMAIL_COLUMN = 15
SELECTED_FOR_TEAM_COLUMN = 18
REGISTRATION_NUMBER_COLUMN = 19

# The first data row sits on sheet row 2 (row 1 is the header).
FIRST_DATA_ROW = 2

_YEAR_PATTERN = re.compile(r"(?<!\d)(\d{4})(?!\d)")


def _cell(row: Sequence[Any] | None, index: int) -> str:
    if row is None or index >= len(row):
        return ""
    value = row[index]
    if value is None:
        return ""
    return str(value).strip()


def extract_year(birth_date: str | None) -> str:
    """Return the four-digit year of a birth date in any common layout."""

    if not birth_date:
        return ""
    match = _YEAR_PATTERN.search(birth_date)
    return match.group(1) if match else ""


def row_to_player(row: Sequence[Any], row_number: int) -> Player:
    birth_date = _cell(row, BIRTH_DATE_COLUMN)
    return Player(
        name=_cell(row, NAME_COLUMN),
        birth_date=birth_date,
        year=extract_year(birth_date),
        gender=_cell(row, GENDER_COLUMN),
        phone=_cell(row, PHONE_COLUMN),
        previous_team=_cell(row, PREVIOUS_TEAM_COLUMN),
        is_student=_cell(row, STUDENT_COLUMN),
        previous_positions=_cell(row, PREVIOUS_POSITIONS_COLUMN),
        desired_positions=_cell(row, DESIRED_POSITIONS_COLUMN),
        desired_level=_cell(row, DESIRED_LEVEL_COLUMN),
        experience=_cell(row, EXPERIENCE_COLUMN),
        availability=_cell(row, AVAILABILITY_COLUMN),
        email=_cell(row, EMAIL_COLUMN),
        selected_for_team=_cell(row, SELECTED_FOR_TEAM_COLUMN),
        registration_number=_cell(row, REGISTRATION_NUMBER_COLUMN),
        row_number=row_number,
    )


def rows_to_players(rows: Sequence[Sequence[Any]]) -> List[Player]:
    """Convert a header-first 2-D cell array into players.

    Rows without a name are dropped. Names are not deduplicated here.
    """

    if not rows:
        return []
    data_rows = [row for row in rows[1:] if _cell(row, NAME_COLUMN)]
    skipped = len(rows) - 1 - len(data_rows)
    if skipped:
        logger.debug("Skipped %d feed rows without a name", skipped)
    return [
        row_to_player(row, row_number)
        for row_number, row in enumerate(data_rows, start=FIRST_DATA_ROW)
    ]


FALLBACK_PLAYERS: tuple[Player, ...] = (
    Player(name="Anna Johansen", gender="kvinne / female", is_student="ja", desired_positions="libero", desired_level="2", row_number=1),
    Player(name="Bjørn Olsen", gender="mann / male", is_student="nei", desired_positions="midt", desired_level="1", row_number=2),
    Player(name="Cecilie Hansen", gender="kvinne / female", is_student="ja", desired_positions="kant", desired_level="3", row_number=3),
    Player(name="David Berg", gender="mann / male", is_student="ja", desired_positions="legger", desired_level="2", row_number=4),
    Player(name="Eva Nilsen", gender="kvinne / female", is_student="nei", desired_positions="dia", desired_level="1", row_number=5),
    Player(name="Fredrik Svendsen", gender="mann / male", is_student="ja", desired_positions="midt", desired_level="2", row_number=6),
    Player(name="Greta Andersen", gender="kvinne / female", is_student="ja", desired_positions="libero", desired_level="3", row_number=7),
    Player(name="Henrik Pedersen", gender="mann / male", is_student="nei", desired_positions="kant", desired_level="1", row_number=8),
    Player(name="Ingrid Larsen", gender="kvinne / female", is_student="ja", desired_positions="dia", desired_level="2", row_number=9),
    Player(name="Johan Kristiansen", gender="mann / male", is_student="ja", desired_positions="legger", desired_level="1", row_number=10),
)


__all__ = [
    "FALLBACK_PLAYERS",
    "FIRST_DATA_ROW",
    "NAME_COLUMN",
    "PREVIOUS_TEAM_COLUMN",
    "extract_year",
    "row_to_player",
    "rows_to_players",
]

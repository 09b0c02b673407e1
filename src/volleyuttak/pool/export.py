"""Spreadsheet export of selected players."""

from __future__ import annotations

import csv
from io import StringIO
from typing import Sequence

from volleyuttak.ingest.rows import NAME_COLUMN, PREVIOUS_TEAM_COLUMN
from volleyuttak.models import Player


EXPORT_HEADERS: tuple[str, ...] = ("Name", "Email", "Played last year")

DEFAULT_FEED_SHEET = "'Skjemasvar 1'"


class ExportError(RuntimeError):
    """Raised when a player list cannot be exported."""


def _column_letter(index: int) -> str:
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def played_last_year_formula(row: int, *, feed_sheet: str = DEFAULT_FEED_SHEET) -> str:
    """Spreadsheet formula looking up the name in column A against the feed."""

    if row < 2:
        raise ExportError(f"data rows start at row 2, got {row}")
    first = _column_letter(NAME_COLUMN)
    last = _column_letter(PREVIOUS_TEAM_COLUMN)
    offset = PREVIOUS_TEAM_COLUMN - NAME_COLUMN + 1
    return f'=IFERROR(VLOOKUP(A{row},{feed_sheet}!{first}:{last},{offset},FALSE),"")'


def export_players_to_csv(
    players: Sequence[Player],
    *,
    feed_sheet: str = DEFAULT_FEED_SHEET,
) -> str:
    """Render ``players`` as a three-column CSV ready for spreadsheet import."""

    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_HEADERS)
    for row, player in enumerate(players, start=2):
        writer.writerow(
            [
                player.name,
                player.email,
                played_last_year_formula(row, feed_sheet=feed_sheet),
            ]
        )
    return buffer.getvalue()


__all__ = [
    "EXPORT_HEADERS",
    "ExportError",
    "export_players_to_csv",
    "played_last_year_formula",
]

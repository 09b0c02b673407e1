"""Player pool utilities (filtering, views, export, etc.)."""

from .column_filters import ColumnFilter, apply_column_filters, parse_column_filters
from .export import ExportError, export_players_to_csv, played_last_year_formula
from .filtering import PlayerFilters, filter_names, filter_players
from .views import RosterStats, RosterView, build_roster_view

__all__ = [
    "ColumnFilter",
    "ExportError",
    "PlayerFilters",
    "RosterStats",
    "RosterView",
    "apply_column_filters",
    "build_roster_view",
    "export_players_to_csv",
    "filter_names",
    "filter_players",
    "parse_column_filters",
    "played_last_year_formula",
]

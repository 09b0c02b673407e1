"""Input adapters that normalize the registration feed."""

from .rows import FALLBACK_PLAYERS, extract_year, row_to_player, rows_to_players
from .sheets import FeedCache, FeedResult, fetch_sheet_values, load_feed

__all__ = [
    "FALLBACK_PLAYERS",
    "FeedCache",
    "FeedResult",
    "extract_year",
    "fetch_sheet_values",
    "load_feed",
    "row_to_player",
    "rows_to_players",
]

"""Read-only Google Sheets feed of tryout registrations.

Credentials come from a service account (``google.oauth2.service_account``)
configured through :class:`~volleyuttak.config.Settings`. The feed never raises
to callers: missing configuration, an empty sheet or an API failure all degrade
to the built-in fallback dataset, labelled by ``source``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from googleapiclient.discovery import build

from volleyuttak.config import Settings
from volleyuttak.models import Player

from .rows import FALLBACK_PLAYERS, rows_to_players


logger = logging.getLogger(__name__)

SHEETS_READONLY_SCOPE = "https://www.googleapis.com/auth/spreadsheets.readonly"
TOKEN_URI = "https://oauth2.googleapis.com/token"

SOURCE_SHEETS = "google-sheets"
SOURCE_FALLBACK = "fallback"


@dataclass(frozen=True)
class FeedResult:
    players: tuple[Player, ...]
    source: str
    fetched_at: datetime
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def total_registrations(self) -> int:
        return len(self.players)

    @property
    def is_fallback(self) -> bool:
        return self.source != SOURCE_SHEETS


def _load_credentials(settings: Settings):
    from google.oauth2.service_account import Credentials

    info = {
        "type": "service_account",
        "client_email": settings.service_account_email,
        "private_key": settings.private_key,
        "token_uri": TOKEN_URI,
    }
    return Credentials.from_service_account_info(info, scopes=[SHEETS_READONLY_SCOPE])


def fetch_sheet_values(settings: Settings, *, credentials: Any | None = None) -> List[List[str]]:
    """Return the raw cell rows of the configured range."""

    creds = credentials if credentials is not None else _load_credentials(settings)
    svc = build("sheets", "v4", credentials=creds, cache_discovery=False)
    resp = (
        svc.spreadsheets()
        .values()
        .get(spreadsheetId=settings.sheet_id, range=settings.sheet_range, majorDimension="ROWS")
        .execute()
    )
    return resp.get("values", []) or []


def _fallback(source: str, message: str, *, error: str | None = None) -> FeedResult:
    return FeedResult(
        players=FALLBACK_PLAYERS,
        source=source,
        fetched_at=datetime.now(timezone.utc),
        message=message,
        error=error,
    )


def load_feed(
    settings: Settings,
    *,
    fetch_values: Callable[[Settings], List[List[str]]] = fetch_sheet_values,
) -> FeedResult:
    """Fetch and normalize the feed once, falling back to sample data."""

    if not settings.has_sheet_credentials:
        logger.warning("Google Sheets is not configured; using fallback players")
        return _fallback(
            SOURCE_FALLBACK,
            "Google Sheets is not configured (missing environment variables). Showing sample data.",
        )

    try:
        rows = fetch_values(settings)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Failed to fetch players from Google Sheets")
        return _fallback(
            SOURCE_FALLBACK,
            "Could not fetch from Google Sheets. Showing sample data.",
            error=str(exc),
        )

    if not rows:
        logger.warning("Google Sheets returned no rows; using fallback players")
        return _fallback(SOURCE_FALLBACK, "The spreadsheet has no data. Showing sample data.")

    players = rows_to_players(rows)
    logger.info("Loaded %d registrations from Google Sheets", len(players))
    return FeedResult(
        players=tuple(players),
        source=SOURCE_SHEETS,
        fetched_at=datetime.now(timezone.utc),
    )


@dataclass
class FeedCache:
    """Time-boxed cache around :func:`load_feed` with manual invalidation."""

    loader: Callable[[], FeedResult]
    ttl: float = 120.0
    clock: Callable[[], float] = time.monotonic
    _result: Optional[FeedResult] = field(default=None, init=False, repr=False)
    _loaded_at: float = field(default=0.0, init=False, repr=False)

    def get(self) -> FeedResult:
        now = self.clock()
        if self._result is None or now - self._loaded_at >= self.ttl:
            self._result = self.loader()
            self._loaded_at = now
        return self._result

    def invalidate(self) -> None:
        logger.info("Feed cache invalidated")
        self._result = None


__all__ = [
    "FeedCache",
    "FeedResult",
    "SOURCE_FALLBACK",
    "SOURCE_SHEETS",
    "fetch_sheet_values",
    "load_feed",
]

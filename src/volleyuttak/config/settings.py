"""Environment-driven settings for the roster service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path


logger = logging.getLogger(__name__)

DEFAULT_SHEET_RANGE = "'Skjemasvar 1'!A:T"
DEFAULT_DB_PATH = Path.home() / ".volleyuttak" / "volleyuttak.sqlite"

_FEED_TTL_DEFAULT = 120.0
_SEARCH_DEBOUNCE_MS_DEFAULT = 300
_NOTIFICATION_TTL_DEFAULT = 3.0


def _env_str(name: str, default: str | None = None) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_float(name: str, default: float, *, clamp_min: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    return value


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def _normalize_private_key(raw: str | None) -> str | None:
    if raw is None:
        return None
    # Keys pasted into a single-line env var carry literal "\n" sequences.
    return raw.replace("\\n", "\n") if "\\n" in raw else raw


@dataclass(frozen=True)
class Settings:
    service_account_email: str | None = None
    private_key: str | None = None
    sheet_id: str | None = None
    sheet_range: str = DEFAULT_SHEET_RANGE
    revalidation_secret: str | None = None
    db_path: Path | str = DEFAULT_DB_PATH
    session_secret: str = "volleyuttak-dev-secret"
    access_code: str | None = None
    feed_ttl: float = _FEED_TTL_DEFAULT
    search_debounce_ms: int = _SEARCH_DEBOUNCE_MS_DEFAULT
    notification_ttl: float = _NOTIFICATION_TTL_DEFAULT

    @property
    def has_sheet_credentials(self) -> bool:
        return bool(self.service_account_email and self.private_key and self.sheet_id)

    @property
    def sheet_title(self) -> str:
        """Sheet part of the configured A1 range, quotes preserved."""

        if "!" in self.sheet_range:
            return self.sheet_range.split("!", 1)[0]
        return self.sheet_range

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            service_account_email=_env_str("GOOGLE_SERVICE_ACCOUNT_EMAIL"),
            private_key=_normalize_private_key(_env_str("GOOGLE_PRIVATE_KEY")),
            sheet_id=_env_str("GOOGLE_SHEET_ID"),
            sheet_range=_env_str("GOOGLE_SHEET_RANGE", DEFAULT_SHEET_RANGE) or DEFAULT_SHEET_RANGE,
            revalidation_secret=_env_str("REVALIDATION_SECRET"),
            db_path=_env_str("UTTAK_DB_PATH") or DEFAULT_DB_PATH,
            session_secret=_env_str("UTTAK_SESSION_SECRET", "volleyuttak-dev-secret") or "volleyuttak-dev-secret",
            access_code=_env_str("UTTAK_ACCESS_CODE"),
            feed_ttl=_env_float("UTTAK_FEED_TTL", _FEED_TTL_DEFAULT, clamp_min=0.0),
            search_debounce_ms=_env_int("UTTAK_SEARCH_DEBOUNCE_MS", _SEARCH_DEBOUNCE_MS_DEFAULT, min_value=0),
            notification_ttl=_env_float("UTTAK_NOTIFICATION_TTL", _NOTIFICATION_TTL_DEFAULT, clamp_min=0.0),
        )


__all__ = ["DEFAULT_SHEET_RANGE", "Settings"]

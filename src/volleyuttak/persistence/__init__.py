"""Key/value persistence for per-user selection state."""

from __future__ import annotations

import json
import logging
import sqlite3
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from volleyuttak.config import (
    POSITIONS,
    POTENTIAL_BUCKETS,
    UNKNOWN_BUCKET,
    default_potential_bucket,
    is_bucket,
)
from volleyuttak.models import Player
from volleyuttak.selection.store import SelectionSnapshot, snapshot_from_groups


logger = logging.getLogger(__name__)

SELECTION_KEY = "volleyball-selection"
POTENTIAL_KEY = "volleyball-potential"


class KeyValueStorage(Protocol):
    def get(self, namespace: str, key: str) -> Optional[str]: ...

    def set(self, namespace: str, key: str, value: str) -> None: ...


class MemoryStorage:
    """Dictionary-backed storage, used in tests and for anonymous sessions."""

    def __init__(self) -> None:
        self._data: Dict[Tuple[str, str], str] = {}

    def get(self, namespace: str, key: str) -> Optional[str]:
        return self._data.get((namespace, key))

    def set(self, namespace: str, key: str, value: str) -> None:
        self._data[(namespace, key)] = value


class SqliteStorage:
    """Simple SQLite-backed key/value store namespaced per user."""

    def __init__(self, db_path: Path | str):
        self._use_uri = False
        if isinstance(db_path, str) and db_path.startswith('file:'):
            self.db_path: Path | str = db_path
            self._use_uri = True
        else:
            self.db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        try:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(self.db_path)
            else:
                conn = sqlite3.connect(self.db_path, uri=self._use_uri)
        except (sqlite3.OperationalError, OSError):
            fallback_dir = Path(tempfile.gettempdir()) / 'volleyuttak-runtime'
            fallback_dir.mkdir(parents=True, exist_ok=True)
            fallback = fallback_dir / 'volleyuttak.sqlite'
            logger.warning("Could not open %s; using %s", self.db_path, fallback)
            conn = sqlite3.connect(fallback)
            self.db_path = fallback
            self._use_uri = False
            self._create_schema(conn)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_entries (
                namespace TEXT NOT NULL,
                key TEXT NOT NULL,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (namespace, key)
            )
            """
        )
        conn.commit()

    def get(self, namespace: str, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM kv_entries WHERE namespace = ? AND key = ?",
                (namespace, key),
            ).fetchone()
        return row["value"] if row else None

    def set(self, namespace: str, key: str, value: str) -> None:
        updated_at = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO kv_entries (namespace, key, value, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(namespace, key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (namespace, key, value, updated_at),
            )
            conn.commit()


def _parse_selection(raw: str) -> Dict[str, list[str]]:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("selection must be a JSON object")
    selection: Dict[str, list[str]] = {}
    for position in POSITIONS:
        names = data.get(position, [])
        if not isinstance(names, list):
            raise ValueError(f"selection[{position!r}] must be a list")
        selection[position] = [str(name) for name in names if isinstance(name, str) and name]
    return selection


def _parse_potential(raw: str, lookup: Callable[[str], Optional[Player]]) -> Dict[str, list[str]]:
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("potential must be a JSON list")
    groups: Dict[str, list[str]] = {bucket: [] for bucket in POTENTIAL_BUCKETS}
    for entry in data:
        if isinstance(entry, str) and entry:
            # Older snapshots stored bare names; regroup by desired position.
            player = lookup(entry)
            bucket = default_potential_bucket(player) if player else UNKNOWN_BUCKET
            groups[bucket].append(entry)
        elif isinstance(entry, dict) and isinstance(entry.get("name"), str) and entry["name"]:
            bucket = entry.get("bucket")
            groups[bucket if isinstance(bucket, str) and is_bucket(bucket) else UNKNOWN_BUCKET].append(entry["name"])
        else:
            logger.debug("Skipping malformed potential entry %r", entry)
    return groups


def _no_lookup(name: str) -> Optional[Player]:
    return None


@dataclass
class SelectionPersistence:
    """Serialize selection snapshots under the two fixed keys."""

    storage: KeyValueStorage
    namespace: str = "default"

    def save(self, snapshot: SelectionSnapshot) -> None:
        selection_payload = {position: list(snapshot.selection.get(position, ())) for position in POSITIONS}
        potential_payload = [
            {"name": name, "bucket": bucket}
            for bucket in POTENTIAL_BUCKETS
            for name in snapshot.potential.get(bucket, ())
        ]
        try:
            self.storage.set(self.namespace, SELECTION_KEY, json.dumps(selection_payload, ensure_ascii=False))
            self.storage.set(self.namespace, POTENTIAL_KEY, json.dumps(potential_payload, ensure_ascii=False))
        except sqlite3.Error:
            logger.exception("Error saving selection for %s", self.namespace)

    def load(self, lookup: Callable[[str], Optional[Player]] = _no_lookup) -> SelectionSnapshot:
        """Load the stored snapshot; malformed values are discarded, never raised."""

        selection: Dict[str, Any] = {}
        potential: Dict[str, Any] = {}
        try:
            raw_selection = self.storage.get(self.namespace, SELECTION_KEY)
            raw_potential = self.storage.get(self.namespace, POTENTIAL_KEY)
        except sqlite3.Error:
            logger.exception("Error reading saved state for %s", self.namespace)
            return SelectionSnapshot()

        if raw_selection:
            try:
                selection = _parse_selection(raw_selection)
            except (ValueError, RecursionError) as exc:
                logger.warning("Discarding malformed saved selection for %s: %s", self.namespace, exc)
                selection = {}
        if raw_potential:
            try:
                potential = _parse_potential(raw_potential, lookup)
            except (ValueError, RecursionError) as exc:
                logger.warning("Discarding malformed saved potential list for %s: %s", self.namespace, exc)
                potential = {}
        return snapshot_from_groups(selection, potential)


__all__ = [
    "KeyValueStorage",
    "MemoryStorage",
    "POTENTIAL_KEY",
    "SELECTION_KEY",
    "SelectionPersistence",
    "SqliteStorage",
]

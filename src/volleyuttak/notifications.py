"""Transient, auto-expiring notification banners."""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass
from typing import Callable, List, Literal


Severity = Literal["success", "error", "info", "warning"]


@dataclass(frozen=True)
class Notification:
    id: int
    message: str
    severity: Severity
    created_at: float
    expires_at: float


class NotificationCenter:
    def __init__(self, ttl: float = 3.0, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._ids = itertools.count(1)
        self._items: List[Notification] = []

    def push(self, message: str, severity: Severity = "info") -> Notification:
        now = self._clock()
        item = Notification(
            id=next(self._ids),
            message=message,
            severity=severity,
            created_at=now,
            expires_at=now + self.ttl,
        )
        self._items.append(item)
        return item

    def active(self) -> List[Notification]:
        now = self._clock()
        self._items = [item for item in self._items if item.expires_at > now]
        return list(self._items)

    def dismiss(self, notification_id: int) -> bool:
        before = len(self._items)
        self._items = [item for item in self._items if item.id != notification_id]
        return len(self._items) != before


__all__ = ["Notification", "NotificationCenter", "Severity"]

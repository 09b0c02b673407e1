"""Per-user roster session: lifecycle, debounced search and notifications."""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from volleyuttak.config import UNKNOWN_BUCKET, Bucket, Position
from volleyuttak.models import Player
from volleyuttak.notifications import NotificationCenter
from volleyuttak.persistence import SelectionPersistence
from volleyuttak.pool.filtering import PlayerFilters
from volleyuttak.pool.views import RosterView, build_roster_view
from volleyuttak.selection import DragReconciler, SelectionStore


logger = logging.getLogger(__name__)

T = TypeVar("T")

SEARCH_DEBOUNCE_SECONDS = 0.3


class SessionStateError(RuntimeError):
    """Raised when a session is used before it has been initialized."""


class DebouncedValue(Generic[T]):
    """Holds a value that only takes effect after ``window`` seconds of quiet."""

    def __init__(self, initial: T, *, window: float = SEARCH_DEBOUNCE_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.window = window
        self._clock = clock
        self._committed = initial
        self._pending: Optional[T] = None
        self._has_pending = False
        self._changed_at = 0.0

    def set(self, value: T) -> None:
        self._pending = value
        self._has_pending = True
        self._changed_at = self._clock()

    def current(self) -> T:
        if self._has_pending and self._clock() - self._changed_at >= self.window:
            self._committed = self._pending  # type: ignore[assignment]
            self._pending = None
            self._has_pending = False
        return self._committed

    @property
    def is_pending(self) -> bool:
        return self._has_pending


class RosterSession:
    """Owns one user's selection store.

    Lifecycle is ``uninitialized -> initialized``; :meth:`initialize` loads
    the persisted snapshot exactly once and every mutation before that raises
    :class:`SessionStateError`.
    """

    def __init__(
        self,
        persistence: SelectionPersistence,
        players_provider: Callable[[], Sequence[Player]],
        *,
        notifications: NotificationCenter | None = None,
        search_debounce: float = SEARCH_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.persistence = persistence
        self._players_provider = players_provider
        self.store = SelectionStore(on_change=persistence.save)
        self.notifications = notifications or NotificationCenter()
        self.search = DebouncedValue("", window=search_debounce, clock=clock)
        self.filters = PlayerFilters()
        self.drag = DragReconciler(self, self.lookup_player)
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> bool:
        if self._initialized:
            logger.debug("Session %s already initialized", self.persistence.namespace)
            return False
        self.store.restore(self.persistence.load(self.lookup_player))
        self._initialized = True
        return True

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise SessionStateError(f"session {self.persistence.namespace!r} is not initialized")

    # -- players ---------------------------------------------------------

    def players(self) -> List[Player]:
        return list(self._players_provider())

    def lookup_player(self, name: str) -> Optional[Player]:
        for player in self._players_provider():
            if player.name == name:
                return player
        return None

    def resolve_player(self, name: str) -> Player:
        return self.lookup_player(name) or Player(name=name)

    # -- selection operations -------------------------------------------

    def assign_to_position(self, player: Player, position: Position) -> bool:
        self._require_initialized()
        changed = self.store.assign_to_position(player, position)
        self.notifications.push(f"{player.name} added as {position}", "success")
        return changed

    def unassign(self, position: Position, name: str) -> bool:
        self._require_initialized()
        changed = self.store.unassign(position, name)
        if changed:
            self.notifications.push(f"{name} removed from {position}", "info")
        return changed

    def move(self, from_position: Position, name: str, to_position: Position) -> bool:
        self._require_initialized()
        changed = self.store.move(from_position, name, to_position)
        if changed:
            self.notifications.push(f"{name} moved from {from_position} to {to_position}", "success")
        return changed

    def add_to_potential(self, player: Player) -> bool:
        self._require_initialized()
        changed = self.store.add_to_potential(player)
        member = self.store.membership(player.name)
        suffix = f" ({member.slot})" if member and member.slot != UNKNOWN_BUCKET else ""
        self.notifications.push(f"{player.name} added to potential players{suffix}", "success")
        return changed

    def remove_from_potential(self, name: str) -> bool:
        self._require_initialized()
        changed = self.store.remove_from_potential(name)
        if changed:
            self.notifications.push(f"{name} removed from potential players", "info")
        return changed

    def move_potential(self, name: str, bucket: Bucket) -> bool:
        self._require_initialized()
        changed = self.store.move_potential(name, bucket)
        self.notifications.push(f"{name} moved to potential {bucket}", "info")
        return changed

    def move_to_potential_from_selection(self, player: Player, bucket: Optional[Bucket] = None) -> bool:
        self._require_initialized()
        changed = self.store.move_to_potential_from_selection(player, bucket)
        member = self.store.membership(player.name)
        self.notifications.push(
            f"{player.name} moved to potential players ({member.slot if member else bucket})",
            "info",
        )
        return changed

    # -- view ------------------------------------------------------------

    def set_search_term(self, term: str) -> None:
        self.search.set(term)

    def set_filters(self, filters: PlayerFilters) -> None:
        self.filters = filters

    def view(self, *, current_year: int | None = None) -> RosterView:
        self._require_initialized()
        return build_roster_view(
            self.players(),
            self.store,
            self.filters,
            self.search.current(),
            current_year=current_year,
        )


class SessionRegistry:
    """Creates and initializes exactly one :class:`RosterSession` per user."""

    def __init__(self, factory: Callable[[str], RosterSession]):
        self._factory = factory
        self._sessions: Dict[str, RosterSession] = {}

    def get(self, user: str) -> RosterSession:
        session = self._sessions.get(user)
        if session is None:
            session = self._factory(user)
            session.initialize()
            self._sessions[user] = session
            logger.info("Started roster session for %s", user)
        return session

    def discard(self, user: str) -> None:
        self._sessions.pop(user, None)


__all__ = [
    "DebouncedValue",
    "RosterSession",
    "SEARCH_DEBOUNCE_SECONDS",
    "SessionRegistry",
    "SessionStateError",
]

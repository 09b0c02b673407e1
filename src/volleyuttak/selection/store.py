"""Team selection and potential-player grouping.

Membership is kept in one ordered map ``name -> Membership`` so a player is in
at most one team position or potential bucket at any time. The per-position
lists exposed to callers are views over that map; re-placing a name moves it
to the end of its new list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Literal, Mapping, Optional, Protocol, Tuple

from volleyuttak.config import (
    POSITIONS,
    POTENTIAL_BUCKETS,
    Bucket,
    Position,
    default_potential_bucket,
    is_bucket,
    is_position,
)
from volleyuttak.models import Player


logger = logging.getLogger(__name__)

TEAM = "team"
POTENTIAL = "potential"


@dataclass(frozen=True)
class Membership:
    kind: Literal["team", "potential"]
    slot: str


@dataclass(frozen=True)
class SelectionSnapshot:
    """Immutable copy of the store, keyed the way it is persisted."""

    selection: Mapping[Position, Tuple[str, ...]] = field(
        default_factory=lambda: {position: () for position in POSITIONS}
    )
    potential: Mapping[Bucket, Tuple[str, ...]] = field(
        default_factory=lambda: {bucket: () for bucket in POTENTIAL_BUCKETS}
    )

    @property
    def is_empty(self) -> bool:
        return not any(self.selection.values()) and not any(self.potential.values())


class SelectionOperations(Protocol):
    def assign_to_position(self, player: Player, position: Position) -> bool: ...

    def unassign(self, position: Position, name: str) -> bool: ...

    def move(self, from_position: Position, name: str, to_position: Position) -> bool: ...

    def add_to_potential(self, player: Player) -> bool: ...

    def remove_from_potential(self, name: str) -> bool: ...

    def move_potential(self, name: str, bucket: Bucket) -> bool: ...

    def move_to_potential_from_selection(self, player: Player, bucket: Optional[Bucket] = None) -> bool: ...


def _require_position(position: str) -> None:
    if not is_position(position):
        raise ValueError(f"Unknown position {position!r}; expected one of {', '.join(POSITIONS)}")


def _require_bucket(bucket: str) -> None:
    if not is_bucket(bucket):
        raise ValueError(
            f"Unknown potential group {bucket!r}; expected one of {', '.join(POTENTIAL_BUCKETS)}"
        )


class SelectionStore:
    """In-memory selection state with a change listener for persistence."""

    def __init__(self, *, on_change: Callable[[SelectionSnapshot], None] | None = None):
        self._members: Dict[str, Membership] = {}
        self._on_change = on_change

    # -- views -----------------------------------------------------------

    def membership(self, name: str) -> Optional[Membership]:
        return self._members.get(name)

    def selection(self) -> Dict[Position, List[str]]:
        lists: Dict[Position, List[str]] = {position: [] for position in POSITIONS}
        for name, member in self._members.items():
            if member.kind == TEAM:
                lists[member.slot].append(name)  # type: ignore[index]
        return lists

    def potential_groups(self) -> Dict[Bucket, List[str]]:
        groups: Dict[Bucket, List[str]] = {bucket: [] for bucket in POTENTIAL_BUCKETS}
        for name, member in self._members.items():
            if member.kind == POTENTIAL:
                groups[member.slot].append(name)  # type: ignore[index]
        return groups

    def selected_names(self) -> List[str]:
        return [name for names in self.selection().values() for name in names]

    def potential_names(self) -> List[str]:
        return [name for names in self.potential_groups().values() for name in names]

    def assigned_names(self) -> set[str]:
        return set(self._members)

    def snapshot(self) -> SelectionSnapshot:
        return SelectionSnapshot(
            selection={position: tuple(names) for position, names in self.selection().items()},
            potential={bucket: tuple(names) for bucket, names in self.potential_groups().items()},
        )

    def restore(self, snapshot: SelectionSnapshot) -> None:
        """Replace the state without notifying the listener."""

        members: Dict[str, Membership] = {}
        for kind, groups in ((TEAM, snapshot.selection), (POTENTIAL, snapshot.potential)):
            for slot, names in groups.items():
                for name in names:
                    if name in members:
                        logger.warning("Ignoring duplicate entry for %s in %s/%s", name, kind, slot)
                        continue
                    members[name] = Membership(kind=kind, slot=slot)  # type: ignore[arg-type]
        self._members = members

    # -- operations ------------------------------------------------------

    def _place(self, name: str, membership: Membership) -> None:
        self._members.pop(name, None)
        self._members[name] = membership

    def _changed(self) -> bool:
        if self._on_change is not None:
            self._on_change(self.snapshot())
        return True

    def assign_to_position(self, player: Player, position: Position) -> bool:
        _require_position(position)
        self._place(player.name, Membership(TEAM, position))
        return self._changed()

    def unassign(self, position: Position, name: str) -> bool:
        _require_position(position)
        if self._members.get(name) != Membership(TEAM, position):
            return False
        del self._members[name]
        return self._changed()

    def move(self, from_position: Position, name: str, to_position: Position) -> bool:
        _require_position(from_position)
        _require_position(to_position)
        if from_position == to_position:
            return False
        if self._members.get(name) != Membership(TEAM, from_position):
            logger.debug("%s is not on %s; move to %s ignored", name, from_position, to_position)
            return False
        self._place(name, Membership(TEAM, to_position))
        return self._changed()

    def add_to_potential(self, player: Player) -> bool:
        self._place(player.name, Membership(POTENTIAL, default_potential_bucket(player)))
        return self._changed()

    def remove_from_potential(self, name: str) -> bool:
        member = self._members.get(name)
        if member is None or member.kind != POTENTIAL:
            return False
        del self._members[name]
        return self._changed()

    def move_potential(self, name: str, bucket: Bucket) -> bool:
        _require_bucket(bucket)
        self._place(name, Membership(POTENTIAL, bucket))
        return self._changed()

    def move_to_potential_from_selection(self, player: Player, bucket: Optional[Bucket] = None) -> bool:
        if bucket is None:
            bucket = default_potential_bucket(player)
        _require_bucket(bucket)
        self._place(player.name, Membership(POTENTIAL, bucket))
        return self._changed()


def snapshot_from_groups(
    selection: Mapping[str, Iterable[str]] | None = None,
    potential: Mapping[str, Iterable[str]] | None = None,
) -> SelectionSnapshot:
    """Build a snapshot from loose position/bucket mappings, ignoring unknown keys."""

    selection = selection or {}
    potential = potential or {}
    return SelectionSnapshot(
        selection={position: tuple(selection.get(position, ())) for position in POSITIONS},
        potential={bucket: tuple(potential.get(bucket, ())) for bucket in POTENTIAL_BUCKETS},
    )


__all__ = [
    "Membership",
    "POTENTIAL",
    "SelectionOperations",
    "SelectionSnapshot",
    "SelectionStore",
    "TEAM",
    "snapshot_from_groups",
]

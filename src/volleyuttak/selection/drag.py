"""Translate drag gestures into selection operations.

The dashboard reports a gesture as two element ids: the dragged item and the
drop target. Ids are decoded into descriptors and each (source, target) pair
maps to exactly one operation. Unknown pairs are logged and ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from volleyuttak.config import (
    Bucket,
    Position,
    default_team_position,
    is_bucket,
    is_position,
)
from volleyuttak.models import Player

from .store import SelectionOperations


logger = logging.getLogger(__name__)

SourceKind = Literal["available-player", "team-player", "potential-player"]
TargetKind = Literal["position", "potential-drop", "potential-position-drop", "available-drop", "team-drop"]


@dataclass(frozen=True)
class DragSource:
    kind: SourceKind
    name: str
    position: Optional[Position] = None


@dataclass(frozen=True)
class DropTarget:
    kind: TargetKind
    position: Optional[Position] = None
    bucket: Optional[Bucket] = None


def parse_source(element_id: str | None) -> Optional[DragSource]:
    """Decode ``available-<name>``, ``player-<pos>-<name>`` or ``potential-<name>``."""

    if not element_id:
        return None
    if element_id.startswith("available-"):
        name = element_id[len("available-"):]
        return DragSource("available-player", name) if name else None
    if element_id.startswith("player-"):
        position, _, name = element_id[len("player-"):].partition("-")
        if not is_position(position) or not name:
            return None
        return DragSource("team-player", name, position)  # type: ignore[arg-type]
    if element_id.startswith("potential-"):
        name = element_id[len("potential-"):]
        return DragSource("potential-player", name) if name else None
    return None


def parse_target(element_id: str | None) -> Optional[DropTarget]:
    """Decode drop-zone ids; returns ``None`` for unknown or incomplete ids."""

    if not element_id:
        return None
    if element_id == "potential-drop":
        return DropTarget("potential-drop")
    if element_id == "available-drop":
        return DropTarget("available-drop")
    if element_id == "team-drop":
        return DropTarget("team-drop")
    if element_id.startswith("potential-pos-"):
        bucket = element_id[len("potential-pos-"):]
        return DropTarget("potential-position-drop", bucket=bucket) if is_bucket(bucket) else None  # type: ignore[arg-type]
    if element_id.startswith("position-"):
        position = element_id[len("position-"):]
        return DropTarget("position", position=position) if is_position(position) else None  # type: ignore[arg-type]
    return None


class DragReconciler:
    """Two-state (idle/dragging) gesture handler dispatching to ``operations``."""

    def __init__(
        self,
        operations: SelectionOperations,
        lookup_player: Callable[[str], Optional[Player]],
    ):
        self._ops = operations
        self._lookup = lookup_player
        self.dragging = False
        self.active_source: Optional[DragSource] = None

    def _player(self, name: str) -> Player:
        # Stale names (no longer in the feed) still move; they just have no attributes.
        return self._lookup(name) or Player(name=name)

    def on_drag_start(self, source: Optional[DragSource] = None) -> None:
        self.dragging = True
        self.active_source = source

    def on_drag_end(self, source: Optional[DragSource], target: Optional[DropTarget]) -> Optional[str]:
        """Apply the gesture; returns the name of the dispatched operation."""

        self.dragging = False
        self.active_source = None
        if source is None or target is None:
            return None

        if source.kind == "available-player":
            action = self._from_available(source, target)
        elif source.kind == "team-player":
            action = self._from_team(source, target)
        else:
            action = self._from_potential(source, target)

        if action is None:
            logger.info("Ignoring drop of %s onto %s", source.kind, target.kind)
        return action

    def _from_available(self, source: DragSource, target: DropTarget) -> Optional[str]:
        player = self._player(source.name)
        if target.kind == "position" and target.position:
            self._ops.assign_to_position(player, target.position)
            return "assign_to_position"
        if target.kind == "potential-drop":
            self._ops.add_to_potential(player)
            return "add_to_potential"
        if target.kind == "potential-position-drop" and target.bucket:
            self._ops.move_potential(player.name, target.bucket)
            return "move_potential"
        if target.kind == "team-drop":
            self._ops.assign_to_position(player, default_team_position(player))
            return "assign_to_position"
        return None

    def _from_team(self, source: DragSource, target: DropTarget) -> Optional[str]:
        if source.position is None:
            return None
        if target.kind == "position" and target.position:
            if target.position == source.position:
                return None
            self._ops.move(source.position, source.name, target.position)
            return "move"
        if target.kind == "available-drop":
            self._ops.unassign(source.position, source.name)
            return "unassign"
        if target.kind == "potential-drop":
            self._ops.move_to_potential_from_selection(self._player(source.name))
            return "move_to_potential_from_selection"
        if target.kind == "potential-position-drop" and target.bucket:
            self._ops.move_to_potential_from_selection(self._player(source.name), target.bucket)
            return "move_to_potential_from_selection"
        return None

    def _from_potential(self, source: DragSource, target: DropTarget) -> Optional[str]:
        player = self._player(source.name)
        if target.kind == "position" and target.position:
            self._ops.remove_from_potential(player.name)
            self._ops.assign_to_position(player, target.position)
            return "assign_to_position"
        if target.kind == "team-drop":
            self._ops.remove_from_potential(player.name)
            self._ops.assign_to_position(player, default_team_position(player))
            return "assign_to_position"
        if target.kind == "available-drop":
            self._ops.remove_from_potential(player.name)
            return "remove_from_potential"
        if target.kind == "potential-position-drop" and target.bucket:
            self._ops.move_potential(player.name, target.bucket)
            return "move_potential"
        if target.kind == "potential-drop":
            self._ops.remove_from_potential(player.name)
            self._ops.add_to_potential(player)
            return "add_to_potential"
        return None

    def handle_ids(self, source_id: str | None, target_id: str | None) -> Optional[str]:
        return self.on_drag_end(parse_source(source_id), parse_target(target_id))


__all__ = [
    "DragReconciler",
    "DragSource",
    "DropTarget",
    "parse_source",
    "parse_target",
]

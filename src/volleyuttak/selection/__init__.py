"""Roster selection state and drag-and-drop reconciliation."""

from .drag import DragReconciler, DragSource, DropTarget, parse_source, parse_target
from .store import (
    Membership,
    SelectionOperations,
    SelectionSnapshot,
    SelectionStore,
    snapshot_from_groups,
)

__all__ = [
    "DragReconciler",
    "DragSource",
    "DropTarget",
    "Membership",
    "SelectionOperations",
    "SelectionSnapshot",
    "SelectionStore",
    "parse_source",
    "parse_target",
    "snapshot_from_groups",
]

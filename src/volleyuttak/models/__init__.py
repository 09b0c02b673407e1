"""Shared domain models."""

from .player import Player

__all__ = ["Player"]

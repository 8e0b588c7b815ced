"""UI utilities (roster collection, validators)."""

from .roster import RosterBuilder

__all__ = ["RosterBuilder"]

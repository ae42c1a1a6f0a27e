"""
Reference-counted occupancy for groups of trigger volumes.

A curve is covered by many small trigger volumes. Objects moving along
it enter and leave several of them, but callers only care about two
transitions: nothing inside → something inside, and back. Each owner
keeps its own tracker, so separate curves never share state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable

logger = logging.getLogger(__name__)

OccupancyCallback = Callable[[Hashable], None]


class OccupancyTracker:
    """Tracks which objects are inside a group of volumes."""

    def __init__(
        self,
        name: str = "",
        on_enter: OccupancyCallback | None = None,
        on_exit: OccupancyCallback | None = None,
    ) -> None:
        self.name = name
        self._inside: set[Hashable] = set()
        self._on_enter = on_enter
        self._on_exit = on_exit

    @property
    def occupied(self) -> bool:
        return bool(self._inside)

    @property
    def count(self) -> int:
        return len(self._inside)

    def __contains__(self, obj: Hashable) -> bool:
        return obj in self._inside

    def enter(self, obj: Hashable) -> bool:
        """Record ``obj`` as inside. True on the empty → occupied transition."""
        was_empty = not self._inside
        self._inside.add(obj)
        if was_empty:
            logger.debug("%s: first occupant %r entered", self.name or "tracker", obj)
            if self._on_enter is not None:
                self._on_enter(obj)
        return was_empty

    def exit(self, obj: Hashable) -> bool:
        """Record ``obj`` as gone. True on the occupied → empty transition."""
        if obj not in self._inside:
            return False
        self._inside.discard(obj)
        if self._inside:
            return False
        logger.debug("%s: last occupant %r left", self.name or "tracker", obj)
        if self._on_exit is not None:
            self._on_exit(obj)
        return True

    def clear(self) -> None:
        """Forget every occupant without firing callbacks."""
        self._inside.clear()

"""
Self-Modification Tracker.

Remembers which files the editor wrote itself, so the notification for its
own save is not mistaken for an external change. The OS notification for a
save may arrive on the same tick as the save or on a later one, so flagged
paths live for two generations before they are forgotten.
"""

import logging
from typing import Set

from .paths import normalize_path

logger = logging.getLogger(__name__)


class SelfModificationTracker:
    """Two-generation set of paths recently written by the editor itself."""

    def __init__(self):
        self._current: Set[str] = set()
        self._previous: Set[str] = set()

    def flag_modified(self, path: str) -> None:
        """
        Mark a path as just written by the editor.

        A fresh flag restarts the aging window for that path.
        """
        if not path:
            return
        full_path = normalize_path(path)
        self._current.add(full_path)
        self._previous.discard(full_path)
        logger.debug(f"Flagged editor-modified path: {full_path}")

    def is_modified(self, path: str) -> bool:
        """Check whether a path is currently flagged as editor-modified."""
        if not path:
            return False
        return normalize_path(path) in self._current

    def age(self) -> None:
        """
        Advance one generation.

        Paths that were already known at the last call are dropped; the
        ones known right now are remembered for the next call.
        """
        self._current.difference_update(self._previous)
        self._previous = set(self._current)

    def clear(self) -> None:
        self._current.clear()
        self._previous.clear()

    @property
    def flagged_paths(self) -> Set[str]:
        return set(self._current)

    def __len__(self) -> int:
        return len(self._current)

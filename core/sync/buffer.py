"""
Per-root event buffer.

Collects file events between two drain cycles. The buffer keeps at most one
event per (path, kind) pair: a newer observation replaces the older one and
moves to the end, so rapid repeats of the same change collapse.
"""

import logging
from typing import Callable, Iterator, List, Optional

from watchdog.events import FileSystemEvent as WatchdogEvent

from .events import ChangeKind, FileEvent, translate_watchdog_event

logger = logging.getLogger(__name__)


class EventBuffer:
    """
    Ordered, deduplicated queue of pending file events for one watched root.

    Only ever touched from the owner thread; watchdog callbacks are
    marshaled there before calling ``push``.
    """

    def __init__(self, name: str, is_visible: Optional[Callable[[str], bool]] = None):
        """
        Initialize the buffer.

        Args:
            name: Label used in log output (e.g. "data", "source")
            is_visible: Path visibility predicate; invisible paths are ignored
        """
        self.name = name
        self.is_visible = is_visible or (lambda path: True)
        self._events: List[FileEvent] = []
        self.total_pushed = 0
        self.total_dropped = 0

    def push(self, event: FileEvent) -> bool:
        """
        Add an event to the buffer.

        Returns:
            True if the event was buffered, False if its path is not visible
        """
        if event.kind == ChangeKind.RENAMED:
            event = self._fold_hidden_rename(event)

        if not self.is_visible(event.path):
            self.total_dropped += 1
            return False

        self._events = [
            existing for existing in self._events
            if not (existing.path == event.path and existing.kind == event.kind)
        ]
        self._events.append(event)
        self.total_pushed += 1
        logger.debug(f"[{self.name}] buffered {event} (pending: {len(self._events)})")
        return True

    def _fold_hidden_rename(self, event: FileEvent) -> FileEvent:
        # A hidden temp file swapped onto a visible path replaces its content
        # in place; moving a visible file to a hidden path removes it
        if not self.is_visible(event.old_path):
            return event.with_changes(kind=ChangeKind.CHANGED, old_path=event.path)
        if not self.is_visible(event.path):
            return event.with_changes(kind=ChangeKind.DELETED, path=event.old_path)
        return event

    def push_raw(self, raw_event: WatchdogEvent, is_directory: Optional[bool] = None) -> bool:
        """Translate a watchdog event and buffer it."""
        event = translate_watchdog_event(raw_event, is_directory)
        if event is None:
            return False
        return self.push(event)

    def drain(self) -> List[FileEvent]:
        """Hand out all pending events and start over with an empty buffer."""
        events = self._events
        self._events = []
        return events

    def peek(self) -> List[FileEvent]:
        """Return a copy of the pending events without clearing them."""
        return list(self._events)

    def clear(self) -> int:
        """Drop all pending events and return how many were dropped."""
        count = len(self._events)
        self._events = []
        return count

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[FileEvent]:
        return iter(list(self._events))

    def __bool__(self) -> bool:
        return bool(self._events)

"""
Source Tree Processing.

Source files that were modified outside the editor are scheduled for
reimport. The schedule is not handled on the idle tick: external tools tend
to keep their files locked for a moment after writing, so reimport waits
until the editor window regains focus.
"""

import logging
import os
from typing import List, Optional, Set

from .aggregator import aggregate_events
from .buffer import EventBuffer
from .events import ChangeKind
from .filters import filter_events
from .interfaces import Reimporter
from .paths import is_path_located_in, normalize_path
from .tracker import SelfModificationTracker

logger = logging.getLogger(__name__)


class SourceTreeProcessor:
    """Turns source tree events into a batched reimport schedule."""

    def __init__(
        self,
        media_root: str,
        reimporter: Reimporter,
        tracker: Optional[SelfModificationTracker] = None
    ):
        """
        Initialize the processor.

        Args:
            media_root: Only files below this directory are reimported
            reimporter: Receives the batched list of files to reimport
            tracker: Editor-modified paths, used when filtering events
        """
        self.media_root = normalize_path(media_root)
        self.reimporter = reimporter
        self.tracker = tracker
        self._schedule: Set[str] = set()
        self.total_reimported = 0

    @property
    def scheduled(self) -> Set[str]:
        return set(self._schedule)

    def process(self, buffer: EventBuffer) -> int:
        """
        Drain a source tree buffer into the reimport schedule.

        Returns:
            Number of newly scheduled files
        """
        events = buffer.drain()
        if not events:
            return 0

        aggregate_events(events)
        filter_events(events, self.tracker)

        scheduled = 0
        for event in events:
            if event.kind != ChangeKind.CHANGED:
                continue
            if not os.path.isfile(event.path):
                continue
            if not is_path_located_in(event.path, self.media_root):
                continue
            if event.path not in self._schedule:
                self._schedule.add(event.path)
                scheduled += 1
                logger.debug(f"Scheduled source file for reimport: {event.path}")
        return scheduled

    def drain_reimport_schedule(self) -> List[str]:
        """
        Reimport every scheduled file that still exists.

        The schedule is cleared unconditionally, including files that
        vanished in the meantime.

        Returns:
            The files handed to the reimporter
        """
        if not self._schedule:
            return []

        existing = sorted(path for path in self._schedule if os.path.isfile(path))
        missing = len(self._schedule) - len(existing)
        self._schedule.clear()

        if missing:
            logger.debug(f"Dropped {missing} vanished files from reimport schedule")
        if not existing:
            return []

        logger.info(f"Reimporting {len(existing)} modified source files")
        self.reimporter.reimport(existing)
        self.total_reimported += len(existing)
        return existing

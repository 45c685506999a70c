"""
File Event Filtering.

Drops events that carry no information after aggregation: renames onto the
same path, renames of children that a directory rename already covers, and
changes the editor made itself.
"""

import logging
from typing import List, Optional

from .events import ChangeKind, FileEvent
from .paths import is_path_located_in, paths_equal, rebase_path
from .tracker import SelfModificationTracker

logger = logging.getLogger(__name__)


def _is_covered_by_directory_rename(event: FileEvent, directory_renames: List[FileEvent]) -> bool:
    # watchdog reports a moved directory's children as moves of their own
    for directory in directory_renames:
        if not is_path_located_in(event.old_path, directory.old_path):
            continue
        if paths_equal(event.path, rebase_path(event.old_path, directory.old_path, directory.path)):
            return True
    return False


def filter_events(
    events: List[FileEvent],
    tracker: Optional[SelfModificationTracker] = None
) -> List[FileEvent]:
    """
    Remove pointless and self-inflicted events in place.

    Args:
        events: Aggregated events of one drain cycle
        tracker: Editor-modified path set; CHANGED events on flagged paths
            are dropped

    Returns:
        The same list, filtered
    """
    directory_renames = [
        event for event in events
        if event.kind == ChangeKind.RENAMED and event.is_directory and not event.is_noop_rename
    ]

    kept: List[FileEvent] = []
    for event in events:
        if event.is_noop_rename:
            logger.debug(f"Discarding no-op rename: {event}")
            continue
        if (event.kind == ChangeKind.RENAMED and
                _is_covered_by_directory_rename(event, directory_renames)):
            logger.debug(f"Discarding rename covered by its directory: {event}")
            continue
        if (event.kind == ChangeKind.CHANGED and
                tracker is not None and
                tracker.is_modified(event.path)):
            logger.debug(f"Discarding editor-made change: {event}")
            continue
        kept.append(event)

    events[:] = kept
    return events

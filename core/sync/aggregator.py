"""
File Event Aggregation.

Merges related raw events into minimal semantic events. Editors and
version-control tools rarely write a file in one step: they rename through
temporary files, delete and recreate, or move in several hops. The rules
below fold those patterns back into the operation that actually happened,
so the latest event of an aggregate chain defines the event order.
"""

import logging
from typing import List, Optional, Tuple

from .events import ChangeKind, FileEvent

logger = logging.getLogger(__name__)

# (replacement for current, synthesized event to insert before it)
MergeResult = Tuple[FileEvent, Optional[FileEvent]]


def _merge_rename_chain(current: FileEvent, prev: FileEvent) -> Optional[MergeResult]:
    # A -> B followed by B -> C becomes A -> C
    if (current.kind == ChangeKind.RENAMED and
            prev.kind == ChangeKind.RENAMED and
            current.old_file_name == prev.file_name):
        return current.with_changes(old_path=prev.old_path), None
    return None


def _merge_delete_then_rename(current: FileEvent, prev: FileEvent) -> Optional[MergeResult]:
    # "delete A, rename tmp to A" is how some tools save files in place
    if (current.kind == ChangeKind.RENAMED and
            prev.kind == ChangeKind.DELETED and
            current.path == prev.path):
        rename = FileEvent.renamed(prev.path, current.path, is_directory=current.is_directory)
        change = current.with_changes(kind=ChangeKind.CHANGED, old_path=current.path)
        return change, rename
    return None


def _merge_delete_then_create(current: FileEvent, prev: FileEvent) -> Optional[MergeResult]:
    # "delete Foo/A, create Bar/A" is a move
    if (current.kind == ChangeKind.CREATED and
            prev.kind == ChangeKind.DELETED and
            current.file_name == prev.file_name and
            current.path != prev.path):
        return current.with_changes(kind=ChangeKind.RENAMED, old_path=prev.path), None
    return None


MERGE_RULES = (
    _merge_rename_chain,
    _merge_delete_then_rename,
    _merge_delete_then_create,
)


def _try_merge(current: FileEvent, prev: FileEvent) -> Optional[MergeResult]:
    for rule in MERGE_RULES:
        result = rule(current, prev)
        if result is not None:
            return result
    return None


def _aggregate_pass(events: List[FileEvent]) -> int:
    """Run one newest-to-oldest pass; returns the number of merges applied."""
    merges = 0
    current_index = len(events) - 1

    while current_index > 0:
        current = events[current_index]
        prev_index = current_index - 1

        while prev_index >= 0:
            result = _try_merge(current, events[prev_index])
            if result is None:
                prev_index -= 1
                continue

            current, synthesized = result
            logger.debug(f"Aggregated {events[prev_index]} into {current}")

            # The merged previous event is always located before current
            del events[prev_index]
            current_index -= 1

            if synthesized is not None:
                events.insert(current_index, synthesized)
                current_index += 1

            events[current_index] = current
            merges += 1

            # Restart the inner scan against the shrunk list
            prev_index = current_index - 1

        current_index -= 1

    return merges


def aggregate_events(events: List[FileEvent]) -> List[FileEvent]:
    """
    Merge related events in place.

    Passes are repeated until no rule applies anymore, which makes the
    aggregation idempotent: feeding its output back in changes nothing.
    Every merge either shrinks the list or turns a deletion into a change,
    so the loop terminates.

    Args:
        events: Events of one drain cycle, in arrival order

    Returns:
        The same list, aggregated
    """
    total = 0
    while True:
        merges = _aggregate_pass(events)
        if merges == 0:
            break
        total += merges

    if total:
        logger.debug(f"Aggregation merged {total} events, {len(events)} remaining")
    return events

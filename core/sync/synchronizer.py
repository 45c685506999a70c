"""
Data Tree Synchronizer.

Applies aggregated data tree events to the content cache and the
source/media tree, collects accepted renames for global reference
rewriting and raises the editor-wide resource notifications.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Set

from .errors import ContentError
from .events import ChangeKind, FileEvent
from .interfaces import ContentCache, EditorState, RecycleBin, ResourceTypes, UserInterface
from .mirror import SourceMediaMirror
from .paths import is_directory_empty, paths_equal
from .signals import (
    BeginGlobalRenameEventArgs,
    EventHub,
    ResourceEventArgs,
    ResourceRenamedEventArgs,
    SignalKind,
)

logger = logging.getLogger(__name__)


@dataclass
class SyncCycleResult:
    """Outcome of synchronizing one drain cycle"""
    rename_batch: List[FileEvent] = field(default_factory=list)
    recycled_paths: Set[str] = field(default_factory=set)
    evicted: int = 0
    reloaded: int = 0
    failed: int = 0


class DataTreeSynchronizer:
    """
    Applies semantic data tree events to in-memory and on-disk state.

    Resources changed by someone else are evicted from the cache; when the
    change hits the active document or a document with unsaved edits, the
    user decides between reloading and keeping the editor's version.
    """

    def __init__(
        self,
        cache: ContentCache,
        types: ResourceTypes,
        editor: EditorState,
        ui: UserInterface,
        mirror: SourceMediaMirror,
        recycle_bin: RecycleBin,
        hub: EventHub,
        report_directory_changes: bool = False
    ):
        self.cache = cache
        self.types = types
        self.editor = editor
        self.ui = ui
        self.mirror = mirror
        self.recycle_bin = recycle_bin
        self.hub = hub
        self.report_directory_changes = report_directory_changes

    def is_relevant(self, event: FileEvent) -> bool:
        """Only resource files and directories are synchronized"""
        return event.is_directory or self.types.is_resource_file(event.path)

    def process(self, events: List[FileEvent]) -> SyncCycleResult:
        """
        Handle every event of one drain cycle.

        Returns:
            Cycle result; its rename batch is meant for the global rename
            propagator and must not be processed inline
        """
        result = SyncCycleResult()
        delete_schedule: Set[str] = set()

        for event in events:
            try:
                if event.kind == ChangeKind.CHANGED:
                    self._handle_change(event, result)
                elif event.kind == ChangeKind.DELETED:
                    self._handle_delete(event, delete_schedule, result)
                elif event.kind == ChangeKind.RENAMED:
                    self._handle_rename(event, result)
            except Exception as e:
                result.failed += 1
                logger.error(f"Error synchronizing {event}: {e}")

        # Send scheduled source / media files to the recycle bin at once
        if delete_schedule:
            try:
                self.mirror.recycle(delete_schedule, self.recycle_bin)
                result.recycled_paths = delete_schedule
            except Exception as e:
                result.failed += 1
                logger.error(f"Error recycling source/media files: {e}")

        return result

    def _handle_change(self, event: FileEvent, result: SyncCycleResult) -> None:
        if event.is_directory or not self.types.is_resource_file(event.path):
            return
        if not self.cache.has(event.path):
            return

        active_path = self.editor.active_document_path
        is_active = bool(active_path) and paths_equal(active_path, event.path)

        if not (is_active or self.editor.is_unsaved(event.path)):
            self.cache.remove(event.path)
            result.evicted += 1
            logger.info(f"Unloaded externally modified resource: {event.path}")
            return

        if not self.ui.confirm_reload(event.path):
            logger.info(f"Keeping editor version of externally modified resource: {event.path}")
            return

        self.cache.remove(event.path)
        result.evicted += 1
        if not is_active:
            return

        try:
            document = self.cache.load(event.path, activate=True)
        except ContentError as e:
            logger.error(f"Unable to reload active document {event.path}: {e}")
            return
        self.editor.activate_document(document)
        result.reloaded += 1
        logger.info(f"Reloaded active document: {event.path}")

    def _handle_delete(self, event: FileEvent, schedule: Set[str], result: SyncCycleResult) -> None:
        if not self.is_relevant(event):
            return

        # Keep the source/media tree in sync with the data tree
        self.mirror.collect_deletions(event, schedule)

        if event.is_directory:
            result.evicted += self.cache.remove_tree(event.path)
        elif self.cache.remove(event.path):
            result.evicted += 1

    def _handle_rename(self, event: FileEvent, result: SyncCycleResult) -> None:
        if not self.is_relevant(event):
            return

        # Source files have to be determined before the cache knows the new path
        old_source_paths = self.mirror.pre_move_paths(event)

        if event.is_directory:
            self.cache.rename_tree(event.old_path, event.path)
        else:
            self.cache.rename(event.old_path, event.path)

        # Nothing inside an empty directory can hold stale references
        skipped = event.is_directory and is_directory_empty(event.path)
        if not skipped:
            args = BeginGlobalRenameEventArgs(
                path=event.path,
                old_path=event.old_path,
                is_directory=event.is_directory,
            )
            self.hub.emit(SignalKind.BEGIN_GLOBAL_RENAME, args)
            skipped = args.cancel
            if skipped:
                logger.info(f"Global rename cancelled by subscriber: {event}")

        if skipped:
            return

        result.rename_batch.append(event)
        self.mirror.mirror_rename(event, old_source_paths)

    def raise_signals(self, events: List[FileEvent]) -> int:
        """
        Fire editor-wide notifications for resource files and directories.

        Returns:
            Number of notifications raised
        """
        raised = 0
        for event in events:
            if not self.is_relevant(event):
                continue

            if event.kind == ChangeKind.RENAMED:
                self.hub.emit(
                    SignalKind.RESOURCE_RENAMED,
                    ResourceRenamedEventArgs(
                        path=event.path,
                        old_path=event.old_path,
                        is_directory=event.is_directory,
                    ),
                )
                raised += 1
                continue

            if event.kind == ChangeKind.CHANGED and event.is_directory and not self.report_directory_changes:
                continue

            kind = _SIGNAL_FOR_KIND[event.kind]
            self.hub.emit(kind, ResourceEventArgs(path=event.path, is_directory=event.is_directory))
            raised += 1

        return raised


_SIGNAL_FOR_KIND = {
    ChangeKind.CREATED: SignalKind.RESOURCE_CREATED,
    ChangeKind.CHANGED: SignalKind.RESOURCE_MODIFIED,
    ChangeKind.DELETED: SignalKind.RESOURCE_DELETED,
}

"""
Source / Media Mirroring.

Keeps the source/media tree organized like the data tree: when a resource
or a data directory is deleted or moved, the source files it was imported
from follow it.
"""

import logging
import os
import shutil
from typing import Collection, List, Set

from .errors import TransientIOError
from .events import FileEvent
from .interfaces import AssetSourceLocator, RecycleBin
from .paths import copy_directory, delete_empty_directory, is_path_located_in, normalize_path, paths_equal, rebase_path

logger = logging.getLogger(__name__)


class SourceMediaMirror:
    """
    Mirrors data tree deletions and renames into the source/media tree.

    File moves are synchronous and run on the owner thread.
    """

    def __init__(self, data_root: str, media_root: str, locator: AssetSourceLocator):
        """
        Initialize the mirror.

        Args:
            data_root: Root of the managed data tree
            media_root: Root of the source/media tree mirroring it
            locator: Computes the source files that belong to a resource
        """
        self.data_root = normalize_path(data_root)
        self.media_root = normalize_path(media_root)
        self.locator = locator
        self.files_moved = 0
        self.files_copied = 0

    def media_path_for(self, data_path: str) -> str:
        """Rebase a data tree path onto the source/media root."""
        return rebase_path(data_path, self.data_root, self.media_root)

    def collect_deletions(self, event: FileEvent, schedule: Set[str]) -> None:
        """
        Add the source paths that should be deleted alongside a resource.

        Args:
            event: A DELETED event for a resource file or directory
            schedule: Set receiving the existing source paths
        """
        if not event.is_directory:
            for source_path in self.locator.source_files(event.path):
                if os.path.isfile(source_path):
                    schedule.add(source_path)
            return

        if not is_path_located_in(event.path, self.data_root):
            return
        media_path = self.media_path_for(event.path)
        if os.path.isdir(media_path):
            schedule.add(media_path)

    def recycle(self, paths: Collection[str], recycle_bin: RecycleBin) -> None:
        """Send scheduled source paths to the recycle bin and prune emptied directories."""
        if not paths:
            return

        affected_directories = {os.path.dirname(path) for path in paths}

        logger.info(f"Recycling {len(paths)} source/media paths")
        recycle_bin.send_to_recycle(sorted(paths))

        for directory in affected_directories:
            self._prune(directory)

    def pre_move_paths(self, event: FileEvent) -> List[str]:
        """
        Source files of a renamed resource, computed from its old path.

        Must be called before the content cache learns about the rename.
        """
        if event.is_directory:
            return []
        return list(self.locator.source_files(event.old_path))

    def mirror_rename(self, event: FileEvent, old_source_paths: List[str]) -> None:
        """
        Move source files or directories to follow a data tree rename.

        Args:
            event: The accepted RENAMED event
            old_source_paths: Result of ``pre_move_paths`` for the event
        """
        if not event.is_directory:
            new_source_paths = self.locator.source_files(event.path)
            for index, old_path in enumerate(old_source_paths):
                new_path = new_source_paths[index] if index < len(new_source_paths) else old_path
                if paths_equal(old_path, new_path):
                    continue
                if os.path.isfile(old_path) and not os.path.exists(new_path):
                    self._move(old_path, new_path, is_directory=False)
            return

        if not (is_path_located_in(event.old_path, self.data_root) and
                is_path_located_in(event.path, self.data_root)):
            return

        old_media_path = self.media_path_for(event.old_path)
        new_media_path = self.media_path_for(event.path)
        if paths_equal(old_media_path, new_media_path):
            return
        if os.path.isdir(old_media_path) and not os.path.exists(new_media_path):
            self._move(old_media_path, new_media_path, is_directory=True)

    def _move(self, old_path: str, new_path: str, is_directory: bool) -> None:
        os.makedirs(os.path.dirname(new_path), exist_ok=True)
        try:
            self._atomic_move(old_path, new_path)
            self.files_moved += 1
            logger.info(f"Moved source media '{old_path}' to '{new_path}'")
        except TransientIOError as e:
            logger.warning(f"{e}. Copying instead.")
            try:
                if is_directory:
                    copy_directory(old_path, new_path)
                else:
                    shutil.copy2(old_path, new_path)
                self.files_copied += 1
            except OSError as copy_error:
                logger.error(f"Unable to copy source media '{old_path}' to '{new_path}': {copy_error}")
                return
        self._prune(os.path.dirname(old_path))

    def _atomic_move(self, old_path: str, new_path: str) -> None:
        try:
            os.rename(old_path, new_path)
        except OSError as e:
            raise TransientIOError(old_path, new_path, str(e)) from e

    def _prune(self, directory: str) -> None:
        # Never prune the media root itself or anything outside it
        if is_path_located_in(directory, self.media_root):
            delete_empty_directory(directory, recursive=True)

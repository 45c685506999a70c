"""
Global Rename Propagator.

After resources or directories were renamed outside the editor, every
reference to their old paths is stale. The propagator rewrites them across
the persisted settings, the active document and every resource file in the
data tree. It runs as a cooperative task: each step is small, reports its
progress and hands control back to the host.
"""

import logging
from typing import Any, Iterator, List, Optional, Sequence, Type

from .errors import ContentError, TypeResolutionFailure
from .events import FileEvent
from .interfaces import ContentCache, EditorState, ResourceTypes, SettingsStore, TaskProgress, UserInterface
from .paths import is_path_located_in
from .references import DEFAULT_CONTENT_PREFIX, iter_references

logger = logging.getLogger(__name__)

TASK_CAPTION = "Renaming content references"


def rewrite_references(
    obj: Any,
    renames: Sequence[FileEvent],
    default_content_prefix: str = DEFAULT_CONTENT_PREFIX
) -> int:
    """
    Rewrite every reference in an object graph that points at a renamed path.

    File renames match a reference path exactly; directory renames match
    any reference located inside the old directory and keep the remainder
    of the path. The first matching rename wins.

    Returns:
        Number of references changed
    """
    counter = 0
    for reference in iter_references(obj):
        if reference.explicit_null:
            continue
        if not reference.path:
            continue
        if reference.is_default_content(default_content_prefix):
            continue

        for rename in renames:
            if not rename.is_directory and reference.path == rename.old_path:
                reference.path = rename.path
                counter += 1
                break
            if rename.is_directory and is_path_located_in(reference.path, rename.old_path):
                reference.path = rename.path + reference.path[len(rename.old_path):]
                counter += 1
                break

    return counter


class GlobalRenamePropagator:
    """
    Rewrites stale references after a batch of renames.

    ``steps`` is a generator; a task host drives it and may interleave other
    work between steps. A single resource is loaded, rewritten and saved
    within one step, so interrupting the task never leaves a half-written
    file behind.
    """

    # Progress fractions of the settings pass and the content scan
    SETTINGS_SHARE = 0.1
    CONTENT_SHARE = 0.9

    def __init__(
        self,
        cache: ContentCache,
        types: ResourceTypes,
        editor: EditorState,
        settings: SettingsStore,
        ui: UserInterface,
        default_content_prefix: str = DEFAULT_CONTENT_PREFIX,
        escalate_unknown_types: bool = False
    ):
        """
        Initialize the propagator.

        Args:
            cache: Content cache (resident lookup, uninitialized loads, saving)
            types: Resource type recognition for the early-out optimization
            editor: Active document and sandbox queries
            settings: Application / user settings store
            ui: Receives change notifications for live objects
            default_content_prefix: Paths with this prefix are never rewritten
            escalate_unknown_types: Load and inspect files whose type cannot be
                determined from their name instead of skipping them
        """
        self.cache = cache
        self.types = types
        self.editor = editor
        self.settings = settings
        self.ui = ui
        self.default_content_prefix = default_content_prefix
        self.escalate_unknown_types = escalate_unknown_types

        self.progress = 0.0
        self.label = ""
        self.references_changed = 0
        self.files_saved = 0
        self.files_skipped = 0

    def _step(self, label: Optional[str] = None, advance: float = 0.0) -> TaskProgress:
        if label is not None:
            self.label = label
        self.progress = min(1.0, self.progress + advance)
        return TaskProgress(self.progress, self.label)

    def _rewrite(self, obj: Any, renames: Sequence[FileEvent]) -> int:
        counter = rewrite_references(obj, renames, self.default_content_prefix)
        self.references_changed += counter
        return counter

    def steps(self, renames: List[FileEvent]) -> Iterator[TaskProgress]:
        """
        Generator performing the propagation step by step.

        Args:
            renames: Rename batch of one drain cycle
        """
        self.progress = 0.0
        self.references_changed = 0
        self.files_saved = 0
        self.files_skipped = 0

        yield from self._rename_in_settings(renames)
        yield from self._rename_in_active_document(renames)
        yield from self._rename_in_content(renames)

        yield self._step("Done", 1.0)
        logger.info(
            f"Rename propagation finished: {self.references_changed} references changed, "
            f"{self.files_saved} files saved, {self.files_skipped} files skipped"
        )

    def _rename_in_settings(self, renames: List[FileEvent]) -> Iterator[TaskProgress]:
        yield self._step("Application data")
        holders = self.settings.reload()
        yield self._step(advance=self.SETTINGS_SHARE * 0.4)

        for holder in holders:
            self._rewrite(holder, renames)
        yield self._step(advance=self.SETTINGS_SHARE * 0.2)

        self.settings.save()
        yield self._step(advance=self.SETTINGS_SHARE * 0.4)

    def _rename_in_active_document(self, renames: List[FileEvent]) -> Iterator[TaskProgress]:
        path = self.editor.active_document_path

        if self.editor.is_sandbox_active():
            if not path:
                return
            # Sandbox edits are discarded later, so work on the persisted file
            yield self._step("Current document")
            try:
                document = self.cache.load(path, activate=False)
            except ContentError as e:
                logger.warning(f"Unable to load persisted active document {path}: {e}")
                return
            if self._rewrite(document, renames) > 0:
                self.cache.save(document, path)
                self.files_saved += 1

        elif self.editor.is_active_document_unsaved():
            document = self.editor.active_document
            if document is None:
                return
            yield self._step("Current document")
            if self._rewrite(document, renames) > 0:
                self.ui.notify_changed([document])

    def _renamed_types(self, renames: List[FileEvent]) -> Optional[List[Type]]:
        # Directories may contain anything, so no early-out is possible
        if any(rename.is_directory for rename in renames):
            return None
        types: List[Type] = []
        for rename in renames:
            res_type = self.types.type_from_file_name(rename.path)
            if res_type is None:
                return None
            if res_type not in types:
                types.append(res_type)
        return types

    def _can_skip(self, path: str, target_types: List[Type]) -> bool:
        res_type = self.types.type_from_file_name(path)
        if res_type is None:
            raise TypeResolutionFailure(path)
        return not any(self.types.can_reference(res_type, target) for target in target_types)

    def _rename_in_content(self, renames: List[FileEvent]) -> Iterator[TaskProgress]:
        target_types = self._renamed_types(renames)
        files = sorted(self.cache.list_all_on_disk())
        if not files:
            return

        share = self.CONTENT_SHARE / len(files)
        modified: List[Any] = []

        for path in files:
            # Early-out for resources that cannot reference any renamed type
            if target_types is not None:
                try:
                    if self._can_skip(path, target_types):
                        self.progress += share
                        continue
                except TypeResolutionFailure as e:
                    if not self.escalate_unknown_types:
                        logger.warning(f"{e} using its file name only. Skipping it during rename.")
                        self.files_skipped += 1
                        self.progress += share
                        continue
                    logger.warning(f"{e} using its file name only. Inspecting its content instead.")

            yield self._step(path)

            # Residency is checked on visit; the cache may change between steps
            resource = self.cache.get(path)
            if resource is not None:
                if self._rewrite(resource, renames) > 0:
                    modified.append(resource)
            else:
                self._rewrite_file(path, renames)

            yield self._step(advance=share)

        if modified:
            self.ui.notify_changed(modified)

    def _rewrite_file(self, path: str, renames: List[FileEvent]) -> None:
        # Uninitialized load: never made globally available, never cached
        try:
            resource = self.cache.load(path, activate=False)
        except ContentError as e:
            logger.warning(f"Unable to load {path} during rename: {e}")
            self.files_skipped += 1
            return

        if self._rewrite(resource, renames) > 0:
            self.cache.save(resource, path)
            self.files_saved += 1

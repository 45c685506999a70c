"""
Collaborator interfaces consumed by the synchronization engine.

The engine owns event handling only. Content caching, resource typing,
source file lookup, recycling, reimport, editor state, user interaction
and long-running task hosting are provided by the host application through
these abstract interfaces. ``core.content`` ships implementations backed by
JSON resource files.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Set, Type


class ContentCache(ABC):
    """In-memory cache of loaded resources, keyed by absolute path."""

    @abstractmethod
    def has(self, path: str) -> bool:
        """Return True if the resource at ``path`` is currently loaded"""
        pass

    @abstractmethod
    def get(self, path: str) -> Optional[Any]:
        """Return the loaded resource at ``path`` without loading it"""
        pass

    @abstractmethod
    def remove(self, path: str) -> bool:
        """Unload a single resource"""
        pass

    @abstractmethod
    def remove_tree(self, path: str) -> int:
        """Unload every resource located in a directory"""
        pass

    @abstractmethod
    def rename(self, old_path: str, new_path: str) -> bool:
        """Re-key a loaded resource after its file was renamed"""
        pass

    @abstractmethod
    def rename_tree(self, old_path: str, new_path: str) -> int:
        """Re-key every loaded resource in a renamed directory"""
        pass

    @abstractmethod
    def load(self, path: str, activate: bool = True) -> Any:
        """
        Load a resource from disk.

        With ``activate`` the resource is initialized and becomes the cached
        instance for its path. Without it a detached, uninitialized instance
        is returned and the cache is left untouched.

        Raises:
            ContentNotFoundError: the file does not exist
            ContentParseError: the file could not be deserialized
        """
        pass

    @abstractmethod
    def save(self, resource: Any, path: Optional[str] = None) -> None:
        """Write a resource to disk (to ``path`` or its own path)"""
        pass

    @abstractmethod
    def list_loaded(self) -> Set[str]:
        """Paths of all loaded resources"""
        pass

    @abstractmethod
    def list_all_on_disk(self) -> Set[str]:
        """Paths of all resource files in the data tree"""
        pass


class ResourceTypes(ABC):
    """Resource file recognition and type compatibility."""

    @abstractmethod
    def is_resource_file(self, path: str) -> bool:
        """Return True if the path names an engine-managed resource file"""
        pass

    @abstractmethod
    def type_from_file_name(self, path: str) -> Optional[Type]:
        """Determine a resource type from the file name alone, or None"""
        pass

    @abstractmethod
    def can_reference(self, holder_type: Type, target_type: Type) -> bool:
        """Return True if resources of ``holder_type`` may reference ``target_type``"""
        pass


class AssetSourceLocator(ABC):
    """Maps a resource path to its associated source / media files."""

    @abstractmethod
    def source_files(self, asset_path: str) -> List[str]:
        """
        Source files that belong to a resource.

        The result depends only on the resource path and type, so it can be
        computed for paths whose files do not exist yet.
        """
        pass


class RecycleBin(ABC):
    """Reversible deletion facility."""

    @abstractmethod
    def send_to_recycle(self, paths: Iterable[str]) -> None:
        pass


class Reimporter(ABC):
    """Reimports resources from changed source files."""

    @abstractmethod
    def reimport(self, paths: List[str]) -> None:
        pass


class EditorState(ABC):
    """Queries about the editor's working document and unsaved state."""

    @abstractmethod
    def is_unsaved(self, path: str) -> bool:
        """Return True if the resource at ``path`` has unsaved edits"""
        pass

    @property
    @abstractmethod
    def active_document_path(self) -> Optional[str]:
        pass

    @property
    @abstractmethod
    def active_document(self) -> Optional[Any]:
        pass

    @abstractmethod
    def is_active_document_unsaved(self) -> bool:
        """Return True if the active document has no persisted counterpart yet"""
        pass

    @abstractmethod
    def is_sandbox_active(self) -> bool:
        """Return True while edits to the active document are temporary"""
        pass

    @abstractmethod
    def activate_document(self, document: Any) -> None:
        """Make a (re)loaded document the active one"""
        pass


class SettingsStore(ABC):
    """Persisted application- and user-level configuration."""

    @abstractmethod
    def reload(self) -> Sequence[Any]:
        """Reload settings from disk and return the objects holding references"""
        pass

    @abstractmethod
    def save(self) -> None:
        pass


class UserInterface(ABC):
    """Interactive decisions and change notifications."""

    @abstractmethod
    def confirm_reload(self, path: str) -> bool:
        """Ask whether an externally changed document should be reloaded"""
        pass

    @abstractmethod
    def notify_changed(self, objects: List[Any]) -> None:
        """Tell the UI that properties of these objects changed"""
        pass


@dataclass(frozen=True)
class TaskProgress:
    """Progress snapshot reported by a cooperative task after each step"""
    fraction: float
    label: str


ProgressCallback = Callable[[float, str], None]
CompletionCallback = Callable[[Optional[BaseException]], None]


class TaskHost(ABC):
    """Runs cooperative, step-wise tasks while keeping the host responsive."""

    @abstractmethod
    def run(
        self,
        caption: str,
        steps: Iterator[TaskProgress],
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[CompletionCallback] = None
    ) -> None:
        """
        Drive a task to completion.

        Args:
            caption: Human-readable task title
            steps: Iterator yielding after each step
            on_progress: Called with (fraction, label) after each step
            on_complete: Called once with None, or the error that ended the task
        """
        pass

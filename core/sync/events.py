"""
File System Event Models.

Defines the normalized file event record shared by the buffer, aggregator,
filter and synchronizer, plus translation from raw watchdog notifications.
"""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent as WatchdogEvent,
)

from .paths import normalize_path

logger = logging.getLogger(__name__)


class ChangeKind(Enum):
    """Kinds of changes a file event can describe"""
    CREATED = "created"     # New file or directory
    CHANGED = "changed"     # Existing file written to
    DELETED = "deleted"     # File or directory removed
    RENAMED = "renamed"     # File or directory renamed / moved


class FileEvent(BaseModel):
    """
    A single normalized file system change.

    Events are immutable: aggregation produces modified copies via
    ``with_changes`` instead of mutating buffered events. Two events are
    equal (and hash equal) iff path, old path, directory flag and kind
    all match.
    """
    model_config = ConfigDict(frozen=True)

    path: str
    old_path: str = ""
    is_directory: bool = False
    kind: ChangeKind

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Ensure path is present"""
        if not v:
            raise ValueError('Event path must not be empty')
        return v

    @model_validator(mode='before')
    @classmethod
    def default_old_path(cls, data: Any) -> Any:
        """Non-rename events carry their own path as old path"""
        if isinstance(data, dict) and not data.get('old_path'):
            data = {**data, 'old_path': data.get('path', '')}
        return data

    @classmethod
    def created(cls, path: str, is_directory: bool = False) -> 'FileEvent':
        """Create a creation event"""
        return cls(path=path, is_directory=is_directory, kind=ChangeKind.CREATED)

    @classmethod
    def changed(cls, path: str, is_directory: bool = False) -> 'FileEvent':
        """Create a modification event"""
        return cls(path=path, is_directory=is_directory, kind=ChangeKind.CHANGED)

    @classmethod
    def deleted(cls, path: str, is_directory: bool = False) -> 'FileEvent':
        """Create a deletion event"""
        return cls(path=path, is_directory=is_directory, kind=ChangeKind.DELETED)

    @classmethod
    def renamed(cls, old_path: str, path: str, is_directory: bool = False) -> 'FileEvent':
        """Create a rename / move event"""
        return cls(path=path, old_path=old_path, is_directory=is_directory, kind=ChangeKind.RENAMED)

    def with_changes(self, **fields: Any) -> 'FileEvent':
        """Return a copy of this event with some fields replaced."""
        data = self.model_dump()
        data.update(fields)
        return FileEvent(**data)

    @property
    def file_name(self) -> str:
        """File name component of the current path"""
        return os.path.basename(self.path)

    @property
    def old_file_name(self) -> str:
        """File name component of the pre-change path"""
        return os.path.basename(self.old_path)

    @property
    def is_noop_rename(self) -> bool:
        """A rename whose source and destination are the same"""
        return self.kind == ChangeKind.RENAMED and self.old_path == self.path

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging"""
        return {
            "kind": self.kind.value,
            "path": self.path,
            "old_path": self.old_path,
            "is_directory": self.is_directory,
        }

    def __str__(self) -> str:
        """String representation for logging"""
        old_part = f" (from {self.old_path})" if self.kind == ChangeKind.RENAMED else ""
        return f"{self.kind.value.upper()} '{self.path}'{old_part}"


_WATCHDOG_KINDS = {
    EVENT_TYPE_CREATED: ChangeKind.CREATED,
    EVENT_TYPE_MODIFIED: ChangeKind.CHANGED,
    EVENT_TYPE_DELETED: ChangeKind.DELETED,
    EVENT_TYPE_MOVED: ChangeKind.RENAMED,
}


def _decode(path: Any) -> str:
    if isinstance(path, bytes):
        return os.fsdecode(path)
    return str(path)


def translate_watchdog_event(
    event: WatchdogEvent,
    is_directory: Optional[bool] = None
) -> Optional[FileEvent]:
    """
    Convert a watchdog event into a FileEvent.

    Args:
        event: Raw watchdog notification
        is_directory: Overrides the event's own directory flag when given

    Returns:
        FileEvent, or None for notification kinds the engine ignores
        (opened, closed, ...)
    """
    kind = _WATCHDOG_KINDS.get(event.event_type)
    if kind is None:
        logger.debug(f"Ignoring watchdog event type: {event.event_type}")
        return None

    directory = event.is_directory if is_directory is None else is_directory
    src_path = normalize_path(_decode(event.src_path))

    if kind == ChangeKind.RENAMED:
        dest_path = normalize_path(_decode(event.dest_path))
        return FileEvent.renamed(src_path, dest_path, is_directory=directory)

    return FileEvent(path=src_path, is_directory=directory, kind=kind)

"""
Editor-wide resource notifications.

Editor modules and plugins subscribe here to learn about resources that
were created, modified, deleted or renamed outside the editor, and may veto
the global reference rewrite of a rename before it starts.
"""

import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, DefaultDict, Dict, List

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class SignalKind(Enum):
    """Notifications raised by the engine"""
    RESOURCE_CREATED = "resource_created"
    RESOURCE_DELETED = "resource_deleted"
    RESOURCE_MODIFIED = "resource_modified"
    RESOURCE_RENAMED = "resource_renamed"
    BEGIN_GLOBAL_RENAME = "begin_global_rename"
    PLUGIN_BINARY_CHANGED = "plugin_binary_changed"


class ResourceEventArgs(BaseModel):
    """Payload of created / deleted / modified notifications"""
    path: str
    is_directory: bool = False


class ResourceRenamedEventArgs(ResourceEventArgs):
    """Payload of rename notifications"""
    old_path: str


class BeginGlobalRenameEventArgs(ResourceRenamedEventArgs):
    """
    Raised before a rename is queued for global reference rewriting.

    Handlers set ``cancel`` to keep references to the old path untouched.
    """
    cancel: bool = False


class PluginChangedEventArgs(BaseModel):
    """Payload of plugin binary notifications"""
    path: str


Handler = Callable[[Any], None]


class EventHub:
    """
    Explicit subscription registry for engine notifications.

    Handlers run synchronously on the owner thread in subscription order.
    A failing handler is logged and does not prevent later handlers from
    running.
    """

    def __init__(self):
        self._handlers: DefaultDict[SignalKind, List[Handler]] = defaultdict(list)
        self.emitted: Dict[SignalKind, int] = defaultdict(int)

    def subscribe(self, kind: SignalKind, handler: Handler) -> Callable[[], None]:
        """
        Register a handler for one notification kind.

        Returns:
            A callable that removes the subscription again
        """
        self._handlers[kind].append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(kind, handler)

        return unsubscribe

    def unsubscribe(self, kind: SignalKind, handler: Handler) -> None:
        handlers = self._handlers.get(kind, [])
        if handler in handlers:
            handlers.remove(handler)

    def has_subscribers(self, kind: SignalKind) -> bool:
        return bool(self._handlers.get(kind))

    def emit(self, kind: SignalKind, args: Any) -> None:
        """Deliver a notification to every subscriber of its kind."""
        self.emitted[kind] += 1
        for handler in list(self._handlers.get(kind, [])):
            try:
                handler(args)
            except Exception as e:
                logger.warning(f"Error in {kind.value} handler {handler!r}: {e}")

    def clear(self) -> None:
        self._handlers.clear()

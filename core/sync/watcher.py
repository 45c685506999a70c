"""
Project Tree Watcher.

Bridges watchdog's observer threads to the file event engine. Observer
threads never touch engine state: every notification is handed over to the
owner event loop with ``call_soon_threadsafe`` and buffered there.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from watchdog.events import FileSystemEventHandler, FileSystemEvent as WatchdogEvent
from watchdog.observers import Observer

from .engine import FileEventEngine

logger = logging.getLogger(__name__)


class TreeEventHandler(FileSystemEventHandler):
    """
    Watchdog event handler for one watched root.

    Runs on the observer thread and only schedules ``forward`` on the owner
    event loop.
    """

    def __init__(self, name: str, forward: Callable[[WatchdogEvent], Any]):
        """
        Initialize the event handler.

        Args:
            name: Root label used in log output
            forward: Engine intake method called on the owner loop
        """
        super().__init__()
        self.name = name
        self.forward = forward
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._event_loop: Optional[asyncio.AbstractEventLoop] = None
        self.events_forwarded = 0

    def set_event_loop(self, loop: Optional[asyncio.AbstractEventLoop]) -> None:
        """
        Set the event loop events are marshaled to.

        Args:
            loop: The owner event loop, or None to drop further events
        """
        self._event_loop = loop

    def on_any_event(self, event: WatchdogEvent) -> None:
        """
        Handle any file system event.

        Args:
            event: Watchdog file system event
        """
        loop = self._event_loop
        if loop is None or loop.is_closed():
            self.logger.debug(f"[{self.name}] No event loop available, dropping event: {event}")
            return

        try:
            loop.call_soon_threadsafe(self.forward, event)
            self.events_forwarded += 1
        except RuntimeError as e:
            # Event loop might be closing or closed
            if "closed" not in str(e).lower():
                self.logger.error(f"[{self.name}] Failed to schedule event on loop: {e}")


class ProjectTreeWatcher:
    """
    Watches the data tree, the source tree and the plugin directory of a
    project and feeds their notifications into a FileEventEngine.
    """

    def __init__(
        self,
        engine: FileEventEngine,
        data_root: Path,
        source_root: Path,
        plugin_root: Optional[Path] = None,
        shutdown_timeout_s: float = 5.0
    ):
        """
        Initialize the watcher.

        Args:
            engine: Engine receiving the notifications
            data_root: Managed data tree (required)
            source_root: Source tree (required)
            plugin_root: Plugin binary directory, watched when it exists
            shutdown_timeout_s: Observer join timeout on stop
        """
        self.engine = engine
        self.data_root = Path(data_root).resolve()
        self.source_root = Path(source_root).resolve()
        self.plugin_root = Path(plugin_root).resolve() if plugin_root else None
        self.shutdown_timeout_s = shutdown_timeout_s

        self.observer: Optional[Observer] = None
        self.handlers: List[TreeEventHandler] = []

        self._is_monitoring = False
        self._monitor_start_time: Optional[datetime] = None
        self._error_count = 0
        self._last_error: Optional[str] = None

    @property
    def is_monitoring(self) -> bool:
        return self._is_monitoring

    def _create_handlers(self) -> List[tuple]:
        roots = [
            (TreeEventHandler("data", self.engine.push_data_event), self.data_root),
            (TreeEventHandler("source", self.engine.push_source_event), self.source_root),
        ]
        if self.plugin_root is not None:
            if self.plugin_root.is_dir():
                roots.append((TreeEventHandler("plugins", self.engine.push_plugin_event), self.plugin_root))
            else:
                logger.info(f"Plugin directory {self.plugin_root} does not exist, not watching it")
        return roots

    async def start_monitoring(self) -> bool:
        """
        Start watching all roots.

        Returns:
            True if monitoring started successfully, False otherwise
        """
        if self._is_monitoring:
            logger.warning("Project tree monitoring is already active")
            return True

        try:
            for root in (self.data_root, self.source_root):
                if not root.exists():
                    raise FileNotFoundError(f"Watched directory does not exist: {root}")
                if not root.is_dir():
                    raise NotADirectoryError(f"Watched path is not a directory: {root}")

            loop = asyncio.get_running_loop()
            self.observer = Observer()
            self.handlers = []
            for handler, root in self._create_handlers():
                handler.set_event_loop(loop)
                self.observer.schedule(handler, str(root), recursive=True)
                self.handlers.append(handler)
                logger.debug(f"Scheduled {handler.name} watcher for {root}")

            self.observer.start()
            self._is_monitoring = True
            self._monitor_start_time = datetime.now()

            logger.info(f"Started monitoring {len(self.handlers)} directories")
            return True

        except Exception as e:
            error_msg = f"Failed to start project tree monitoring: {e}"
            logger.error(error_msg)
            self._last_error = error_msg
            self._error_count += 1
            self.observer = None
            self.handlers = []
            return False

    async def stop_monitoring(self) -> None:
        """Stop watching and release the observer thread."""
        if not self._is_monitoring:
            return
        self._is_monitoring = False

        # Prevent further hand-offs before the observer is gone
        for handler in self.handlers:
            handler.set_event_loop(None)

        if self.observer:
            try:
                self.observer.stop()
                self.observer.join(timeout=self.shutdown_timeout_s)
            except Exception as e:
                logger.warning(f"Error stopping observer: {e}")
            finally:
                self.observer = None

        duration = None
        if self._monitor_start_time:
            duration = datetime.now() - self._monitor_start_time
        logger.info(f"Stopped project tree monitoring (duration: {duration})")

    def get_status(self) -> Dict[str, Any]:
        """
        Get status information.

        Returns:
            Dictionary with status information
        """
        return {
            "is_monitoring": self._is_monitoring,
            "data_root": str(self.data_root),
            "source_root": str(self.source_root),
            "plugin_root": str(self.plugin_root) if self.plugin_root else None,
            "watched_roots": [handler.name for handler in self.handlers],
            "events_forwarded": {handler.name: handler.events_forwarded for handler in self.handlers},
            "error_count": self._error_count,
            "last_error": self._last_error,
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start_monitoring()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.stop_monitoring()

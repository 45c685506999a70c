"""
File Event Engine.

Central coordinator for keeping the content cache, cross-references and the
source/media tree consistent with changes made outside the editor. Raw
notifications are buffered per watched root and processed in drain cycles
on the owner event loop once the file system had a moment to settle.
"""

import asyncio
import fnmatch
import logging
import os
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional

from watchdog.events import EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, FileSystemEvent as WatchdogEvent

from core.models.config import EngineConfig, ProjectConfig
from .aggregator import aggregate_events
from .buffer import EventBuffer
from .events import FileEvent
from .filters import filter_events
from .interfaces import (
    AssetSourceLocator,
    ContentCache,
    EditorState,
    ProgressCallback,
    RecycleBin,
    Reimporter,
    ResourceTypes,
    SettingsStore,
    TaskHost,
    TaskProgress,
    UserInterface,
)
from .mirror import SourceMediaMirror
from .paths import is_hidden_path, is_path_located_in, normalize_path
from .propagator import TASK_CAPTION, GlobalRenamePropagator
from .signals import EventHub, Handler, PluginChangedEventArgs, SignalKind
from .source import SourceTreeProcessor
from .synchronizer import DataTreeSynchronizer, SyncCycleResult
from .tasks import AsyncioTaskHost
from .tracker import SelfModificationTracker

logger = logging.getLogger(__name__)


@dataclass
class FileEventEngineMetrics:
    """Counters describing the engine's work so far."""

    # Drain cycles
    drain_cycles: int = 0
    data_events_processed: int = 0
    source_events_processed: int = 0

    # Synchronization
    resources_evicted: int = 0
    resources_reloaded: int = 0
    paths_recycled: int = 0
    events_failed: int = 0

    # Propagation
    rename_batches_queued: int = 0
    rename_batches_completed: int = 0
    rename_batches_failed: int = 0

    # Reimport / plugins
    files_reimported: int = 0
    plugin_binaries_changed: int = 0

    # Error tracking
    last_error_time: Optional[datetime] = None
    last_error_message: Optional[str] = None


class FileEventEngine:
    """
    Aggregates file events of the data and source trees and synchronizes
    editor state with them.

    Every method is meant to be called on the owner event loop. Watchdog
    threads never call into the engine directly; ``ProjectTreeWatcher``
    marshals their notifications with ``call_soon_threadsafe``. Engines
    share no state, so several of them can run side by side.
    """

    def __init__(
        self,
        data_root: str,
        media_root: str,
        cache: ContentCache,
        types: ResourceTypes,
        editor: EditorState,
        ui: UserInterface,
        locator: AssetSourceLocator,
        recycle_bin: RecycleBin,
        reimporter: Reimporter,
        settings: SettingsStore,
        task_host: Optional[TaskHost] = None,
        config: Optional[EngineConfig] = None,
        ignored_names: Iterable[str] = (),
        plugin_patterns: Iterable[str] = ("*.dll",),
        hub: Optional[EventHub] = None,
        source_root: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the engine.

        Args:
            data_root: Root of the managed data tree
            media_root: Root of the source/media tree mirroring the data tree
            cache: Content cache
            types: Resource type recognition
            editor: Active document and unsaved state
            ui: Reload confirmations and change notifications
            locator: Source files belonging to a resource
            recycle_bin: Receives deleted source/media paths
            reimporter: Reimports resources from changed source files
            settings: Settings store rewritten during rename propagation
            task_host: Runs rename propagation (asyncio task host by default)
            config: Timing and behavior switches
            ignored_names: Path components treated as hidden
            plugin_patterns: Glob patterns of plugin binaries
            hub: Notification hub (a private one by default)
            source_root: Root of the source tree (parent of the media root by default)
            on_progress: Receives (fraction, label) of running rename propagations
            clock: Monotonic time source in seconds
        """
        self.config = config or EngineConfig()
        self.data_root = normalize_path(data_root)
        self.media_root = normalize_path(media_root)
        self.source_root = normalize_path(source_root or os.path.dirname(self.media_root))
        self.ignored_names = set(ignored_names)
        self.plugin_patterns = list(plugin_patterns)
        self.task_host = task_host or AsyncioTaskHost()
        self.hub = hub or EventHub()
        self.on_progress = on_progress
        self._clock = clock

        self.data_buffer = EventBuffer("data", self.is_path_visible)
        self.source_buffer = EventBuffer("source", self.is_path_visible)
        self.tracker = SelfModificationTracker()

        self.source_processor = SourceTreeProcessor(self.media_root, reimporter, self.tracker)
        self.mirror = SourceMediaMirror(self.data_root, self.media_root, locator)
        self.synchronizer = DataTreeSynchronizer(
            cache=cache,
            types=types,
            editor=editor,
            ui=ui,
            mirror=self.mirror,
            recycle_bin=recycle_bin,
            hub=self.hub,
            report_directory_changes=self.config.report_directory_changes,
        )
        self.propagator = GlobalRenamePropagator(
            cache=cache,
            types=types,
            editor=editor,
            settings=settings,
            ui=ui,
            default_content_prefix=self.config.default_content_prefix,
            escalate_unknown_types=self.config.escalate_unknown_types,
        )

        # Propagation queue; one batch in flight at a time
        self._pending_batches: Deque[List[FileEvent]] = deque()
        self._propagating = False
        self.propagation_progress: Optional[TaskProgress] = None

        self._last_drain: Optional[float] = None
        self._shutdown_event = asyncio.Event()
        self.is_running = False

        self.metrics = FileEventEngineMetrics()
        self.start_time: Optional[datetime] = None

        logger.info(f"Initialized FileEventEngine for {self.data_root}")

    @classmethod
    def from_config(cls, project: ProjectConfig, **collaborators: Any) -> 'FileEventEngine':
        """
        Create an engine for a configured project.

        Args:
            project: Project configuration providing roots and engine settings
            **collaborators: Constructor arguments for the host services
        """
        return cls(
            data_root=str(project.data_dir),
            media_root=str(project.media_dir),
            source_root=str(project.source_dir),
            config=project.engine,
            ignored_names=project.watch.ignored_names,
            plugin_patterns=project.watch.plugin_patterns,
            **collaborators,
        )

    # Event intake

    def is_path_visible(self, path: str) -> bool:
        """Hidden components are only checked below the watched roots"""
        for root in (self.data_root, self.source_root):
            if is_path_located_in(path, root):
                return not is_hidden_path(os.path.relpath(path, root), self.ignored_names)
        return not is_hidden_path(path, self.ignored_names)

    def push_data_event(self, raw_event: WatchdogEvent, is_directory: Optional[bool] = None) -> bool:
        """Buffer a raw notification from the data tree."""
        return self.data_buffer.push_raw(raw_event, is_directory)

    def push_source_event(self, raw_event: WatchdogEvent) -> bool:
        """Buffer a raw notification from the source tree."""
        return self.source_buffer.push_raw(raw_event)

    def push_plugin_event(self, raw_event: WatchdogEvent) -> bool:
        """
        Forward a plugin binary change to subscribers right away.

        Returns:
            True if a PluginBinaryChanged notification was raised
        """
        if raw_event.is_directory:
            return False
        if raw_event.event_type not in (EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED):
            return False

        path = normalize_path(os.fsdecode(raw_event.src_path))
        file_name = os.path.basename(path)
        if not any(fnmatch.fnmatch(file_name, pattern) for pattern in self.plugin_patterns):
            return False

        self.metrics.plugin_binaries_changed += 1
        logger.info(f"Plugin binary changed: {path}")
        self.hub.emit(SignalKind.PLUGIN_BINARY_CHANGED, PluginChangedEventArgs(path=path))
        return True

    def flag_path_modified(self, path: str) -> None:
        """Mark a file as written by the editor itself (save hook)."""
        self.tracker.flag_modified(path)

    def subscribe(self, kind: SignalKind, handler: Handler) -> Callable[[], None]:
        """Subscribe to engine notifications; returns an unsubscribe callable."""
        return self.hub.subscribe(kind, handler)

    # Drain cycles

    def tick(self, now: Optional[float] = None) -> bool:
        """
        Idle-time processing.

        Runs a drain cycle if the quiescence window has elapsed since the
        last one.

        Returns:
            True if a drain cycle ran
        """
        now = self._clock() if now is None else now
        if self._last_drain is not None and (now - self._last_drain) < self.config.quiescence_seconds:
            return False
        self._drain_cycle()
        self._last_drain = now
        return True

    def process_pending(self) -> None:
        """Run a drain cycle right away, ignoring the quiescence window."""
        self._drain_cycle()
        self._last_drain = self._clock()

    def _drain_cycle(self) -> None:
        # Batches queued by earlier cycles start before new ones are collected
        self.start_pending_propagation()

        self._process_source_events()
        self._process_data_events()

        # Flags set during this cycle survive into the next one
        self.tracker.age()
        self.metrics.drain_cycles += 1

    def _process_source_events(self) -> None:
        pending = len(self.source_buffer)
        if not pending:
            return
        try:
            self.source_processor.process(self.source_buffer)
            self.metrics.source_events_processed += pending
        except Exception as e:
            self._record_error(f"Error processing source tree events: {e}")

    def _process_data_events(self) -> None:
        events = self.data_buffer.drain()
        if not events:
            return

        aggregate_events(events)
        filter_events(events, self.tracker)
        if not events:
            return

        logger.debug(f"Processing {len(events)} data tree events")
        result = self.synchronizer.process(events)
        self._record_cycle(result)
        self.synchronizer.raise_signals(events)
        self.metrics.data_events_processed += len(events)

        if result.rename_batch:
            self._pending_batches.append(result.rename_batch)
            self.metrics.rename_batches_queued += 1
            logger.info(f"Queued {len(result.rename_batch)} renames for reference rewriting")

    def _record_cycle(self, result: SyncCycleResult) -> None:
        self.metrics.resources_evicted += result.evicted
        self.metrics.resources_reloaded += result.reloaded
        self.metrics.paths_recycled += len(result.recycled_paths)
        self.metrics.events_failed += result.failed

    # Rename propagation

    @property
    def is_propagating(self) -> bool:
        return self._propagating

    @property
    def pending_rename_batches(self) -> int:
        return len(self._pending_batches)

    def start_pending_propagation(self) -> bool:
        """
        Start the next queued rename batch unless one is already running.

        Returns:
            True if a propagation task was started
        """
        if self._propagating or not self._pending_batches:
            return False

        batch = self._pending_batches.popleft()
        self._propagating = True
        self.propagation_progress = TaskProgress(0.0, TASK_CAPTION)
        logger.info(f"Starting reference rewriting for {len(batch)} renames")
        self.task_host.run(
            TASK_CAPTION,
            self.propagator.steps(batch),
            on_progress=self._on_propagation_progress,
            on_complete=self._on_propagation_complete,
        )
        return True

    def _on_propagation_progress(self, fraction: float, label: str) -> None:
        self.propagation_progress = TaskProgress(fraction, label)
        if self.on_progress is not None:
            self.on_progress(fraction, label)

    def _on_propagation_complete(self, error: Optional[BaseException]) -> None:
        self._propagating = False
        self.propagation_progress = None
        if error is None:
            self.metrics.rename_batches_completed += 1
        else:
            self.metrics.rename_batches_failed += 1
            self._record_error(f"Reference rewriting failed: {error}")

    # Host integration

    async def handle_host_activated(self) -> List[str]:
        """
        Reimport scheduled source files once the host regains focus.

        External tools may still hold their files for a moment, so the
        reimport waits for a short grace period first.

        Returns:
            The files handed to the reimporter
        """
        if not self.source_processor.scheduled:
            return []
        await asyncio.sleep(self.config.reimport_grace_seconds)
        try:
            reimported = self.source_processor.drain_reimport_schedule()
        except Exception as e:
            self._record_error(f"Error reimporting source files: {e}")
            return []
        self.metrics.files_reimported += len(reimported)
        return reimported

    async def run(self) -> None:
        """Tick on the owner loop until ``stop`` is called."""
        if self.is_running:
            logger.warning("File event engine is already running")
            return

        self.is_running = True
        self.start_time = datetime.now()
        self._shutdown_event.clear()
        logger.info("File event engine started")

        try:
            while not self._shutdown_event.is_set():
                try:
                    self.tick()
                except Exception as e:
                    self._record_error(f"Error in drain cycle: {e}")
                try:
                    await asyncio.wait_for(
                        self._shutdown_event.wait(),
                        timeout=self.config.poll_interval_seconds
                    )
                except asyncio.TimeoutError:
                    continue
        finally:
            self.is_running = False
            logger.info("File event engine stopped")

    def stop(self) -> None:
        """Ask ``run`` to return after the current tick."""
        self._shutdown_event.set()

    # Status

    def _record_error(self, message: str) -> None:
        logger.error(message)
        self.metrics.last_error_message = message
        self.metrics.last_error_time = datetime.now()

    def get_status(self) -> Dict[str, Any]:
        """Get engine status"""
        uptime = None
        if self.start_time:
            uptime = (datetime.now() - self.start_time).total_seconds()
        return {
            "is_running": self.is_running,
            "uptime_seconds": uptime,
            "data_root": self.data_root,
            "media_root": self.media_root,
            "pending_data_events": len(self.data_buffer),
            "pending_source_events": len(self.source_buffer),
            "scheduled_reimports": len(self.source_processor.scheduled),
            "is_propagating": self._propagating,
            "propagation_progress": (
                self.propagation_progress.fraction if self.propagation_progress else None
            ),
            "pending_rename_batches": len(self._pending_batches),
            "metrics": {
                "drain_cycles": self.metrics.drain_cycles,
                "data_events_processed": self.metrics.data_events_processed,
                "source_events_processed": self.metrics.source_events_processed,
                "resources_evicted": self.metrics.resources_evicted,
                "paths_recycled": self.metrics.paths_recycled,
                "events_failed": self.metrics.events_failed,
                "rename_batches_completed": self.metrics.rename_batches_completed,
                "rename_batches_failed": self.metrics.rename_batches_failed,
                "files_reimported": self.metrics.files_reimported,
                "plugin_binaries_changed": self.metrics.plugin_binaries_changed,
                "last_error": self.metrics.last_error_message,
            },
        }

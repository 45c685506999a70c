"""
File Event Aggregation and Synchronization.

Keeps editor state consistent with a data tree of resources and a source
tree of authoring files while both are changed by outside processes.

Key Components:
- FileEvent / EventBuffer: Normalized events, buffered per watched root
- aggregate_events / filter_events: Turn noisy notifications into semantic operations
- DataTreeSynchronizer: Cache invalidation, source/media mirroring, notifications
- SourceTreeProcessor: Batched reimport of changed source files
- GlobalRenamePropagator: Cooperative rewriting of stale references after renames
- FileEventEngine: Owner-loop coordinator with idle-time drain cycles
- ProjectTreeWatcher: watchdog bridge feeding the engine
"""

from .events import FileEvent, ChangeKind, translate_watchdog_event
from .buffer import EventBuffer
from .aggregator import aggregate_events
from .filters import filter_events
from .tracker import SelfModificationTracker
from .references import Reference, ReferenceHolder, iter_references
from .signals import EventHub, SignalKind
from .synchronizer import DataTreeSynchronizer
from .source import SourceTreeProcessor
from .mirror import SourceMediaMirror
from .propagator import GlobalRenamePropagator, rewrite_references
from .tasks import AsyncioTaskHost, InlineTaskHost
from .engine import FileEventEngine
from .watcher import ProjectTreeWatcher

__all__ = [
    "FileEvent",
    "ChangeKind",
    "translate_watchdog_event",
    "EventBuffer",
    "aggregate_events",
    "filter_events",
    "SelfModificationTracker",
    "Reference",
    "ReferenceHolder",
    "iter_references",
    "EventHub",
    "SignalKind",
    "DataTreeSynchronizer",
    "SourceTreeProcessor",
    "SourceMediaMirror",
    "GlobalRenamePropagator",
    "rewrite_references",
    "AsyncioTaskHost",
    "InlineTaskHost",
    "FileEventEngine",
    "ProjectTreeWatcher",
]

__version__ = "1.0.0"

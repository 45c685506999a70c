"""
Test suite for the file event synchronization engine.

This package contains tests for all synchronization components:
- FileEvent models and watchdog event translation
- EventBuffer de-duplication and the aggregation/filter pipeline
- DataTreeSynchronizer cache invalidation and semantic notifications
- SourceMediaMirror moves, copies and recycling
- SourceTreeProcessor reimport scheduling
- GlobalRenamePropagator reference rewriting
- ProjectTreeWatcher thread marshalling
- FileEventEngine integration and tick scheduling

These tests ensure renames, moves and deletions on disk keep the content
cache, the media tree and every stored reference consistent.
"""

"""
Tests for SourceTreeProcessor reimport scheduling.
"""

import os
from unittest.mock import Mock

from core.sync.buffer import EventBuffer
from core.sync.events import FileEvent
from core.sync.source import SourceTreeProcessor
from core.sync.tracker import SelfModificationTracker


def norm(path):
    return os.path.normpath(str(path))


class TestSourceTreeProcessor:
    """Test scheduling and draining of reimports"""

    def test_only_changed_media_files_scheduled(self, media_dir, project_config):
        source = media_dir / "hero.png"
        source.write_bytes(b"png")
        outside = project_config.source_dir / "notes.txt"
        outside.write_text("notes")
        processor = SourceTreeProcessor(str(media_dir), Mock())
        buffer = EventBuffer("source")
        buffer.push(FileEvent.changed(norm(source)))
        buffer.push(FileEvent.created(norm(media_dir / "new.png")))
        buffer.push(FileEvent.changed(norm(media_dir / "missing.png")))
        buffer.push(FileEvent.changed(norm(outside)))

        scheduled = processor.process(buffer)

        assert scheduled == 1
        assert processor.scheduled == {norm(source)}
        assert len(buffer) == 0

    def test_editor_writes_not_scheduled(self, media_dir):
        source = media_dir / "hero.png"
        source.write_bytes(b"png")
        tracker = SelfModificationTracker()
        tracker.flag_modified(norm(source))
        processor = SourceTreeProcessor(str(media_dir), Mock(), tracker)
        buffer = EventBuffer("source")
        buffer.push(FileEvent.changed(norm(source)))

        assert processor.process(buffer) == 0

    def test_drain_batches_existing_files(self, media_dir):
        first = media_dir / "b.png"
        second = media_dir / "a.png"
        first.write_bytes(b"png")
        second.write_bytes(b"png")
        reimporter = Mock()
        processor = SourceTreeProcessor(str(media_dir), reimporter)
        buffer = EventBuffer("source")
        buffer.push(FileEvent.changed(norm(first)))
        buffer.push(FileEvent.changed(norm(second)))
        processor.process(buffer)
        first.unlink()

        drained = processor.drain_reimport_schedule()

        assert drained == [norm(second)]
        reimporter.reimport.assert_called_once_with([norm(second)])
        assert processor.scheduled == set()
        assert processor.total_reimported == 1

    def test_empty_schedule(self, media_dir):
        reimporter = Mock()
        processor = SourceTreeProcessor(str(media_dir), reimporter)

        assert processor.drain_reimport_schedule() == []
        reimporter.reimport.assert_not_called()

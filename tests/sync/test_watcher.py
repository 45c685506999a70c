"""
Tests for the watchdog bridge.

Validates that observer-thread notifications reach the engine only on the
owner event loop, and the watcher's start/stop lifecycle.
"""

import asyncio
import os
import threading

import pytest
from watchdog.events import FileCreatedEvent

from core.sync.events import ChangeKind
from core.sync.signals import SignalKind
from core.sync.watcher import ProjectTreeWatcher, TreeEventHandler


class TestTreeEventHandler:
    """Test thread-safe event hand-off"""

    @pytest.mark.asyncio
    async def test_events_marshaled_to_loop(self, tmp_path):
        received = []
        handler = TreeEventHandler("data", received.append)
        handler.set_event_loop(asyncio.get_running_loop())
        event = FileCreatedEvent(str(tmp_path / "a.Texture.res"))

        handler.on_any_event(event)

        # Nothing runs before the loop gets control back
        assert received == []
        await asyncio.sleep(0)
        assert received == [event]
        assert handler.events_forwarded == 1

    @pytest.mark.asyncio
    async def test_events_from_observer_thread(self, tmp_path):
        loop = asyncio.get_running_loop()
        threads = []

        def forward(event):
            threads.append(threading.current_thread())

        handler = TreeEventHandler("data", forward)
        handler.set_event_loop(loop)

        worker = threading.Thread(target=handler.on_any_event, args=(FileCreatedEvent(str(tmp_path / "a")),))
        worker.start()
        worker.join()
        for _ in range(50):
            if threads:
                break
            await asyncio.sleep(0.01)

        assert threads == [threading.current_thread()]

    def test_events_dropped_without_loop(self, tmp_path):
        received = []
        handler = TreeEventHandler("data", received.append)

        handler.on_any_event(FileCreatedEvent(str(tmp_path / "a")))

        assert received == []
        assert handler.events_forwarded == 0


class TestProjectTreeWatcher:
    """Test watcher lifecycle"""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, engine, project_config):
        watcher = ProjectTreeWatcher(
            engine,
            data_root=project_config.data_dir,
            source_root=project_config.source_dir,
            plugin_root=project_config.plugin_dir,
            shutdown_timeout_s=1.0,
        )

        assert await watcher.start_monitoring() is True
        status = watcher.get_status()
        assert status["is_monitoring"] is True
        # The plugin directory does not exist and is not watched
        assert status["watched_roots"] == ["data", "source"]

        await watcher.stop_monitoring()
        assert watcher.is_monitoring is False
        assert all(handler._event_loop is None for handler in watcher.handlers)

    @pytest.mark.asyncio
    async def test_plugin_directory_watched_when_present(self, engine, project_config):
        project_config.plugin_dir.mkdir()

        async with ProjectTreeWatcher(
            engine,
            data_root=project_config.data_dir,
            source_root=project_config.source_dir,
            plugin_root=project_config.plugin_dir,
            shutdown_timeout_s=1.0,
        ) as watcher:
            assert watcher.get_status()["watched_roots"] == ["data", "source", "plugins"]

        assert watcher.is_monitoring is False

    @pytest.mark.asyncio
    async def test_missing_root_fails_to_start(self, engine, project_config, tmp_path):
        watcher = ProjectTreeWatcher(
            engine,
            data_root=tmp_path / "missing",
            source_root=project_config.source_dir,
        )

        assert await watcher.start_monitoring() is False
        assert watcher.get_status()["error_count"] == 1
        assert watcher.is_monitoring is False

    @pytest.mark.asyncio
    async def test_real_file_reaches_engine(self, engine, project_config):
        watcher = ProjectTreeWatcher(
            engine,
            data_root=project_config.data_dir,
            source_root=project_config.source_dir,
            shutdown_timeout_s=1.0,
        )
        await watcher.start_monitoring()
        try:
            (project_config.data_dir / "a.Texture.res").write_text("{}")
            for _ in range(100):
                if len(engine.data_buffer):
                    break
                await asyncio.sleep(0.02)
        finally:
            await watcher.stop_monitoring()

        assert len(engine.data_buffer) > 0

    @pytest.mark.asyncio
    async def test_real_directory_rename_reported_once(self, engine, project_config):
        sprites = project_config.data_dir / "Sprites"
        sprites.mkdir()
        (sprites / "tree.Texture.res").write_text("{}")
        renamed = []
        engine.subscribe(SignalKind.RESOURCE_RENAMED, renamed.append)
        watcher = ProjectTreeWatcher(
            engine,
            data_root=project_config.data_dir,
            source_root=project_config.source_dir,
            shutdown_timeout_s=1.0,
        )
        await watcher.start_monitoring()
        try:
            sprites.rename(project_config.data_dir / "Art")
            for _ in range(100):
                if any(e.kind == ChangeKind.RENAMED for e in engine.data_buffer):
                    break
                await asyncio.sleep(0.02)
            # Child moves are dispatched right behind their directory
            await asyncio.sleep(0.2)
        finally:
            await watcher.stop_monitoring()

        engine.process_pending()

        assert len(renamed) == 1
        assert renamed[0].is_directory
        assert renamed[0].path == os.path.normpath(str(project_config.data_dir / "Art"))

"""
Content workspace.

Wires the JSON content services of one project together and builds a file
event engine on top of them.
"""

import logging
from typing import Optional

from core.models.config import ProjectConfig
from core.sync.engine import FileEventEngine
from core.sync.interfaces import ProgressCallback, TaskHost, UserInterface
from core.sync.signals import EventHub
from core.sync.watcher import ProjectTreeWatcher
from .media import MediaSourceLocator, ProviderReimporter, TrashDirectory
from .provider import ContentProvider
from .registry import ResourceRegistry
from .session import AutoUserInterface, EditorSession, JsonSettingsStore

logger = logging.getLogger(__name__)


class ContentWorkspace:
    """All content services of a project."""

    def __init__(self, config: ProjectConfig, ui: Optional[UserInterface] = None):
        """
        Initialize the workspace.

        Args:
            config: Project configuration
            ui: User interface (answers every reload question with yes by default)
        """
        self.config = config
        self.registry = ResourceRegistry()
        self.provider = ContentProvider(str(config.data_dir), self.registry)
        self.locator = MediaSourceLocator(str(config.data_dir), str(config.media_dir), self.registry)
        self.recycle_bin = TrashDirectory(str(config.trash_dir))
        self.reimporter = ProviderReimporter(self.provider, self.locator)
        self.session = EditorSession(self.provider)
        self.settings = JsonSettingsStore(str(config.settings_dir))
        self.ui = ui or AutoUserInterface()

    def ensure_directories(self) -> None:
        """Create the watched directories if they do not exist yet."""
        for directory in (self.config.data_dir, self.config.media_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def build_engine(
        self,
        task_host: Optional[TaskHost] = None,
        hub: Optional[EventHub] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> FileEventEngine:
        """Create an engine over this workspace and hook up the save listener."""
        engine = FileEventEngine.from_config(
            self.config,
            cache=self.provider,
            types=self.registry,
            editor=self.session,
            ui=self.ui,
            locator=self.locator,
            recycle_bin=self.recycle_bin,
            reimporter=self.reimporter,
            settings=self.settings,
            task_host=task_host,
            hub=hub,
            on_progress=on_progress,
        )
        self.provider.add_save_listener(engine.flag_path_modified)
        return engine

    def build_watcher(self, engine: FileEventEngine) -> ProjectTreeWatcher:
        return ProjectTreeWatcher(
            engine,
            data_root=self.config.data_dir,
            source_root=self.config.source_dir,
            plugin_root=self.config.plugin_dir,
        )

"""
Editor session and settings.

Tracks the active document, unsaved edits and sandbox mode, persists
application / user settings and provides a non-interactive user interface
for unattended runs.
"""

import json
import logging
import os
from typing import Any, List, Optional, Sequence, Set

from pydantic import BaseModel, ValidationError

from core.sync.interfaces import EditorState, SettingsStore, UserInterface
from core.sync.paths import normalize_path
from .provider import ContentProvider
from .resources import ApplicationData, Resource, UserData

logger = logging.getLogger(__name__)


class EditorSession(EditorState):
    """The working state of one editor instance."""

    def __init__(self, provider: ContentProvider):
        self.provider = provider
        self._active: Optional[Resource] = None
        self._unsaved: Set[str] = set()
        self._sandbox = False

    @property
    def active_document(self) -> Optional[Resource]:
        return self._active

    @property
    def active_document_path(self) -> Optional[str]:
        if self._active is None:
            return None
        return self._active.path

    def open_document(self, path: str) -> Resource:
        """Load a document through the provider and make it active."""
        document = self.provider.request(path)
        self.activate_document(document)
        return document

    def activate_document(self, document: Any) -> None:
        self._active = document
        logger.debug(f"Active document: {getattr(document, 'path', None)}")

    def close_document(self) -> None:
        self._active = None

    def mark_unsaved(self, path: str) -> None:
        self._unsaved.add(normalize_path(path))

    def mark_saved(self, path: str) -> None:
        self._unsaved.discard(normalize_path(path))

    def is_unsaved(self, path: str) -> bool:
        return normalize_path(path) in self._unsaved

    def is_active_document_unsaved(self) -> bool:
        # A document without a file on disk has never been saved
        if self._active is None:
            return False
        path = self._active.path
        return not path or not os.path.isfile(path)

    def enter_sandbox(self) -> None:
        self._sandbox = True

    def leave_sandbox(self) -> None:
        self._sandbox = False

    def is_sandbox_active(self) -> bool:
        return self._sandbox


class JsonSettingsStore(SettingsStore):
    """Application and user settings stored as JSON files."""

    APP_FILE = "app.json"
    USER_FILE = "user.json"

    def __init__(self, settings_dir: str):
        self.settings_dir = normalize_path(settings_dir)
        self.app_data = ApplicationData()
        self.user_data = UserData()

    @property
    def app_file(self) -> str:
        return os.path.join(self.settings_dir, self.APP_FILE)

    @property
    def user_file(self) -> str:
        return os.path.join(self.settings_dir, self.USER_FILE)

    def _read(self, path: str, model: type) -> BaseModel:
        if not os.path.isfile(path):
            return model()
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return model.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to load settings from {path}, using defaults: {e}")
            return model()

    def _write(self, path: str, data: BaseModel) -> None:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data.model_dump(mode='json'), f, indent=2)

    def reload(self) -> Sequence[Any]:
        self.app_data = self._read(self.app_file, ApplicationData)
        self.user_data = self._read(self.user_file, UserData)
        return [self.app_data, self.user_data]

    def save(self) -> None:
        self._write(self.app_file, self.app_data)
        self._write(self.user_file, self.user_data)
        logger.debug(f"Saved settings to {self.settings_dir}")


class AutoUserInterface(UserInterface):
    """
    Answers every reload question the same way and records what happened.

    Used for unattended watching (``--yes``) and in tests.
    """

    def __init__(self, reload_answer: bool = True):
        self.reload_answer = reload_answer
        self.confirmations: List[str] = []
        self.notifications: List[List[Any]] = []

    def confirm_reload(self, path: str) -> bool:
        self.confirmations.append(path)
        logger.info(f"{'Reloading' if self.reload_answer else 'Keeping'} externally modified {path}")
        return self.reload_answer

    def notify_changed(self, objects: List[Any]) -> None:
        self.notifications.append(list(objects))

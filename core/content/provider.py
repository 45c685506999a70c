"""
JSON-backed content provider.

Loads resource documents from the data tree, keeps the loaded instances in
an in-memory cache keyed by absolute path and writes them back on save.
Save listeners are notified after every write, which is how the file event
engine learns about the editor's own modifications.
"""

import json
import logging
import os
import tempfile
from typing import Callable, Dict, List, Optional, Set

from pydantic import ValidationError

from core.sync.errors import ContentError, ContentNotFoundError, ContentParseError
from core.sync.interfaces import ContentCache
from core.sync.paths import is_path_located_in, normalize_path
from .registry import ResourceRegistry
from .resources import Resource

logger = logging.getLogger(__name__)

SaveListener = Callable[[str], None]


class ContentProvider(ContentCache):
    """Resource cache over JSON files named ``<name>.<Type>.res``."""

    def __init__(self, data_root: str, registry: Optional[ResourceRegistry] = None):
        """
        Initialize the provider.

        Args:
            data_root: Root of the data tree
            registry: Resource type registry (all built-in types by default)
        """
        self.data_root = normalize_path(data_root)
        self.registry = registry or ResourceRegistry()
        self._cache: Dict[str, Resource] = {}
        self._save_listeners: List[SaveListener] = []
        self.loads = 0
        self.saves = 0

    # Save hook

    def add_save_listener(self, listener: SaveListener) -> None:
        self._save_listeners.append(listener)

    def remove_save_listener(self, listener: SaveListener) -> None:
        if listener in self._save_listeners:
            self._save_listeners.remove(listener)

    # Cache queries

    def has(self, path: str) -> bool:
        return normalize_path(path) in self._cache

    def get(self, path: str) -> Optional[Resource]:
        return self._cache.get(normalize_path(path))

    def list_loaded(self) -> Set[str]:
        return set(self._cache)

    def list_all_on_disk(self) -> Set[str]:
        found: Set[str] = set()
        if not os.path.isdir(self.data_root):
            return found
        for dirpath, dirnames, filenames in os.walk(self.data_root):
            dirnames[:] = [d for d in dirnames if not d.startswith('.')]
            for filename in filenames:
                if self.registry.is_resource_file(filename):
                    found.add(normalize_path(os.path.join(dirpath, filename)))
        return found

    # Cache maintenance

    def remove(self, path: str) -> bool:
        removed = self._cache.pop(normalize_path(path), None)
        if removed is not None:
            logger.debug(f"Unloaded {path}")
        return removed is not None

    def remove_tree(self, path: str) -> int:
        directory = normalize_path(path)
        doomed = [key for key in self._cache if is_path_located_in(key, directory)]
        for key in doomed:
            del self._cache[key]
        if doomed:
            logger.debug(f"Unloaded {len(doomed)} resources below {directory}")
        return len(doomed)

    def rename(self, old_path: str, new_path: str) -> bool:
        resource = self._cache.pop(normalize_path(old_path), None)
        if resource is None:
            return False
        target = normalize_path(new_path)
        resource.path = target
        self._cache[target] = resource
        return True

    def rename_tree(self, old_path: str, new_path: str) -> int:
        old_dir = normalize_path(old_path)
        new_dir = normalize_path(new_path)
        moved = [key for key in self._cache if is_path_located_in(key, old_dir)]
        for key in moved:
            resource = self._cache.pop(key)
            target = new_dir + key[len(old_dir):]
            resource.path = target
            self._cache[target] = resource
        return len(moved)

    # Persistence

    def load(self, path: str, activate: bool = True) -> Resource:
        full_path = normalize_path(path)
        if not os.path.isfile(full_path):
            raise ContentNotFoundError(full_path)

        try:
            with open(full_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ContentParseError(full_path, str(e)) from e

        if not isinstance(data, dict):
            raise ContentParseError(full_path, "document is not a JSON object")

        type_name = data.get('type')
        res_type = self.registry.get(type_name) if type_name else self.registry.type_from_file_name(full_path)
        if res_type is None:
            raise ContentParseError(full_path, f"unknown resource type {type_name!r}")

        try:
            resource = res_type.model_validate(data.get('data', {}))
        except ValidationError as e:
            raise ContentParseError(full_path, str(e)) from e

        resource.path = full_path
        self.loads += 1

        if activate:
            resource.on_activate()
            self._cache[full_path] = resource
            logger.debug(f"Loaded {full_path}")
        return resource

    def request(self, path: str) -> Resource:
        """Return the cached resource, loading it on first access."""
        resource = self.get(path)
        if resource is None:
            resource = self.load(path, activate=True)
        return resource

    def save(self, resource: Resource, path: Optional[str] = None) -> None:
        target = path or resource.path
        if not target:
            raise ContentError("<unsaved>", "resource has no path to save to")
        target = normalize_path(target)

        payload = {
            'type': type(resource).type_name(),
            'data': resource.model_dump(mode='json'),
        }

        directory = os.path.dirname(target)
        os.makedirs(directory, exist_ok=True)

        # Write a sibling temp file, then swap it in so the target is never truncated
        fd, temp_path = tempfile.mkstemp(prefix=".", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, target)
        except BaseException:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise
        self.saves += 1

        if resource.path is None:
            resource.path = target
        logger.debug(f"Saved {target}")

        for listener in list(self._save_listeners):
            try:
                listener(target)
            except Exception as e:
                logger.warning(f"Error in save listener: {e}")

    def create(self, resource: Resource, path: str) -> Resource:
        """Save a new resource and make it the cached instance for its path."""
        full_path = normalize_path(path)
        resource.path = full_path
        self.save(resource, full_path)
        resource.on_activate()
        self._cache[full_path] = resource
        return resource

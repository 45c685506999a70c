"""
Source/media file services.

The source/media tree mirrors the data tree: the source files of
``Data/Sprites/hero.Texture.res`` live in ``Source/Media/Sprites/hero.png``.
"""

import logging
import os
import shutil
from datetime import datetime
from typing import Iterable, List, Optional

from core.sync.errors import ContentError
from core.sync.interfaces import AssetSourceLocator, RecycleBin, Reimporter
from core.sync.paths import is_path_located_in, normalize_path, rebase_path
from .provider import ContentProvider
from .registry import ResourceRegistry

logger = logging.getLogger(__name__)


class MediaSourceLocator(AssetSourceLocator):
    """Computes source file paths from a resource path and its type."""

    def __init__(self, data_root: str, media_root: str, registry: ResourceRegistry):
        self.data_root = normalize_path(data_root)
        self.media_root = normalize_path(media_root)
        self.registry = registry

    def source_files(self, asset_path: str) -> List[str]:
        res_type = self.registry.type_from_file_name(asset_path)
        if res_type is None or not res_type.source_extensions:
            return []
        if not is_path_located_in(asset_path, self.data_root):
            return []

        media_dir = rebase_path(os.path.dirname(normalize_path(asset_path)), self.data_root, self.media_root)
        base_name = self.registry.base_name(asset_path)
        return [os.path.join(media_dir, base_name + ext) for ext in res_type.source_extensions]

    def resources_for_source(self, source_path: str) -> List[str]:
        """Resource paths a source file would be imported into."""
        if not is_path_located_in(source_path, self.media_root):
            return []

        full_path = normalize_path(source_path)
        base_name, ext = os.path.splitext(os.path.basename(full_path))
        data_dir = rebase_path(os.path.dirname(full_path), self.media_root, self.data_root)
        return [
            os.path.join(data_dir, self.registry.file_name_for(base_name, res_type))
            for res_type in self.registry.types.values()
            if ext.lower() in res_type.source_extensions
        ]


class TrashDirectory(RecycleBin):
    """
    Recycle bin backed by a project-local trash directory.

    Every call creates one timestamped batch directory, so deleted files can
    be restored by hand.
    """

    def __init__(self, trash_root: str):
        self.trash_root = normalize_path(trash_root)
        self.recycled: List[str] = []

    def _unique_destination(self, directory: str, name: str) -> str:
        destination = os.path.join(directory, name)
        counter = 1
        while os.path.exists(destination):
            destination = os.path.join(directory, f"{name}.{counter}")
            counter += 1
        return destination

    def send_to_recycle(self, paths: Iterable[str]) -> None:
        batch_dir = os.path.join(self.trash_root, datetime.now().strftime("%Y%m%d-%H%M%S-%f"))
        for path in paths:
            if not os.path.exists(path):
                continue
            os.makedirs(batch_dir, exist_ok=True)
            destination = self._unique_destination(batch_dir, os.path.basename(path))
            try:
                shutil.move(path, destination)
            except OSError as e:
                logger.warning(f"Unable to recycle '{path}': {e}")
                continue
            self.recycled.append(path)
            logger.debug(f"Recycled '{path}' to '{destination}'")


class ProviderReimporter(Reimporter):
    """Reimports existing resources from their changed source files."""

    def __init__(self, provider: ContentProvider, locator: MediaSourceLocator):
        self.provider = provider
        self.locator = locator
        self.reimported: List[str] = []

    def reimport(self, paths: List[str]) -> None:
        for source_path in paths:
            for resource_path in self.locator.resources_for_source(source_path):
                self._reimport_one(source_path, resource_path)

    def _reimport_one(self, source_path: str, resource_path: str) -> Optional[str]:
        # No resource was ever imported from this file
        if not os.path.isfile(resource_path):
            logger.debug(f"No resource for source file {source_path}")
            return None

        try:
            resource = self.provider.request(resource_path)
            resource.reimport(source_path)
            self.provider.save(resource)
        except (ContentError, OSError) as e:
            logger.warning(f"Unable to reimport {resource_path} from {source_path}: {e}")
            return None

        self.reimported.append(resource_path)
        logger.info(f"Reimported {resource_path}")
        return resource_path

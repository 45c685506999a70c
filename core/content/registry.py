"""
Resource type registry.

Resource files are named ``<name>.<Type>.res``; the type can therefore be
determined from the file name alone, without reading the file.
"""

import logging
import os
from typing import Dict, Iterable, Optional, Type

from core.sync.interfaces import ResourceTypes
from .resources import RESOURCE_TYPES, Resource

logger = logging.getLogger(__name__)

RESOURCE_EXTENSION = ".res"


class ResourceRegistry(ResourceTypes):
    """Maps type names to resource classes and file names to types."""

    def __init__(self, types: Optional[Iterable[Type[Resource]]] = None):
        self._types: Dict[str, Type[Resource]] = {}
        for res_type in (types if types is not None else RESOURCE_TYPES.values()):
            self.register(res_type)

    def register(self, res_type: Type[Resource]) -> None:
        self._types[res_type.type_name()] = res_type
        logger.debug(f"Registered resource type {res_type.type_name()}")

    def get(self, type_name: str) -> Optional[Type[Resource]]:
        return self._types.get(type_name)

    @property
    def types(self) -> Dict[str, Type[Resource]]:
        return dict(self._types)

    def is_resource_file(self, path: str) -> bool:
        return os.path.basename(path).lower().endswith(RESOURCE_EXTENSION)

    def type_from_file_name(self, path: str) -> Optional[Type[Resource]]:
        """
        Determine a resource type from a file name.

        Returns:
            The resource class, or None for unknown or malformed names
        """
        if not self.is_resource_file(path):
            return None
        parts = os.path.basename(path).split('.')
        if len(parts) < 3:
            return None
        return self._types.get(parts[-2])

    def can_reference(self, holder_type: Type, target_type: Type) -> bool:
        if not (isinstance(holder_type, type) and issubclass(holder_type, Resource)):
            return False
        return holder_type.can_reference(target_type)

    def file_name_for(self, name: str, res_type: Type[Resource]) -> str:
        return f"{name}.{res_type.type_name()}{RESOURCE_EXTENSION}"

    def base_name(self, path: str) -> str:
        """File name without the ``.<Type>.res`` suffix"""
        file_name = os.path.basename(path)
        if not self.is_resource_file(file_name):
            return os.path.splitext(file_name)[0]
        parts = file_name.split('.')
        if len(parts) < 3:
            return parts[0]
        return '.'.join(parts[:-2])

"""
JSON content services.

Resource models, the resource type registry, a JSON-backed content cache,
source/media helpers, the editor session and settings store.
"""

from .resources import (
    Resource,
    Texture,
    Material,
    Prefab,
    Scene,
    SceneObject,
    ApplicationData,
    UserData,
)
from .registry import ResourceRegistry
from .provider import ContentProvider
from .media import MediaSourceLocator, TrashDirectory, ProviderReimporter
from .session import EditorSession, JsonSettingsStore, AutoUserInterface
from .workspace import ContentWorkspace

__all__ = [
    "Resource",
    "Texture",
    "Material",
    "Prefab",
    "Scene",
    "SceneObject",
    "ApplicationData",
    "UserData",
    "ResourceRegistry",
    "ContentProvider",
    "MediaSourceLocator",
    "TrashDirectory",
    "ProviderReimporter",
    "EditorSession",
    "JsonSettingsStore",
    "AutoUserInterface",
    "ContentWorkspace",
]

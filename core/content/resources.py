"""
Resource models.

Resources are JSON documents stored in the data tree. Each type declares
which other types it may reference, which lets the rename propagator skip
files that cannot possibly hold a stale reference.
"""

import os
from typing import ClassVar, Dict, Iterator, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from core.sync.references import Reference, ReferenceHolder, iter_model_references


class Resource(BaseModel, ReferenceHolder):
    """
    Base class of all resource documents.

    ``path`` is where the resource was loaded from; it is not persisted.
    """
    model_config = ConfigDict(
        validate_assignment=True,
        extra='ignore'
    )

    # File extensions of the source files a resource is imported from
    source_extensions: ClassVar[Tuple[str, ...]] = ()

    path: Optional[str] = Field(default=None, exclude=True)
    _activated: bool = PrivateAttr(default=False)

    @classmethod
    def type_name(cls) -> str:
        return cls.__name__

    @classmethod
    def referenceable_types(cls) -> Tuple[Type['Resource'], ...]:
        """Resource types this type may hold references to"""
        return ()

    @classmethod
    def can_reference(cls, target_type: Type) -> bool:
        return any(issubclass(target_type, t) for t in cls.referenceable_types())

    @property
    def name(self) -> str:
        if not self.path:
            return ""
        return os.path.basename(self.path).split('.')[0]

    @property
    def is_activated(self) -> bool:
        return self._activated

    def on_activate(self) -> None:
        """Called once when the resource becomes the cached instance for its path"""
        self._activated = True

    def iter_references(self) -> Iterator[Reference]:
        yield from iter_model_references(self)

    def reimport(self, source_path: str) -> None:
        """Refresh imported data from a source file"""
        pass


class Texture(Resource):
    """Pixel data imported from an image file"""
    source_extensions: ClassVar[Tuple[str, ...]] = (".png",)

    width: int = 0
    height: int = 0
    filter_mode: str = "linear"
    source_size: int = 0
    import_count: int = 0

    def reimport(self, source_path: str) -> None:
        self.source_size = os.path.getsize(source_path)
        self.import_count += 1


class Material(Resource):
    """Render settings pointing at a main texture"""
    main_texture: Reference = Field(default_factory=Reference)
    tint: List[float] = Field(default_factory=lambda: [1.0, 1.0, 1.0, 1.0])

    @classmethod
    def referenceable_types(cls) -> Tuple[Type[Resource], ...]:
        return (Texture,)

    def iter_references(self) -> Iterator[Reference]:
        yield self.main_texture


class SceneObject(BaseModel):
    """Node of an object hierarchy; components map a role to a resource"""
    model_config = ConfigDict(validate_assignment=True)

    name: str
    prefab: Reference = Field(default_factory=Reference)
    components: Dict[str, Reference] = Field(default_factory=dict)
    children: List['SceneObject'] = Field(default_factory=list)


class Prefab(Resource):
    """Reusable object hierarchy"""
    root: Optional[SceneObject] = None

    @classmethod
    def referenceable_types(cls) -> Tuple[Type[Resource], ...]:
        return (Prefab, Material, Texture)


class Scene(Resource):
    """A level: a list of object hierarchies"""
    objects: List[SceneObject] = Field(default_factory=list)

    @classmethod
    def referenceable_types(cls) -> Tuple[Type[Resource], ...]:
        return (Prefab, Material, Texture)


class ApplicationData(BaseModel):
    """Persisted application settings"""
    model_config = ConfigDict(validate_assignment=True, extra='ignore')

    app_name: str = "Game"
    startup_scene: Reference = Field(default_factory=Reference)
    preload: List[Reference] = Field(default_factory=list)


class UserData(BaseModel):
    """Persisted per-user settings"""
    model_config = ConfigDict(validate_assignment=True, extra='ignore')

    last_opened: Reference = Field(default_factory=Reference)
    recent: List[Reference] = Field(default_factory=list)


RESOURCE_TYPES: Dict[str, Type[Resource]] = {
    res_type.type_name(): res_type
    for res_type in (Texture, Material, Prefab, Scene)
}

"""
Resource references.

A reference is a pointer by path embedded in a document: a scene pointing
at a prefab, a material pointing at a texture, the settings pointing at the
startup scene. Documents enumerate their references through an explicit
traversal contract so the rename propagator can rewrite them in place.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterator, Optional, Set

from pydantic import BaseModel, ConfigDict

DEFAULT_CONTENT_PREFIX = "Default:"


class Reference(BaseModel):
    """
    Path pointer to another resource.

    ``explicit_null`` distinguishes "deliberately points at nothing" from an
    unset reference with an empty path.
    """
    model_config = ConfigDict(validate_assignment=True)

    path: Optional[str] = None
    explicit_null: bool = False

    @classmethod
    def to(cls, path: str) -> 'Reference':
        return cls(path=path)

    @classmethod
    def null(cls) -> 'Reference':
        return cls(explicit_null=True)

    def is_default_content(self, prefix: str = DEFAULT_CONTENT_PREFIX) -> bool:
        """Built-in content lives behind a virtual path prefix, never on disk"""
        return bool(self.path) and self.path.startswith(prefix)

    @property
    def is_empty(self) -> bool:
        return not self.path


class ReferenceHolder(ABC):
    """Objects that know which references they embed."""

    @abstractmethod
    def iter_references(self) -> Iterator[Reference]:
        """Yield every reference reachable from this object"""
        pass


def iter_model_references(model: BaseModel, _seen: Optional[Set[int]] = None) -> Iterator[Reference]:
    """Walk the declared fields of a pydantic model."""
    seen = _seen if _seen is not None else set()
    for name in type(model).model_fields:
        yield from iter_references(getattr(model, name, None), seen)


def iter_references(obj: Any, _seen: Optional[Set[int]] = None) -> Iterator[Reference]:
    """
    Yield every reference reachable from an object graph.

    Handles references themselves, reference holders, pydantic models,
    mappings and the builtin collections. Each object is visited once,
    so shared references are reported once and cycles terminate.
    """
    if obj is None or isinstance(obj, (str, bytes, int, float, bool)):
        return

    seen = _seen if _seen is not None else set()
    if id(obj) in seen:
        return
    seen.add(id(obj))

    if isinstance(obj, Reference):
        yield obj
    elif isinstance(obj, ReferenceHolder):
        for reference in obj.iter_references():
            if id(reference) not in seen:
                seen.add(id(reference))
                yield reference
    elif isinstance(obj, BaseModel):
        yield from iter_model_references(obj, seen)
    elif isinstance(obj, dict):
        for value in obj.values():
            yield from iter_references(value, seen)
    elif isinstance(obj, (list, tuple, set, frozenset)):
        for item in obj:
            yield from iter_references(item, seen)

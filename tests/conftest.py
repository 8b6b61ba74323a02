"""Shared fixtures: a synthetic heap with exact, deterministic sizes."""

from __future__ import annotations

from typing import Any

import pytest

from heapreach.model import ObjectModel
from heapreach.references import ReferenceResolver


class Handle:
    """Opaque object living on the synthetic heap."""

    __slots__ = ("name", "size", "refs", "__weakref__")

    def __init__(self, name: str, size: int = 8, refs: list[Any] | None = None) -> None:
        self.name = name
        self.size = size
        self.refs = list(refs or [])

    def __repr__(self) -> str:
        return f"Handle({self.name!r})"


class HandleModel(ObjectModel):
    """Object model where only Handles have a size and references."""

    def shallow_size(self, obj: Any) -> int:
        return obj.size if isinstance(obj, Handle) else 0

    def direct_references(self, obj: Any) -> list[Any]:
        return list(obj.refs) if isinstance(obj, Handle) else []


class HandleResolver(ReferenceResolver):
    def resolve(self, parent: Any, child: Any) -> str | None:
        if isinstance(child, Handle):
            return f".{child.name}"
        return None


@pytest.fixture
def model() -> HandleModel:
    return HandleModel()


@pytest.fixture
def resolver() -> HandleResolver:
    return HandleResolver()


@pytest.fixture
def diamond() -> dict[str, Handle]:
    """root(10) -> a(20), b(30); a -> shared(5); b -> shared; shared -> leaf(1)."""
    leaf = Handle("leaf", 1)
    shared = Handle("shared", 5, [leaf])
    a = Handle("a", 20, [shared])
    b = Handle("b", 30, [shared])
    root = Handle("root", 10, [a, b])
    return {"root": root, "a": a, "b": b, "shared": shared, "leaf": leaf}

"""Containers that compare their members by identity rather than equality."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, MutableMapping, MutableSet
from typing import Any


class IdentitySet(MutableSet):
    """A set of objects keyed by ``id()``.

    Members are held strongly, so an id can never be recycled by a new object
    while the set is alive. Unhashable objects (lists, dicts) are fine.
    """

    __slots__ = ("_objects",)

    def __init__(self, iterable: Iterable[Any] = ()) -> None:
        self._objects: dict[int, Any] = {}
        for obj in iterable:
            self.add(obj)

    def __contains__(self, obj: object) -> bool:
        return id(obj) in self._objects

    def __iter__(self) -> Iterator[Any]:
        return iter(self._objects.values())

    def __len__(self) -> int:
        return len(self._objects)

    def add(self, obj: Any) -> None:
        self._objects[id(obj)] = obj

    def discard(self, obj: Any) -> None:
        self._objects.pop(id(obj), None)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(<{len(self)} objects>)"


class IdentityMap(MutableMapping):
    """A mapping whose keys are compared by identity."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: dict[int, tuple[Any, Any]] = {}

    def __getitem__(self, key: Any) -> Any:
        try:
            return self._items[id(key)][1]
        except KeyError:
            raise KeyError(key) from None

    def __setitem__(self, key: Any, value: Any) -> None:
        self._items[id(key)] = (key, value)

    def __delitem__(self, key: Any) -> None:
        try:
            del self._items[id(key)]
        except KeyError:
            raise KeyError(key) from None

    def __contains__(self, key: object) -> bool:
        return id(key) in self._items

    def __iter__(self) -> Iterator[Any]:
        return (key for key, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(<{len(self)} entries>)"

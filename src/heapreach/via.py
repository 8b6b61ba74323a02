"""Discovered-via maps: who referenced what first, and the path back to a root."""

from __future__ import annotations

from typing import Any

from .identity import IdentityMap, IdentitySet
from .references import DEFAULT_RESOLVER, UNRESOLVED, ReferenceResolver


def describe(obj: Any) -> str:
    """Root descriptor used at the start of every path, e.g. ``<dict at 0x7f...>``."""
    return f"<{type(obj).__qualname__} at 0x{id(obj):016x}>"


class ViaMap(IdentityMap):
    """Maps each discovered object to the object it was first discovered through.

    Pass an instance as ``via=`` to :func:`heapreach.usage.walk`, then use
    :meth:`path` to explain why an object is retained.
    """

    __slots__ = ("resolver",)

    def __init__(self, resolver: ReferenceResolver | None = None) -> None:
        super().__init__()
        self.resolver = resolver or DEFAULT_RESOLVER

    def path_to(self, obj: Any, root: Any = None) -> list[Any]:
        """Return the chain of objects from the root down to *obj*."""
        chain = [obj]
        visited = IdentitySet((obj,))
        current = obj
        while current in self:
            if root is not None and current is root:
                break
            parent = self[current]
            if parent in visited:
                break
            chain.append(parent)
            visited.add(parent)
            current = parent

        chain.reverse()
        return chain

    def path(self, obj: Any, root: Any = None) -> str:
        """Format the chain leading to *obj* as ``<root descriptor>label label ...``."""
        chain = self.path_to(obj, root)
        parts = [describe(chain[0])]
        for parent, child in zip(chain, chain[1:]):
            parts.append(self.resolver.resolve(parent, child) or UNRESOLVED)
        return "".join(parts)

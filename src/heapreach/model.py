"""Object model: how big an object is and what it points at."""

from __future__ import annotations

import gc
import sys
import weakref
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

_PROXY_TYPES = (weakref.ProxyType, weakref.CallableProxyType)


class ObjectModel(ABC):
    """Abstract view of the heap consumed by the traversal code."""

    @abstractmethod
    def shallow_size(self, obj: Any) -> int:
        """Bytes owned by *obj* itself, excluding anything it references."""
        ...

    @abstractmethod
    def direct_references(self, obj: Any) -> Iterable[Any]:
        """Objects *obj* references directly (may be empty)."""
        ...

    def is_internal_proxy(self, obj: Any) -> bool:
        """True for runtime artefacts that must never be traversed."""
        return False


class PythonObjectModel(ObjectModel):
    """CPython heap introspection via :mod:`sys` and :mod:`gc`."""

    def shallow_size(self, obj: Any) -> int:
        try:
            return sys.getsizeof(obj)
        except TypeError:
            # Objects with a broken or foreign __sizeof__ still count, just as zero bytes.
            return 0

    def direct_references(self, obj: Any) -> Iterable[Any]:
        return gc.get_referents(obj)

    def is_internal_proxy(self, obj: Any) -> bool:
        # type() rather than isinstance(): proxies forward __class__ to their referent.
        return type(obj) in _PROXY_TYPES


DEFAULT_MODEL = PythonObjectModel()

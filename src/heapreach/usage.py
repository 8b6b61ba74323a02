"""Usage accounting and reachability walks."""

from __future__ import annotations

import json
import logging
import threading
import types
from collections import deque
from collections.abc import Iterable, MutableMapping, MutableSet
from dataclasses import dataclass
from typing import Any

from .identity import IdentitySet
from .model import DEFAULT_MODEL, ObjectModel
from .utils import format_bytes

log = logging.getLogger(__name__)

DEFAULT_IGNORE: tuple[type, ...] = (
    # Classes and modules are effectively global, never per-instance memory.
    type,
    types.ModuleType,
    # Code, closures and execution state anchor large amounts of unrelated state.
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.MethodWrapperType,
    types.WrapperDescriptorType,
    types.MethodDescriptorType,
    types.CodeType,
    types.CellType,
    types.FrameType,
    types.TracebackType,
    types.GeneratorType,
    types.CoroutineType,
    types.AsyncGeneratorType,
    threading.Thread,
    # Process-wide singletons.
    types.NoneType,
    types.NotImplementedType,
    types.EllipsisType,
)


@dataclass(slots=True)
class Usage:
    """Accumulated size in bytes and object count."""

    size: int = 0
    count: int = 0

    def add(self, other: Usage) -> Usage:
        """Merge *other* into this usage in place."""
        self.size += other.size
        self.count += other.count
        return self

    def record(self, allocation: Any) -> Usage:
        """Account for one allocation record."""
        self.size += allocation.byte_size
        self.count += 1
        return self

    def __add__(self, other: Usage) -> Usage:
        if not isinstance(other, Usage):
            return NotImplemented
        return Usage(self.size + other.size, self.count + other.count)

    def __iadd__(self, other: Usage) -> Usage:
        if not isinstance(other, Usage):
            return NotImplemented
        # Leaves self untouched; use add() to accumulate in place.
        return self + other

    def __getitem__(self, key: str) -> int:
        if key not in ("size", "count"):
            raise KeyError(key)
        return getattr(self, key)

    def __str__(self) -> str:
        return f"{format_bytes(self.size)} in {self.count} allocations"

    def as_dict(self) -> dict[str, int]:
        return {"size": self.size, "count": self.count}

    def to_json(self) -> str:
        return json.dumps(self.as_dict())


def as_kinds(ignore: type | Iterable[type] | None) -> tuple[type, ...]:
    """Normalise an ignore argument into a tuple usable with issubclass()."""
    if ignore is None:
        return ()
    if isinstance(ignore, type):
        return (ignore,)
    return tuple(ignore)


def is_ignored(obj: Any, kinds: tuple[type, ...]) -> bool:
    # type() rather than isinstance(): a proxy's forwarded __class__ must not match.
    return issubclass(type(obj), kinds)


def walk(
    root: Any,
    seen: MutableSet | None = None,
    ignore: type | Iterable[type] | None = DEFAULT_IGNORE,
    via: MutableMapping | None = None,
    model: ObjectModel | None = None,
) -> Usage:
    """Compute the usage of *root* and everything reachable from it.

    The walk is breadth first. The root is always counted; every other object
    is counted at most once across all calls sharing the same *seen* set, and
    objects whose kind (or any base class) is in *ignore* are neither counted,
    expanded nor added to *seen*.

    Args:
        root: Object to start from. ``None`` is treated as absence and
            yields an empty usage.
        seen: Identity set of objects already accounted for. Updated in place.
        ignore: Kinds to skip when discovered through a reference.
        via: Identity map updated with ``child -> first parent`` edges.
            Existing entries are never overwritten.
        model: Object model used for sizes and references.

    Returns:
        Usage covering every object counted by this call.
    """
    if root is None:
        return Usage()

    if seen is None:
        seen = IdentitySet()
    if model is None:
        model = DEFAULT_MODEL
    kinds = as_kinds(ignore)

    size = 0
    count = 0
    queue: deque[Any] = deque((root,))
    is_root = True

    while queue:
        obj = queue.popleft()
        if is_root:
            is_root = False
        elif obj in seen:
            # Queued twice through different parents before being processed.
            continue

        seen.add(obj)
        count += 1
        size += model.shallow_size(obj)

        for reference in model.direct_references(obj) or ():
            if reference is None or is_ignored(reference, kinds):
                continue
            if model.is_internal_proxy(reference):
                continue
            if reference in seen:
                continue
            if via is not None and reference not in via:
                via[reference] = obj
            queue.append(reference)

    log.debug(
        "walked %s",
        type(root).__name__,
        extra={"count": count, "size": size},
    )
    return Usage(size, count)

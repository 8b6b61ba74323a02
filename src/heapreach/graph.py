"""Depth-bounded usage trees over a live object graph."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, MutableSet
from typing import Any

from .errors import InvalidDepthError
from .identity import IdentitySet
from .model import DEFAULT_MODEL, ObjectModel
from .references import DEFAULT_RESOLVER, UNRESOLVED, ReferenceResolver
from .usage import DEFAULT_IGNORE, Usage, as_kinds, is_ignored, walk
from .via import describe

log = logging.getLogger(__name__)

_UNSET: Any = object()


def validate_depth(depth: Any) -> int | None:
    """Return *depth* if it is ``None`` (unlimited) or a non-negative int."""
    if depth is None:
        return None
    if isinstance(depth, bool) or not isinstance(depth, int):
        raise InvalidDepthError(f"depth must be a non-negative integer or None, got {depth!r}")
    if depth < 0:
        raise InvalidDepthError(f"depth must be >= 0, got {depth}")
    return depth


class Node:
    """One object in a usage tree.

    ``usage`` is the object's own usage, except for leaves cut off by the depth
    limit, whose usage already covers their whole unexpanded subtree.
    """

    __slots__ = ("object", "usage", "parent", "children", "reference", "_total_usage", "_path")

    def __init__(
        self,
        object: Any,
        usage: Usage | None = None,
        parent: Node | None = None,
        reference: str | None = _UNSET,
    ) -> None:
        self.object = object
        self.usage = usage if usage is not None else Usage()
        self.parent = parent
        self.children: dict[str, Node] | None = None

        if reference is _UNSET:
            reference = DEFAULT_RESOLVER.resolve(parent.object, object) if parent is not None else None
        self.reference = reference

        self._total_usage: Usage | None = None
        self._path: str | None = None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def add(self, child: Node) -> str:
        """Attach *child* and return the key it was stored under."""
        if self.children is None:
            self.children = {}

        key = child.reference or UNRESOLVED
        if key in self.children:
            suffix = len(self.children)
            while f"{key}#{suffix}" in self.children:
                suffix += 1
            key = f"{key}#{suffix}"

        self.children[key] = child
        return key

    def total_usage(self) -> Usage:
        """Usage of this node plus all of its descendants.

        Computed once; each call returns a fresh copy of the cached total.
        """
        if self._total_usage is None:
            self._compute_total_usage()
        return Usage(self._total_usage.size, self._total_usage.count)

    def _compute_total_usage(self) -> None:
        # Post-order over an explicit stack; deep trees would exceed the recursion limit.
        stack: list[tuple[Node, bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if node._total_usage is not None:
                continue
            if expanded or not node.children:
                total = Usage(node.usage.size, node.usage.count)
                for child in (node.children or {}).values():
                    total.add(child._total_usage)
                node._total_usage = total
            else:
                stack.append((node, True))
                stack.extend((child, False) for child in node.children.values())

    def ancestors(self) -> Iterator[Node]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def path(self) -> str:
        """Root descriptor followed by each edge label down to this node (cached)."""
        if self._path is None:
            pending = []
            node = self
            while node is not None and node._path is None:
                pending.append(node)
                node = node.parent

            prefix = node._path if node is not None else None
            for item in reversed(pending):
                if prefix is None:
                    prefix = describe(item.object)
                else:
                    prefix += item.reference or UNRESOLVED
                item._path = prefix
        return self._path

    def _own_dict(self) -> dict[str, Any]:
        return {
            "path": self.path(),
            "object": {"type": type(self.object).__qualname__, "id": id(self.object)},
            "usage": self.usage.as_dict(),
        }

    def as_dict(self) -> dict[str, Any]:
        """Structured form; leaves omit ``total_usage`` and ``children``."""
        data = self._own_dict()
        stack = [(self, data)]
        while stack:
            node, entry = stack.pop()
            if not node.children:
                continue
            entry["total_usage"] = node.total_usage().as_dict()
            children = entry["children"] = {}
            for key, child in node.children.items():
                children[key] = child._own_dict()
                stack.append((child, children[key]))
        return data

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.as_dict(), **kwargs)

    def __repr__(self) -> str:
        return f"<Node {self.path()} usage=({self.usage})>"


def build(
    root: Any,
    depth: int | None = None,
    seen: MutableSet | None = None,
    ignore: type | Iterable[type] | None = DEFAULT_IGNORE,
    model: ObjectModel | None = None,
    resolver: ReferenceResolver | None = None,
) -> Node:
    """Build a usage tree rooted at *root*.

    Children are expanded depth first in reference order, so when several
    parents share an object only the first one to reach it gets a subtree;
    later references are skipped. Once *depth* is exhausted the node becomes a
    leaf whose usage is a full :func:`~heapreach.usage.walk` of its subtree, so
    ``total_usage()`` is the same whatever the depth.

    Args:
        root: Object at the top of the tree.
        depth: Number of levels to expand below the root, or ``None`` for no limit.
        seen: Identity set shared with other walks or builds. Updated in place.
        ignore: Kinds never counted or expanded.
        model: Object model used for sizes and references.
        resolver: Labels each edge; defaults to :class:`ReferenceResolver`.

    Raises:
        InvalidDepthError: If *depth* is not ``None`` or a non-negative integer.
    """
    depth = validate_depth(depth)
    if seen is None:
        seen = IdentitySet()
    if model is None:
        model = DEFAULT_MODEL
    if resolver is None:
        resolver = DEFAULT_RESOLVER
    kinds = as_kinds(ignore)

    if depth == 0 or root is None:
        return Node(root, walk(root, seen, kinds, model=model), reference=None)

    top = _expand(root, None, None, seen, model)
    stack: list[tuple[Node, Iterator[Any], int | None]] = [
        (top, iter(model.direct_references(root) or ()), depth),
    ]

    while stack:
        parent, references, remaining = stack[-1]

        child = _next_child(references, seen, kinds, model)
        if child is _UNSET:
            stack.pop()
            continue

        label = resolver.resolve(parent.object, child)
        child_depth = None if remaining is None else remaining - 1

        if child_depth == 0:
            parent.add(Node(child, walk(child, seen, kinds, model=model), parent, label))
            continue

        node = _expand(child, parent, label, seen, model)
        parent.add(node)
        stack.append((node, iter(model.direct_references(child) or ()), child_depth))

    log.debug("built usage tree for %s", type(root).__name__, extra={"depth": depth})
    return top


def _expand(obj: Any, parent: Node | None, label: str | None, seen: MutableSet, model: ObjectModel) -> Node:
    seen.add(obj)
    return Node(obj, Usage(model.shallow_size(obj), 1), parent, label)


def _next_child(references: Iterator[Any], seen: MutableSet, kinds: tuple[type, ...], model: ObjectModel) -> Any:
    # Filters are applied lazily: an earlier sibling's subtree may have claimed the object.
    for reference in references:
        if reference is None or is_ignored(reference, kinds):
            continue
        if model.is_internal_proxy(reference):
            continue
        if reference in seen:
            continue
        return reference
    return _UNSET

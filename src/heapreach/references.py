"""Human-readable labels for the edge between a parent and a child object."""

from __future__ import annotations

import functools
import gc
import types
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

UNRESOLVED = "<??>"

_MISSING: Any = object()


def _slot_names(cls: type) -> list[str]:
    names: list[str] = []
    for klass in cls.__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name not in ("__dict__", "__weakref__") and name not in names:
                names.append(name)
    return names


def _is_namedtuple(obj: Any) -> bool:
    return isinstance(obj, tuple) and isinstance(getattr(type(obj), "_fields", None), tuple)


def _class_attribute(cls: type, name: str) -> Any:
    for klass in cls.__mro__:
        if name in klass.__dict__:
            return klass.__dict__[name]
    return _MISSING


def _code_objects(value: Any) -> Iterator[types.CodeType]:
    if isinstance(value, (staticmethod, classmethod)):
        value = value.__func__
    if isinstance(value, property):
        for accessor in (value.fget, value.fset, value.fdel):
            yield from _code_objects(accessor)
        return

    code = getattr(value, "__code__", None) if isinstance(value, types.FunctionType) else None
    pending = [code] if code is not None else []
    while pending:
        code = pending.pop()
        yield code
        pending.extend(const for const in code.co_consts if isinstance(const, types.CodeType))


@functools.lru_cache(maxsize=1024)
def _code_names(cls: type) -> tuple[str, ...]:
    """Attribute names the class's own code refers to, in definition order."""
    names: dict[str, None] = {}
    for klass in cls.__mro__:
        for value in list(klass.__dict__.values()):
            for code in _code_objects(value):
                names.update(dict.fromkeys(code.co_names))
    return tuple(names)


def _peek(parent: Any, name: str) -> Any:
    """Read an instance attribute without creating ``__dict__`` or running descriptor code."""
    attribute = _class_attribute(type(parent), name)
    if attribute is not _MISSING and hasattr(type(attribute), "__get__"):
        return _MISSING
    try:
        value = object.__getattribute__(parent, name)
    except AttributeError:
        return _MISSING
    if value is attribute:
        return _MISSING
    return value


def _owns(parent: Any, candidate: dict) -> bool:
    matched = False
    for name, value in candidate.items():
        if type(name) is not str:
            return False
        attribute = _class_attribute(type(parent), name)
        if attribute is not _MISSING and hasattr(type(attribute), "__get__"):
            continue
        try:
            current = object.__getattribute__(parent, name)
        except AttributeError:
            return False
        if current is not value:
            return False
        matched = True
    return matched


def _existing_dict(parent: Any) -> dict | None:
    """The instance ``__dict__``, only if it already exists.

    Reading ``__dict__`` on an instance whose attributes are stored inline
    allocates a new dict, so the dict is taken from the object's GC referents
    and accepted only when every attribute it holds reads back identically.
    """
    if not type(parent).__dictoffset__:
        return None
    for referent in gc.get_referents(parent):
        if type(referent) is dict and _owns(parent, referent):
            return referent
    return None


class ReferenceResolver:
    """Describe how a parent object holds a reference to a child.

    Checks run from most to least specific and the first match wins:

    - the instance ``__dict__`` itself (``.__dict__``)
    - instance attributes, then ``__slots__`` (``.name``)
    - named tuple fields (``.field``)
    - sequence elements (``[index]``)
    - mapping values (``[key]``) and mapping keys (``(key: key)``)

    Anything else (sets, C-level containers, closures) resolves to ``None``.

    Resolving never changes the parent: attribute names come from the code of
    its class and from an instance ``__dict__`` that already exists, so an
    attribute set from outside the class on an instance without a dict stays
    unresolved.
    """

    def resolve(self, parent: Any, child: Any) -> str | None:
        label = self._attribute(parent, child)
        if label is not None:
            return label

        if _is_namedtuple(parent):
            for name, value in zip(type(parent)._fields, parent):
                if value is child:
                    return f".{name}"

        if isinstance(parent, (list, tuple)) or (
            isinstance(parent, Sequence) and not isinstance(parent, (str, bytes, bytearray, memoryview))
        ):
            label = self._index(parent, child)
            if label is not None:
                return label

        if isinstance(parent, (dict, Mapping)):
            return self._mapping(parent, child)

        return None

    def _attribute(self, parent: Any, child: Any) -> str | None:
        for name in _code_names(type(parent)):
            if _peek(parent, name) is child:
                return f".{name}"

        attributes = _existing_dict(parent)
        if attributes is not None:
            if attributes is child:
                return ".__dict__"
            for name, value in attributes.items():
                if value is child:
                    return f".{name}"

        for name in _slot_names(type(parent)):
            try:
                value = object.__getattribute__(parent, name)
            except AttributeError:
                continue
            if value is child:
                return f".{name}"

        return None

    def _index(self, parent: Sequence[Any], child: Any) -> str | None:
        try:
            for index, element in enumerate(parent):
                if element is child:
                    return f"[{index}]"
        except Exception:
            # A user-defined sequence may fail to iterate; the label is only a display aid.
            return None
        return None

    def _mapping(self, parent: Mapping[Any, Any], child: Any) -> str | None:
        try:
            items = list(parent.items())
        except Exception:
            return None
        for key, value in items:
            if value is child:
                return f"[{key!r}]"
            if key is child:
                return f"(key: {key!r})"
        return None


DEFAULT_RESOLVER = ReferenceResolver()

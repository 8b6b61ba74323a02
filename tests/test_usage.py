"""Tests for Usage accounting and reachability walks."""

from __future__ import annotations

import json
import sys
import threading
import weakref

import pytest

from conftest import Handle
from heapreach.identity import IdentitySet
from heapreach.usage import DEFAULT_IGNORE, Usage, walk
from heapreach.via import ViaMap


class Pair:
    __slots__ = ("left", "right")

    def __init__(self, left: object, right: object) -> None:
        self.left = left
        self.right = right


class Base:
    __slots__ = ()


class Derived(Base):
    __slots__ = ()


class Opaque:
    def __sizeof__(self) -> int:
        raise TypeError("size not available")


class Record:
    pass


# ── Usage ────────────────────────────────────────────────────────────


def test_usage_is_zero_by_default() -> None:
    usage = Usage()
    assert usage.size == 0
    assert usage.count == 0


def test_usage_add_accumulates_in_place() -> None:
    usage = Usage()
    other = Usage(100, 1)
    for _ in range(3):
        result = usage.add(other)
    assert result is usage
    assert usage == Usage(300, 3)
    assert other == Usage(100, 1)


def test_usage_plus_returns_new_value() -> None:
    a = Usage(10, 1)
    b = Usage(20, 2)
    assert a + b == Usage(30, 3)
    assert a == Usage(10, 1)

    a += b
    assert a == Usage(30, 3)


def test_usage_inplace_plus_leaves_shared_value_alone() -> None:
    shared = Usage(10, 1)
    total = shared
    total += Usage(5, 1)

    assert total == Usage(15, 2)
    assert shared == Usage(10, 1)


def test_usage_merge_is_order_independent() -> None:
    parts = [Usage(1, 1), Usage(20, 2), Usage(300, 3)]
    forward = Usage()
    backward = Usage()
    for part in parts:
        forward.add(part)
    for part in reversed(parts):
        backward.add(part)
    assert forward == backward == Usage(321, 6)


def test_usage_record_counts_one_allocation() -> None:
    class Allocation:
        byte_size = 48

    usage = Usage().record(Allocation()).record(Allocation())
    assert usage == Usage(96, 2)


def test_usage_item_access() -> None:
    usage = Usage(4096, 10)
    assert usage["size"] == 4096
    assert usage["count"] == 10
    with pytest.raises(KeyError):
        usage["memory"]


def test_usage_str() -> None:
    assert str(Usage(2048, 5)) == "2.00 KiB in 5 allocations"
    assert str(Usage()) == "0 B in 0 allocations"


def test_usage_as_dict_and_json() -> None:
    usage = Usage(8192, 20)
    assert usage.as_dict() == {"size": 8192, "count": 20}
    assert json.loads(usage.to_json()) == {"size": 8192, "count": 20}


# ── walk: basic shapes ───────────────────────────────────────────────


def test_walk_single_object() -> None:
    obj = object()
    assert walk(obj) == Usage(sys.getsizeof(obj), 1)


def test_walk_empty_list_counts_only_the_list() -> None:
    root: list[object] = []
    assert walk(root) == Usage(sys.getsizeof(root), 1)


def test_walk_list_of_two_objects() -> None:
    root = [object(), object()]
    usage = walk(root)
    assert usage.count == 3
    assert usage.size == sys.getsizeof(root) + 2 * sys.getsizeof(object())


def test_walk_deeply_nested_lists() -> None:
    assert walk([[[[object()]]]]).count == 5


def test_walk_slotted_instance_counts_attributes() -> None:
    usage = walk(Pair(object(), object()))
    assert usage.count == 3
    assert usage.size > 0


def test_walk_dict_counts_values() -> None:
    first, second = object(), object()
    seen = IdentitySet()
    usage = walk({"key": first, "another": second}, seen)
    assert usage.count >= 3
    assert first in seen
    assert second in seen


def test_walk_string_is_a_single_object() -> None:
    text = "Hello, World!" * 100
    usage = walk(text)
    assert usage.count == 1
    assert usage.size > 1300


def test_walk_none_is_absence() -> None:
    seen = IdentitySet()
    assert walk(None, seen) == Usage(0, 0)
    assert len(seen) == 0


def test_walk_none_reference_is_not_counted() -> None:
    assert walk([None, None]).count == 1


def test_walk_number_counts_as_one() -> None:
    usage = walk(12345678901234567890)
    assert usage.count == 1


def test_walk_object_without_size_counts_zero_bytes() -> None:
    assert walk(Opaque()) == Usage(0, 1)


# ── walk: sharing and cycles ─────────────────────────────────────────


def test_walk_counts_shared_object_once() -> None:
    shared = object()
    assert walk([shared, shared]).count == 2
    assert walk([shared, shared, shared]).count == 2


def test_walk_self_reference_counts_once() -> None:
    array: list[object] = []
    array.append(array)
    usage = walk(array)
    assert usage.count == 1
    assert usage.size == sys.getsizeof(array)


def test_walk_larger_cycle_terminates() -> None:
    a: list[object] = []
    b: list[object] = [a]
    c: list[object] = [b]
    a.append(c)
    assert walk(a).count == 3


def test_walk_exact_sizes_on_synthetic_heap(model, diamond) -> None:
    usage = walk(diamond["root"], model=model)
    assert usage == Usage(10 + 20 + 30 + 5 + 1, 5)


def test_walk_long_chain_does_not_recurse(model) -> None:
    node = Handle("tail", 1)
    for index in range(20000):
        node = Handle(f"n{index}", 1, [node])
    assert walk(node, model=model) == Usage(20001, 20001)


# ── walk: seen set ───────────────────────────────────────────────────


def test_walk_shares_seen_across_calls() -> None:
    seen = IdentitySet()
    shared = object()
    array1 = [shared]
    array2 = [shared]

    assert walk(array1, seen).count == 2
    assert walk(array2, seen).count == 1


def test_walk_respects_prepopulated_seen() -> None:
    existing = object()
    seen = IdentitySet([existing])
    assert walk([existing, object()], seen).count == 2


def test_walk_updates_seen() -> None:
    seen = IdentitySet()
    root = [object(), object()]
    walk(root, seen)
    assert len(seen) == 3
    assert root in seen


def test_walk_always_counts_the_root() -> None:
    seen = IdentitySet()
    root = [object()]
    assert walk(root, seen).count == 2
    # The root is measured again; everything below it was already accounted for.
    assert walk(root, seen) == Usage(sys.getsizeof(root), 1)


def test_walk_shared_seen_on_synthetic_heap(model, diamond) -> None:
    seen = IdentitySet()
    first = walk(diamond["a"], seen, model=model)
    second = walk(diamond["b"], seen, model=model)
    assert first == Usage(26, 3)
    assert second == Usage(30, 1)


# ── walk: ignore ─────────────────────────────────────────────────────


def test_walk_skips_types_by_default() -> None:
    assert walk([object(), str]).count == 2


@pytest.mark.parametrize(
    "ignored",
    [
        lambda: 0,
        len,
        Record().__init__,
        sys,
        threading.current_thread(),
        (i for i in range(3)),
        ...,
        NotImplemented,
    ],
    ids=["function", "builtin", "method-wrapper", "module", "thread", "generator", "ellipsis", "notimplemented"],
)
def test_walk_default_ignore_kinds(ignored: object) -> None:
    assert walk([ignored]).count == 1


def test_walk_ignores_bound_methods() -> None:
    assert walk([Handle("h").__repr__, Record().__repr__]).count == 1


def test_walk_custom_ignore() -> None:
    array = [object(), "ignored string", object()]
    assert walk(array, ignore=(type, str)).count == 3


def test_walk_ignore_matches_subclasses() -> None:
    array = [Base(), Derived()]
    assert walk(array, ignore=(type, Base)).count == 1


def test_walk_ignore_accepts_single_type() -> None:
    assert walk(["text", object()], ignore=str).count == 2


def test_walk_ignore_does_not_apply_to_root() -> None:
    assert walk(Derived(), ignore=(type, Base)).count == 1


def test_walk_ignored_objects_are_not_added_to_seen() -> None:
    seen = IdentitySet()
    text = "ignored string"
    walk([text], seen, ignore=(type, str))
    assert len(seen) == 1
    assert text not in seen


def test_walk_applies_seen_and_ignore_together() -> None:
    existing = object()
    seen = IdentitySet([existing])
    array = [existing, "ignored", object()]
    assert walk(array, seen, ignore=(type, str)).count == 2


def test_walk_empty_ignore_counts_everything() -> None:
    assert walk(["text", object()], ignore=()).count == 3
    assert walk(["text", object()], ignore=None).count == 3


def test_default_ignore_contains_meta_objects() -> None:
    assert type in DEFAULT_IGNORE
    assert threading.Thread in DEFAULT_IGNORE


def test_walk_skips_weak_proxies() -> None:
    target = Record()
    proxy = weakref.proxy(target)
    assert walk([proxy]).count == 1


# ── walk: via ────────────────────────────────────────────────────────


def test_walk_records_first_discoverer() -> None:
    shared = object()
    array1 = [shared]
    array2 = [shared]
    root = [array1, array2]
    via = ViaMap()

    walk(root, via=via)

    assert via[array1] is root
    assert via[array2] is root
    assert via[shared] is array1
    assert root not in via


def test_walk_via_first_discoverer_survives_later_calls() -> None:
    shared = object()
    array1 = [shared]
    array2 = [shared]
    via = ViaMap()

    walk(array1, via=via)
    walk(array2, via=via)

    assert via[shared] is array1


def test_walk_via_excludes_ignored_objects() -> None:
    text = "ignored"
    via = ViaMap()
    usage = walk([text, object()], via=via, ignore=(type, str))
    assert usage.count == 2
    assert text not in via
    assert len(via) == 1

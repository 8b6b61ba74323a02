"""Group allocation records by a classification key."""

from __future__ import annotations

import sys
from collections import defaultdict
from collections.abc import Callable, Hashable
from typing import Any, TextIO

from .usage import Usage
from .utils import sanitize_text

Metric = Callable[[Any], Hashable]


def _json_key(key: Any) -> Any:
    if key is None or isinstance(key, (bool, int, float)):
        return key
    if isinstance(key, (str, bytes, bytearray)):
        return sanitize_text(key)
    return sanitize_text(str(key))


def _order(key: Any) -> tuple[str, str]:
    # Keys of mixed types (None next to strings) must still sort deterministically.
    return (type(key).__name__, str(key))


class Aggregate:
    """Per-key usage totals for one classification metric."""

    def __init__(self, title: str, metric: Metric) -> None:
        self.title = title
        self.metric = metric
        self.total = Usage()
        self.totals: defaultdict[Any, Usage] = defaultdict(Usage)

    def add(self, allocation: Any) -> None:
        key = self.metric(allocation)
        self.totals[key].record(allocation)
        self.total.record(allocation)

    def totals_by(self, key: str = "size") -> list[tuple[Any, Usage]]:
        """Totals in ascending order of *key* (``size`` or ``count``)."""
        return sorted(self.totals.items(), key=lambda item: (item[1][key], _order(item[0])))

    def print(
        self,
        io: TextIO | None = None,
        limit: int = 10,
        title: str | None = None,
        level: int = 2,
    ) -> None:
        io = io or sys.stderr
        io.write(f"{'#' * level} {title or self.title} ({self.total})\n\n")

        for metric, total in list(reversed(self.totals_by("size")))[:limit]:
            io.write(f"- ({total})\t{sanitize_text(metric)}\n")

        io.write("\n")

    def as_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "total": self.total.as_dict(),
            "totals": [
                [_json_key(metric), total.as_dict()]
                for metric, total in reversed(self.totals_by("size"))
            ],
        }


class ValueAggregate:
    """One :class:`Aggregate` per distinct record value (e.g. string contents)."""

    def __init__(self, title: str, metric: Metric) -> None:
        self.title = title
        self.metric = metric
        self.aggregates: dict[Any, Aggregate] = {}

    def add(self, allocation: Any) -> None:
        value = allocation.value
        if value is None:
            return

        aggregate = self.aggregates.get(value)
        if aggregate is None:
            aggregate = self.aggregates[value] = Aggregate(repr(sanitize_text(value)), self.metric)
        aggregate.add(allocation)

    def aggregates_by(self, key: str = "count") -> list[tuple[Any, Aggregate]]:
        return sorted(
            self.aggregates.items(),
            key=lambda item: (item[1].total[key], _order(item[0])),
        )

    def print(self, io: TextIO | None = None, limit: int = 10, level: int = 2) -> None:
        io = io or sys.stderr
        io.write(f"{'#' * level} {self.title}\n\n")

        for _, aggregate in list(reversed(self.aggregates_by("count")))[:limit]:
            aggregate.print(io, level=level + 1)

    def as_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "aggregates": [
                [_json_key(value), aggregate.as_dict()]
                for value, aggregate in reversed(self.aggregates_by("count"))
            ],
        }

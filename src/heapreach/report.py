"""Memory profile reports built from allocation records."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import Any, TextIO

from .aggregate import Aggregate, ValueAggregate
from .allocation import AllocationRecord, Cache
from .config import settings
from .usage import Usage


class Report:
    """Allocated/retained totals plus a set of aggregates over the same records."""

    def __init__(self, aggregates: Iterable[Aggregate | ValueAggregate]) -> None:
        self.total_allocated = Usage()
        self.total_retained = Usage()
        self.aggregates = list(aggregates)

    @classmethod
    def general(cls, cache: Cache | None = None) -> Report:
        """The standard breakdown: package, file, location and type, plus strings."""
        cache = cache or Cache()

        def package(record: AllocationRecord) -> str:
            return cache.guess_package(record.source_file)

        def location(record: AllocationRecord) -> str:
            return cache.lookup_location(record.source_file, record.source_line)

        return cls(
            [
                Aggregate("By Package", package),
                Aggregate("By File", lambda record: record.source_file),
                Aggregate("By Location", location),
                Aggregate("By Type", lambda record: record.type_name),
                ValueAggregate("Strings By Package", package),
                ValueAggregate("Strings By Location", location),
            ]
        )

    def add(self, record: AllocationRecord) -> None:
        self.total_allocated.record(record)
        if record.retained:
            self.total_retained.record(record)

        for aggregate in self.aggregates:
            aggregate.add(record)

    def concat(self, records: Iterable[AllocationRecord]) -> Report:
        for record in records:
            self.add(record)
        return self

    def print(self, io: TextIO | None = None, limit: int | None = None) -> None:
        io = io or sys.stderr
        limit = settings.report_limit if limit is None else limit

        io.write("# Memory Profile\n\n")
        io.write(f"- Total Allocated: ({self.total_allocated})\n")
        io.write(f"- Total Retained: ({self.total_retained})\n\n")

        for aggregate in self.aggregates:
            aggregate.print(io, limit=limit)

    def as_dict(self) -> dict[str, Any]:
        return {
            "total_allocated": self.total_allocated.as_dict(),
            "total_retained": self.total_retained.as_dict(),
            "aggregates": [aggregate.as_dict() for aggregate in self.aggregates],
        }

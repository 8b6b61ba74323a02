"""Allocation records produced by an external sampler, and their file format."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from .config import settings
from .errors import RecordFormatError

log = logging.getLogger(__name__)

_SITE_PACKAGES = re.compile(r"[/\\](?:site|dist)-packages[/\\](?P<name>[^/\\]+)")
_STDLIB = re.compile(r"[/\\]python3(?:\.\d+)?[/\\](?P<module>[^/\\.]+)")
_APPLICATION = re.compile(r"(?P<app>[^/\\]+[/\\](?:bin|app|lib|src))[/\\]")


@dataclass(slots=True)
class AllocationRecord:
    """One sampled allocation."""

    type_name: str
    source_file: str
    source_line: int
    byte_size: int
    value: str | None = None
    retained: bool = False

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any], cache: Cache | None = None) -> AllocationRecord:
        value = data.get("value")
        if value is not None:
            value = str(value)
            if cache is not None:
                value = cache.lookup_value(value)
        return cls(
            type_name=str(data.get("type_name") or "<<Unknown>>"),
            source_file=str(data.get("source_file") or "(no name)"),
            source_line=int(data.get("source_line") or 0),
            byte_size=int(data.get("byte_size") or 0),
            value=value,
            retained=bool(data.get("retained", False)),
        )


class Cache:
    """Memoised classification helpers shared by all records of a report."""

    def __init__(self, value_limit: int | None = None) -> None:
        self.value_limit = settings.value_limit if value_limit is None else value_limit
        self._packages: dict[str, str] = {}
        self._locations: dict[tuple[str, int], str] = {}
        self._values: dict[str, str] = {}

    def guess_package(self, path: str) -> str:
        """Best guess at the distribution or application owning *path*."""
        package = self._packages.get(path)
        if package is None:
            if match := _SITE_PACKAGES.search(path):
                package = match["name"].removesuffix(".py")
            elif match := _STDLIB.search(path):
                package = match["module"]
            elif match := _APPLICATION.search(path):
                package = match["app"].replace("\\", "/")
            else:
                package = "other"
            self._packages[path] = package
        return package

    def lookup_location(self, file: str, line: int) -> str:
        key = (file, line)
        location = self._locations.get(key)
        if location is None:
            location = self._locations[key] = f"{file}:{line}"
        return location

    def lookup_value(self, value: str) -> str:
        """Shorten *value* to the configured limit, interning the result."""
        cached = self._values.get(value)
        if cached is None:
            cached = self._values[value] = value[: self.value_limit]
        return cached


def load_records(path: str | Path, cache: Cache | None = None) -> Iterator[AllocationRecord]:
    """Yield records from a JSON Lines file.

    Undecodable bytes are kept as surrogate escapes so a single bad string
    value does not make the whole file unreadable.
    """
    path = Path(path)
    count = 0
    with path.open("r", encoding="utf-8", errors="surrogateescape") as fh:
        for lineno, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            try:
                data = json.loads(line)
                if not isinstance(data, dict):
                    raise TypeError(f"expected an object, got {type(data).__name__}")
                record = AllocationRecord.from_dict(data, cache)
            except (ValueError, TypeError) as exc:
                raise RecordFormatError(f"{path}:{lineno}: {exc}") from exc
            count += 1
            yield record

    log.info("loaded %d allocation records", count, extra={"path": str(path), "count": count})


def dump_records(records: Iterable[AllocationRecord], path: str | Path) -> int:
    """Write *records* as JSON Lines and return how many were written."""
    count = 0
    with Path(path).open("w", encoding="utf-8", errors="surrogateescape") as fh:
        for record in records:
            fh.write(json.dumps(record.as_dict(), ensure_ascii=False) + "\n")
            count += 1
    return count

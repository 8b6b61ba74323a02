from __future__ import annotations

import os
from dataclasses import dataclass, field


def _get_str(name: str, default: str) -> str:
    return os.getenv(name, default)


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_depth(name: str, default: int | None) -> int | None:
    """Read a depth budget; ``unlimited`` (or an empty value) means no limit."""
    raw = os.getenv(name)
    if raw is None:
        return default
    if raw.strip().lower() in {"", "unlimited", "none"}:
        return None
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


@dataclass(frozen=True, slots=True)
class Settings:
    service_name: str = field(default_factory=lambda: _get_str("SERVICE_NAME", "heapreach"))

    # Tree depth used by `heapreach inspect` when --depth is not given
    default_depth: int | None = field(default_factory=lambda: _get_depth("HEAPREACH_DEPTH", 3))

    # Report settings
    report_limit: int = field(default_factory=lambda: _get_int("HEAPREACH_REPORT_LIMIT", 10))
    value_limit: int = field(default_factory=lambda: _get_int("HEAPREACH_VALUE_LIMIT", 64))


settings = Settings()

"""Shared utility functions."""

from __future__ import annotations

import os
import sys
from typing import Any

UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB", "ZiB", "YiB")


def format_bytes(n: int | float) -> str:
    """Convert bytes to a binary-prefixed string (e.g. 1.50 KiB).

    Zero is rendered as ``0 B``; everything at or above 1024**8 stays in YiB.
    """
    if n == 0:
        return "0 B"
    scale = 0
    while scale < len(UNITS) - 1 and n >= 1024 ** (scale + 1):
        scale += 1
    return f"{n / 1024**scale:.2f} {UNITS[scale]}"


def sanitize_text(value: Any) -> Any:
    """Make text safe to encode as UTF-8.

    Bytes are decoded with backslash escapes, strings carrying lone surrogates
    (e.g. from ``surrogateescape`` decoding) have them escaped. Anything else is
    returned unchanged.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", "backslashreplace")
    if isinstance(value, str):
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            try:
                raw = value.encode("utf-8", "surrogateescape")
            except UnicodeEncodeError:
                return value.encode("utf-8", "backslashreplace").decode("utf-8")
            return raw.decode("utf-8", "backslashreplace")
    return value


def output_text(data: str, output_file: str | None = None) -> None:
    """Write *data* to *output_file* (append) or stdout."""
    if output_file:
        mode = "a" if os.path.exists(output_file) else "w"
        with open(output_file, mode, encoding="utf-8") as f:
            f.write(data + "\n")
    else:
        sys.stdout.write(data + "\n")
        sys.stdout.flush()

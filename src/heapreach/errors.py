from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AppError(Exception):
    """A controlled, user-facing error.

    Use this for bad targets, unreadable inputs, etc. The CLI prints it and
    exits with ``exit_code``.
    """

    code: str
    message: str
    exit_code: int = 1

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}"


class InvalidDepthError(ValueError):
    """Depth budget is not ``None`` or a non-negative integer."""


class RecordFormatError(ValueError):
    """An allocation record file contains a line that cannot be decoded."""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any


_CONFIGURED = False

# Structured fields the walk, graph and command modules pass through ``extra=``.
EXTRA_KEYS = ("target", "path", "depth", "count", "size", "code")

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Attach structured extras if present
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        # Targets and paths can be arbitrary objects
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


def configure_logging(*, level: str | None = None, fmt: str | None = None, force: bool = False) -> None:
    """Idempotent logging setup.

    - Logs go to stderr, so they never mix with command output on stdout.
    - Respects LOG_LEVEL (default WARNING) and LOG_FORMAT (``json`` or ``text``).
    - ``force`` replaces an earlier configuration, e.g. after ``--verbose``.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    log_level = (level or os.getenv("LOG_LEVEL") or "WARNING").upper()
    log_format = (fmt or os.getenv("LOG_FORMAT") or "json").lower()

    root = logging.getLogger()
    root.setLevel(log_level)

    # Replace handlers so repeated in-process CLI runs do not stack them.
    root.handlers.clear()

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(log_level)
    if log_format == "text":
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    else:
        handler.setFormatter(JsonFormatter())
    root.addHandler(handler)

    _CONFIGURED = True

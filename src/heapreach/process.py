"""Process-level memory figures, to put a measured object graph in context."""

from __future__ import annotations

import contextlib
from typing import Any

import psutil

from .utils import format_bytes


def process_memory(pid: int | None = None) -> dict[str, Any]:
    """Return RSS/VMS (and USS when permitted) for *pid*, default this process."""
    try:
        proc = psutil.Process(pid)
        with proc.oneshot():
            mem_info = proc.memory_info()
            info: dict[str, Any] = {
                "pid": proc.pid,
                "rss": mem_info.rss,
                "rss_human": format_bytes(mem_info.rss),
                "vms": mem_info.vms,
                "vms_human": format_bytes(mem_info.vms),
            }

            # memory_full_info may require elevated privileges
            with contextlib.suppress(psutil.AccessDenied, AttributeError):
                mem_full = proc.memory_full_info()
                if hasattr(mem_full, "uss"):
                    info["uss"] = mem_full.uss
                    info["uss_human"] = format_bytes(mem_full.uss)
    except psutil.NoSuchProcess:
        return {"pid": pid, "error": "No such process"}
    except psutil.AccessDenied:
        return {"pid": pid, "error": "Access denied"}

    return info

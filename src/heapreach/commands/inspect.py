"""Object graph inspection command handler."""

from __future__ import annotations

import argparse
import importlib
import logging
from typing import Any

from ..errors import AppError
from ..formatters import get_formatter
from ..graph import build
from ..process import process_memory
from ..usage import walk
from ..utils import output_text

log = logging.getLogger(__name__)


def resolve_target(target: str) -> Any:
    """Import ``module`` or ``module:attr.path`` and return the object it names."""
    module_name, _, attr_path = target.partition(":")
    if not module_name:
        raise AppError("invalid_target", f"Target {target!r} must look like module or module:attr", 2)

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise AppError("target_not_found", f"Cannot import {module_name!r}: {exc}") from exc

    for name in filter(None, attr_path.split(".")):
        try:
            obj = getattr(obj, name)
        except AttributeError as exc:
            raise AppError("target_not_found", f"{target!r} has no attribute {name!r}") from exc

    return obj


def cmd_inspect(args: argparse.Namespace) -> int:
    """Measure everything reachable from an importable object."""
    target = resolve_target(args.target)
    log.info("inspecting target", extra={"target": args.target, "depth": args.depth})

    document: dict[str, Any] = {"target": args.target, "depth": args.depth}
    if args.summary:
        document["usage"] = walk(target).as_dict()
    else:
        node = build(target, depth=args.depth)
        document["usage"] = node.total_usage().as_dict()
        document["graph"] = node.as_dict()
    document["process"] = process_memory()

    formatter = get_formatter(args.format)
    output_text(formatter.format(document), args.output)
    return 0

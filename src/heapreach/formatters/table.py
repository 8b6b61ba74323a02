"""Table formatter for human-readable output."""

from __future__ import annotations

from typing import Any

from ..utils import format_bytes
from .base import BaseFormatter


def _usage_text(usage: dict[str, Any]) -> str:
    return f"{format_bytes(usage.get('size', 0))} in {usage.get('count', 0)} allocations"


class TableFormatter(BaseFormatter):
    """Format an inspection document as a header plus an indented usage tree."""

    def __init__(self, max_children: int = 20) -> None:
        self.max_children = max_children

    def format(self, document: dict[str, Any]) -> str:
        lines: list[str] = []

        # Header
        lines.append(f"{'=' * 60}")
        lines.append(f"  Usage Tree - {document.get('target', 'N/A')}")
        lines.append(f"{'=' * 60}")

        if "usage" in document:
            lines.append(f"  Total:     {_usage_text(document['usage'])}")
        depth = document.get("depth")
        lines.append(f"  Depth:     {'unlimited' if depth is None else depth}")

        process = document.get("process")
        if process:
            if "error" in process:
                lines.append(f"  Process:   {process['error']}")
            else:
                lines.append(
                    f"  Process:   RSS {process.get('rss_human', 'N/A')} / VMS {process.get('vms_human', 'N/A')}"
                )

        graph = document.get("graph")
        if graph:
            lines.append("")
            lines.append(f"{graph['path']}  ({_usage_text(self._node_usage(graph))})")
            self._render_children(graph, "", lines)

        lines.append("")
        lines.append(f"{'=' * 60}")

        return "\n".join(lines)

    @staticmethod
    def _node_usage(node: dict[str, Any]) -> dict[str, Any]:
        return node.get("total_usage") or node.get("usage", {})

    def _render_children(self, node: dict[str, Any], indent: str, lines: list[str]) -> None:
        # Explicit stack of pending rows; unlimited-depth trees can be deeper than the recursion limit.
        stack: list[tuple[str, str, dict[str, Any] | None, str]] = []
        self._push_children(stack, node, indent)

        while stack:
            branch_indent, label, child, child_indent = stack.pop()
            lines.append(f"{branch_indent}{label}")
            if child is not None:
                self._push_children(stack, child, child_indent)

    def _push_children(self, stack: list, node: dict[str, Any], indent: str) -> None:
        children = list((node.get("children") or {}).items())
        hidden = max(0, len(children) - self.max_children)
        children = children[: self.max_children]

        rows = []
        for index, (key, child) in enumerate(children):
            last = index == len(children) - 1 and not hidden
            branch = "└── " if last else "├── "
            label = f"{branch}{key}  ({_usage_text(self._node_usage(child))})"
            rows.append((indent, label, child, indent + ("    " if last else "│   ")))

        if hidden:
            rows.append((indent, f"└── ... and {hidden} more", None, ""))

        stack.extend(reversed(rows))

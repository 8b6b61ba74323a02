"""CLI interface for heapreach."""

from __future__ import annotations

import argparse
import logging
import sys

from .commands.inspect import cmd_inspect
from .commands.report import cmd_report
from .commands.version import cmd_version
from .config import settings
from .errors import AppError
from .logging import configure_logging

log = logging.getLogger(__name__)


def _depth(value: str) -> int | None:
    """argparse type for --depth: a non-negative integer or ``unlimited``."""
    if value.strip().lower() == "unlimited":
        return None
    try:
        depth = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid depth: {value!r}") from None
    if depth < 0:
        raise argparse.ArgumentTypeError("depth must be >= 0")
    return depth


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser."""
    parser = argparse.ArgumentParser(
        prog="heapreach",
        description="Measure memory retained by live Python objects",
    )

    # Global options
    parser.add_argument(
        "--version",
        "-V",
        action="store_true",
        help="Show version and exit",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Log progress to stderr (-v info, -vv debug)",
    )

    subparsers = parser.add_subparsers(dest="command")

    def add_output_args(p: argparse.ArgumentParser, default_format: str) -> None:
        p.add_argument(
            "--format",
            "-f",
            choices=["table", "json"],
            default=default_format,
            help=f"Output format (default: {default_format})",
        )
        p.add_argument(
            "--output",
            "-o",
            type=str,
            default=None,
            help="Output file (default: stdout)",
        )

    # inspect command
    default_depth = "unlimited" if settings.default_depth is None else settings.default_depth
    p_inspect = subparsers.add_parser(
        "inspect",
        help="Measure everything reachable from an importable object",
    )
    p_inspect.add_argument(
        "target",
        help="Object to measure, as module or module:attr.path",
    )
    p_inspect.add_argument(
        "--depth",
        "-d",
        type=_depth,
        default=settings.default_depth,
        help=f"Tree depth, or 'unlimited' (default: {default_depth})",
    )
    p_inspect.add_argument(
        "--summary",
        "-s",
        action="store_true",
        help="Only report the total, without building a tree",
    )
    add_output_args(p_inspect, "table")
    p_inspect.set_defaults(func=cmd_inspect)

    # report command
    p_report = subparsers.add_parser(
        "report",
        help="Aggregate allocation records (JSON Lines) into a memory profile",
    )
    p_report.add_argument(
        "paths",
        nargs="+",
        help="Allocation record files",
    )
    p_report.add_argument(
        "--limit",
        "-n",
        type=int,
        default=settings.report_limit,
        help=f"Entries per section (default: {settings.report_limit})",
    )
    add_output_args(p_report, "table")
    p_report.set_defaults(func=cmd_report)

    # version command
    p_version = subparsers.add_parser(
        "version",
        help="Show version",
    )
    p_version.set_defaults(func=cmd_version)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        configure_logging(level="DEBUG" if args.verbose > 1 else "INFO", force=True)
    else:
        configure_logging()

    if args.version:
        raise SystemExit(cmd_version(args))

    if not args.command:
        parser.print_help()
        raise SystemExit(0)

    try:
        rc = int(args.func(args))
    except AppError as exc:
        log.debug("command failed", extra={"code": exc.code})
        sys.stderr.write(f"Error: {exc.message}\n")
        rc = exc.exit_code

    raise SystemExit(rc)

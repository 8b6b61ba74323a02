"""Allocation report command handler."""

from __future__ import annotations

import argparse
import io
import logging

from ..allocation import Cache, load_records
from ..errors import AppError, RecordFormatError
from ..formatters import JsonFormatter
from ..report import Report
from ..utils import output_text

log = logging.getLogger(__name__)


def cmd_report(args: argparse.Namespace) -> int:
    """Aggregate allocation record files into a single memory profile."""
    if args.limit < 0:
        raise AppError("invalid_argument", "--limit must be >= 0", 2)

    cache = Cache()
    report = Report.general(cache)

    for path in args.paths:
        try:
            report.concat(load_records(path, cache))
        except RecordFormatError as exc:
            raise AppError("bad_record", str(exc)) from exc
        except OSError as exc:
            raise AppError("unreadable_input", f"Cannot read {path}: {exc.strerror or exc}") from exc

    log.info("report ready", extra={"count": report.total_allocated.count})

    if args.format == "json":
        output_text(JsonFormatter().format(report.as_dict()), args.output)
    else:
        buffer = io.StringIO()
        report.print(buffer, limit=args.limit)
        output_text(buffer.getvalue().rstrip("\n"), args.output)

    return 0

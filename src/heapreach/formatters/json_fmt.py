"""JSON formatter."""

from __future__ import annotations

import json
from typing import Any

from .base import BaseFormatter


class JsonFormatter(BaseFormatter):
    """Format document as JSON."""

    def format(self, document: dict[str, Any]) -> str:
        return json.dumps(document, ensure_ascii=False, indent=2)

"""JSON renderer for API/export.

All reports of one run are collected and written as a single JSON document,
keyed by domain, when the summary is rendered.
"""

import json
import sys
from typing import Any

from ..analyzers.protocol import OutputDescriptor
from .base import BaseRenderer, serialize_value


class JSONRenderer(BaseRenderer):
    """
    Renders output to JSON format.

    Each report is exported twice: as its plain dict (``report``) and as
    semantic rows (``rows``) so clients can apply their own theme.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.results: dict[str, dict[str, Any]] = {}

    def render(
        self, descriptor: OutputDescriptor, result: Any, data: dict[str, Any] | None = None
    ) -> None:
        """
        Collect one report for JSON export.

        Args:
            descriptor: Output descriptor
            result: The report
            data: Serialized report; derived from ``result`` when omitted
        """
        self.collect_errors_warnings(descriptor)

        report = data if data is not None else serialize_value(result)
        domain = report.get("domain") or descriptor.title
        self.results[domain] = {
            "title": descriptor.title,
            "category": descriptor.category,
            "report": report,
            "rows": self.serialize_rows(descriptor),
        }

    def render_summary(self) -> None:
        """Output JSON to stdout."""
        output = {
            "results": self.results,
            "summary": self.summary_dict(),
        }

        json.dump(output, sys.stdout, indent=2, default=str)
        print()  # Newline at end

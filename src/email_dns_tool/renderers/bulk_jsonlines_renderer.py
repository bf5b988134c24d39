"""JSON Lines renderer for bulk domain checks.

This renderer outputs one JSON object per domain (JSON Lines format),
suitable for streaming bulk results.
"""

import json
import sys
from typing import Any

from ..analyzers.protocol import OutputDescriptor
from .base import BaseRenderer, serialize_value


class BulkJSONLinesRenderer(BaseRenderer):
    """
    Renders bulk domain checks to JSON Lines format.

    Each domain is output as a single JSON line as soon as its summary is
    rendered, allowing streaming processing of large domain lists.

    JSON Lines format: http://jsonlines.org/
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.current_domain: str | None = None
        self.report: dict[str, Any] | None = None

    def set_current_domain(self, domain: str) -> None:
        """
        Set current domain being checked.

        Args:
            domain: Domain name
        """
        self.current_domain = domain
        self.report = None
        # Reset error/warning tracking for new domain
        self.all_errors = []
        self.all_warnings = []

    def render(
        self, descriptor: OutputDescriptor, result: Any, data: dict[str, Any] | None = None
    ) -> None:
        """
        Collect the report of the current domain.

        Args:
            descriptor: Output descriptor
            result: The report
            data: Serialized report; derived from ``result`` when omitted
        """
        self.collect_errors_warnings(descriptor)
        self.report = data if data is not None else serialize_value(result)
        if self.current_domain is None:
            self.current_domain = self.report.get("domain")

    def render_summary(self) -> None:
        """Output single JSON line for current domain."""
        output = {
            "domain": self.current_domain,
            "report": self.report,
            "summary": self.summary_dict(),
        }

        # Single line JSON (no indentation for JSON Lines format)
        json.dump(output, sys.stdout, default=str)
        print()  # Newline to separate records

"""Base renderer.

Renderers only know about the OutputDescriptor protocol and, for machine
readable formats, the report's serialized dict. They never inspect the
analyzer itself.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from ..analyzers.protocol import OutputDescriptor, OutputRow, VerbosityLevel


class BaseRenderer(ABC):
    """
    Base class for all output renderers.

    Renderers interpret OutputDescriptor semantic styles and render them
    according to their output format (CLI, JSON, JSON Lines).
    """

    def __init__(self, verbosity: VerbosityLevel = VerbosityLevel.NORMAL):
        """
        Initialize renderer.

        Args:
            verbosity: Output verbosity level
        """
        self.verbosity = verbosity
        self.all_errors: list[tuple[str, str]] = []  # (section, message)
        self.all_warnings: list[tuple[str, str]] = []  # (section, message)

    @abstractmethod
    def render(
        self, descriptor: OutputDescriptor, result: Any, data: dict[str, Any] | None = None
    ) -> None:
        """
        Render one report.

        Args:
            descriptor: Output structure description
            result: The report itself (for the quiet summary)
            data: JSON-serializable form of the report, if the caller has one
        """
        ...

    @abstractmethod
    def render_summary(self) -> None:
        """Render summary of collected errors and warnings."""
        ...

    def collect_errors_warnings(self, descriptor: OutputDescriptor) -> None:
        """
        Collect errors and warnings from descriptor for the summary.

        Severity is the source of truth; the section name is the category.
        """
        for row in descriptor.rows:
            if row.severity == "error":
                self.all_errors.append((row.section_name or descriptor.title, _message(row)))
            elif row.severity == "warning":
                self.all_warnings.append((row.section_name or descriptor.title, _message(row)))

    @staticmethod
    def serialize_rows(descriptor: OutputDescriptor) -> list[dict[str, Any]]:
        """Rows with their semantic styling preserved."""
        return [
            {
                "label": row.label,
                "value": serialize_value(row.value),
                "style_class": row.style_class,
                "severity": row.severity,
                "section_type": row.section_type,
                "section_name": row.section_name,
                "verbosity": row.verbosity.value,
                "icon": row.icon,
            }
            for row in descriptor.rows
        ]

    def summary_dict(self) -> dict[str, Any]:
        return {
            "total_errors": len(self.all_errors),
            "total_warnings": len(self.all_warnings),
            "errors": [{"category": cat, "message": msg} for cat, msg in self.all_errors],
            "warnings": [{"category": cat, "message": msg} for cat, msg in self.all_warnings],
        }


def _message(row: OutputRow) -> str:
    if row.value and row.label:
        return f"{row.label}: {row.value}"
    return str(row.value) if row.value else str(row.label)


def serialize_value(value: Any) -> Any:
    """
    Serialize value to JSON-compatible format.

    Args:
        value: Value to serialize

    Returns:
        JSON-serializable value
    """
    if value is None:
        return None

    if isinstance(value, Enum):
        return value.value

    if isinstance(value, (str, int, float, bool)):
        return value

    if isinstance(value, (list, tuple, set)):
        return [serialize_value(v) for v in value]

    if isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}

    if hasattr(value, "__dict__"):
        return {k: serialize_value(v) for k, v in value.__dict__.items()}

    # Fallback: convert to string
    return str(value)

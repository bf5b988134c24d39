"""Protocol definitions shared by analyzers and renderers.

Analyzers describe WHAT to show as a list of semantic ``OutputRow``s;
renderers decide HOW (colours, icons, JSON) from the style hints.
"""

from abc import abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

_VERBOSITY_ORDER = ("quiet", "normal", "verbose", "debug")


class VerbosityLevel(Enum):
    """Output verbosity levels."""

    QUIET = "quiet"
    NORMAL = "normal"
    VERBOSE = "verbose"
    DEBUG = "debug"

    @property
    def rank(self) -> int:
        return _VERBOSITY_ORDER.index(self.value)

    def __ge__(self, other):
        """Allow >= comparison for verbosity filtering."""
        if not isinstance(other, VerbosityLevel):
            return NotImplemented
        return self.rank >= other.rank

    def __gt__(self, other):
        if not isinstance(other, VerbosityLevel):
            return NotImplemented
        return self.rank > other.rank


@dataclass
class OutputRow:
    """
    Renderer-agnostic output row.

    Example:
        OutputRow(
            label="SPF Record",
            value="v=spf1 include:_spf.google.com ~all",
            style_class="success",  # renderer picks the colour
            section_name="SPF",
            icon="check",
        )
    """

    label: str | None = None
    value: Any = None

    # Semantic hints, not concrete styles
    style_class: str = "neutral"  # success, error, warning, info, highlight, muted, neutral
    severity: str = "info"  # error, warning, info, debug

    section_type: str = "key_value"  # key_value, list, heading, text
    section_name: str | None = None

    verbosity: VerbosityLevel = VerbosityLevel.NORMAL

    show_if_empty: bool = True
    icon: str | None = None  # check, cross, warning, info, arrow, envelope, terminal
    format_as: str | None = None  # code


@dataclass
class OutputDescriptor:
    """
    Describes how to render a report at different verbosity levels.

    Decouples the analyzer from renderers: the analyzer only lists rows,
    renderers interpret them.
    """

    rows: list[OutputRow] = field(default_factory=list)

    title: str = ""
    category: str = "email"

    # One-line summary used in quiet mode
    quiet_summary: Callable[[Any], str] | None = None

    def add_row(self, label: str | None = None, value: Any = None, **kwargs) -> "OutputDescriptor":
        """Append a row; returns self for chaining."""
        self.rows.append(OutputRow(label=label, value=value, **kwargs))
        return self

    def filter_by_verbosity(self, verbosity: VerbosityLevel) -> list[OutputRow]:
        """Rows visible at the given verbosity level."""
        return [row for row in self.rows if verbosity >= row.verbosity]

    def sections(self, verbosity: VerbosityLevel) -> dict[str | None, list[OutputRow]]:
        """Visible rows grouped by section name, in first-appearance order."""
        grouped: dict[str | None, list[OutputRow]] = {}
        for row in self.filter_by_verbosity(verbosity):
            grouped.setdefault(row.section_name, []).append(row)
        return grouped


@runtime_checkable
class ReportAnalyzer(Protocol):
    """
    Contract between an analyzer and the CLI/renderers.

    Example:
        class EmailAuthAnalyzer:
            analyzer_id = "email-auth"
            name = "Email Authentication"
            config_class = ResolverConfig

            def analyze(self, domain, config, dkim_selector=None) -> EmailAuthReport: ...
            def describe_output(self, result) -> OutputDescriptor: ...
            def to_dict(self, result) -> dict: ...
    """

    analyzer_id: str
    name: str
    description: str
    category: str
    icon: str
    config_class: type

    @abstractmethod
    def analyze(self, domain: str, config: Any, dkim_selector: str | None = None) -> Any:
        """Run the analysis and return a result with errors/warnings lists."""
        ...

    @abstractmethod
    def describe_output(self, result: Any) -> OutputDescriptor:
        """Semantic, theme-agnostic description of the result."""
        ...

    @abstractmethod
    def to_dict(self, result: Any) -> dict[str, Any]:
        """JSON-serializable form of the result."""
        ...

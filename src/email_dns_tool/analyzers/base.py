"""Base result type for analyzers."""

from dataclasses import dataclass, field


@dataclass
class BaseAnalysisResult:
    """
    Base class for analysis results.

    ``errors`` and ``warnings`` collect messages from every part of the
    analysis so renderers and the CLI exit code can inspect them in one
    place.
    """

    domain: str
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

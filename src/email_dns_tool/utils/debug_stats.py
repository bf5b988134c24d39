"""Debug statistics tracking for DNS queries.

A process-wide tracker counts every DNS question the clients ask when debug
mode is enabled. It is off by default and only ever written to, so it never
influences the outcome of a report.
"""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import ClassVar

logger = logging.getLogger(__name__)


@dataclass
class DNSQueryStats:
    """Statistics for DNS queries."""

    # Count by record type (MX, TXT, A, AAAA, PTR)
    by_type: dict[str, int] = field(default_factory=lambda: defaultdict(int))

    total: int = 0
    successful: int = 0

    # Unavailable answers (timeouts, HTTP failures, SERVFAIL ...)
    failed: int = 0
    failure_reasons: dict[str, int] = field(default_factory=lambda: defaultdict(int))


class DebugStatsTracker:
    """
    Global statistics tracker for debug mode.

    Singleton; ``get_stats_tracker()`` returns the shared instance.
    """

    _instance: ClassVar["DebugStatsTracker | None"] = None
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        self.dns = DNSQueryStats()
        self._enabled = False

    @classmethod
    def get_instance(cls) -> "DebugStatsTracker":
        """Get singleton instance (thread-safe)."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def enable(self) -> None:
        """Enable statistics tracking."""
        self._enabled = True
        logger.debug("Debug statistics tracking enabled")

    def disable(self) -> None:
        """Disable statistics tracking."""
        self._enabled = False

    def is_enabled(self) -> bool:
        """Check if statistics tracking is enabled."""
        return self._enabled

    def reset(self) -> None:
        """Reset all statistics."""
        self.dns = DNSQueryStats()
        logger.debug("Debug statistics reset")

    def record_dns_query(
        self,
        domain: str,
        record_type: str,
        success: bool = True,
        error: str | None = None,
    ) -> None:
        """
        Record a DNS query.

        Args:
            domain: Name queried
            record_type: Type of DNS record (MX, TXT, A, AAAA, PTR)
            success: Whether an answer (possibly empty) came back
            error: Reason the query was unavailable
        """
        if not self._enabled:
            return

        self.dns.total += 1
        self.dns.by_type[record_type] += 1

        if success:
            self.dns.successful += 1
        else:
            self.dns.failed += 1
            # Group by the reason's leading words so timeouts don't fan out per value
            self.dns.failure_reasons[" ".join((error or "unknown").split()[:2])] += 1

    def get_summary(self) -> str:
        """
        Get formatted summary of statistics.

        Returns:
            Formatted string with statistics
        """
        if not self._enabled:
            return "Debug statistics tracking disabled"

        lines = ["\n" + "=" * 70, "DEBUG STATISTICS SUMMARY", "=" * 70]

        if self.dns.total == 0:
            lines.append("\nDNS Queries: None")
        else:
            lines.append("\nDNS Queries:")
            lines.append(f"  Total:      {self.dns.total}")
            lines.append(f"  Successful: {self.dns.successful}")
            lines.append(f"  Failed:     {self.dns.failed}")

            lines.append("\n  By record type:")
            for record_type in sorted(self.dns.by_type):
                lines.append(f"    {record_type:8s}: {self.dns.by_type[record_type]:3d}")

            if self.dns.failure_reasons:
                lines.append("\n  Failure reasons:")
                for reason in sorted(self.dns.failure_reasons):
                    lines.append(f"    {reason}: {self.dns.failure_reasons[reason]}")

        lines.append("=" * 70)
        return "\n".join(lines)


def get_stats_tracker() -> DebugStatsTracker:
    """Get the global statistics tracker instance."""
    return DebugStatsTracker.get_instance()

"""Shared test fixtures.

DNS is never touched over the network: ``FakeDnsClient`` answers from an
in-memory table keyed by ``(name, record_type)`` and records every question.
"""

import pytest

from email_dns_tool.analyzers.dns_client import AnswerSet, DnsAnswer, Unavailable
from email_dns_tool.utils.debug_stats import get_stats_tracker


class FakeDnsClient:
    """In-memory DnsQueryClient."""

    def __init__(self, records=None, failures=None, raises=None):
        """
        Args:
            records: {(name, type): [data, ...]}; missing keys answer NXDOMAIN
            failures: {(name, type): reason} answered with Unavailable
            raises: {(name, type): exception} raised from query()
        """
        self.records = records or {}
        self.failures = failures or {}
        self.raises = raises or {}
        self.queries: list[tuple[str, str]] = []
        self.closed = False

    async def query(self, name, record_type):
        key = (name, record_type)
        self.queries.append(key)
        if key in self.raises:
            raise self.raises[key]
        if key in self.failures:
            return Unavailable(self.failures[key])
        if key not in self.records:
            return AnswerSet(status=3)
        return AnswerSet(
            answers=tuple(
                DnsAnswer(name=name, record_type=record_type, ttl=300, data=data)
                for data in self.records[key]
            )
        )

    async def aclose(self):
        self.closed = True

    def queried(self, name, record_type):
        return (name, record_type) in self.queries


def txt(value: str) -> str:
    """Quote a TXT value the way DNS presentation format does."""
    return f'"{value}"'


@pytest.fixture
def fake_dns():
    """Factory for FakeDnsClient instances."""
    return FakeDnsClient


@pytest.fixture(autouse=True)
def reset_stats_tracker():
    """Keep the global debug tracker disabled and empty between tests."""
    tracker = get_stats_tracker()
    tracker.disable()
    tracker.reset()
    yield
    tracker.disable()
    tracker.reset()

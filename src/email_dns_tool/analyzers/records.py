"""Decoders turning raw DNS answers into typed records.

All functions here are pure and total: a failed query, a missing answer set
or an unparsable entry produce an empty result, never an exception.
"""

import logging
from dataclasses import dataclass

from .dns_client import AnswerSet, QueryResult
from .dns_utils import strip_root_dot

logger = logging.getLogger(__name__)


@dataclass
class MxRecord:
    """
    A mail exchanger.

    ``ip_addresses`` and ``ptr_names`` stay ``None`` until the host enricher
    has looked the exchange up.
    """

    priority: int
    exchange: str
    ttl: int = 0
    ip_addresses: list[str] | None = None
    ptr_names: list[str] | None = None

    @property
    def is_null(self) -> bool:
        """RFC 7505 null MX ("0 .") - the domain accepts no mail."""
        return self.exchange == ""


def _answers(result: QueryResult | None) -> tuple:
    if isinstance(result, AnswerSet):
        return result.answers
    return ()


def decode_mx(result: QueryResult | None) -> list[MxRecord]:
    """
    Decode MX answers, ordered by ascending priority.

    Ties keep the order the DNS server returned them in.

    Args:
        result: Answer of an MX query

    Returns:
        List of MX records (empty when nothing usable was returned)
    """
    records = []
    for answer in _answers(result):
        parts = answer.data.split()
        if len(parts) != 2:
            logger.debug(f"Skipping malformed MX data: {answer.data!r}")
            continue
        try:
            priority = int(parts[0])
        except ValueError:
            logger.debug(f"Skipping MX with non-numeric priority: {answer.data!r}")
            continue
        records.append(
            MxRecord(priority=priority, exchange=strip_root_dot(parts[1]), ttl=answer.ttl)
        )

    return sorted(records, key=lambda record: record.priority)


def dequote(value: str) -> str:
    """Strip one leading and one trailing double quote, if present."""
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def decode_txt(result: QueryResult | None) -> list[str]:
    """Decode TXT answers into their (dequoted) string values."""
    return [dequote(answer.data) for answer in _answers(result)]


def decode_names(result: QueryResult | None) -> list[str]:
    """Decode answers whose data is a host name or address (A, AAAA, PTR)."""
    return [strip_root_dot(answer.data) for answer in _answers(result)]

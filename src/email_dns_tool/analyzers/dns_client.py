"""DNS query clients.

Every client answers one question, ``query(name, record_type)``, with either a
normalized :class:`AnswerSet` or an :class:`Unavailable` marker. Clients never
raise and never retry; callers treat ``Unavailable`` as "no data" and carry on
with degraded results.

Two transports are provided:

- :class:`DohClient` speaks the JSON flavour of DNS-over-HTTPS
  (Cloudflare / Google style ``?name=...&type=...``) over ``httpx``.
- :class:`ResolverClient` uses dnspython's asyncio resolver over classic DNS.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import dns.asyncresolver
import dns.exception
import dns.resolver
import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..constants import (
    DEFAULT_DNS_TIMEOUT,
    DEFAULT_DOH_ENDPOINT,
    DEFAULT_USER_AGENT,
    DNS_RECORD_TYPES,
    DNS_STATUS_NOERROR,
    DNS_STATUS_NXDOMAIN,
    DOH_CONTENT_TYPE,
)
from ..utils.debug_stats import get_stats_tracker
from .dns_utils import create_resolver, strip_root_dot

if TYPE_CHECKING:
    from ..config import ResolverConfig

logger = logging.getLogger(__name__)


# ============================================================================
# Result Models
# ============================================================================


@dataclass(frozen=True)
class DnsAnswer:
    """One decoded resource record."""

    name: str
    record_type: str
    ttl: int
    data: str


@dataclass(frozen=True)
class AnswerSet:
    """
    Answer to a single DNS question.

    ``status`` is the DNS response code: 0 (NOERROR) or 3 (NXDOMAIN). An
    NXDOMAIN answer never carries records.
    """

    status: int = DNS_STATUS_NOERROR
    answers: tuple[DnsAnswer, ...] = ()


@dataclass(frozen=True)
class Unavailable:
    """The question could not be answered (transport, timeout or server failure)."""

    reason: str


QueryResult = AnswerSet | Unavailable


class DnsQueryClient(Protocol):
    """Anything that can answer ``(name, record_type)`` questions."""

    async def query(self, name: str, record_type: str) -> QueryResult: ...


# ============================================================================
# DNS-over-HTTPS wire format
# ============================================================================


class DohAnswer(BaseModel):
    """One entry of the ``Answer`` array."""

    model_config = ConfigDict(extra="ignore")

    name: str
    type: int
    ttl: int = Field(default=0, alias="TTL")
    data: str


class DohResponse(BaseModel):
    """JSON body returned by a DoH resolver."""

    model_config = ConfigDict(extra="ignore")

    status: int = Field(alias="Status")
    answer: list[DohAnswer] = Field(default_factory=list, alias="Answer")


def _record(name: str, record_type: str, result: QueryResult) -> QueryResult:
    """Log and count a finished query, then hand the result back."""
    tracker = get_stats_tracker()
    if isinstance(result, Unavailable):
        logger.debug(f"DNS {record_type} {name} unavailable: {result.reason}")
        tracker.record_dns_query(name, record_type, success=False, error=result.reason)
    else:
        logger.debug(
            f"DNS {record_type} {name}: status={result.status}, {len(result.answers)} answer(s)"
        )
        tracker.record_dns_query(name, record_type, success=True)
    return result


# ============================================================================
# Clients
# ============================================================================


class DohClient:
    """
    DNS-over-HTTPS client (JSON API).

    Each query is one GET request bounded by ``timeout`` seconds in total.
    Any non-2xx HTTP status, transport error, timeout, malformed body or DNS
    status other than NOERROR/NXDOMAIN is reported as :class:`Unavailable`.

    Example:
        >>> async with DohClient() as client:
        ...     result = await client.query("example.com", "MX")
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_DOH_ENDPOINT,
        timeout: float = DEFAULT_DNS_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the client.

        Args:
            endpoint: DoH JSON endpoint URL
            timeout: Per-query timeout in seconds
            http_client: Existing client to use (not closed by this object)
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "DohClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this object created it."""
        if self._owns_client:
            await self._client.aclose()

    async def query(self, name: str, record_type: str) -> QueryResult:
        """Ask one DNS question over HTTPS."""
        record_type = record_type.upper()
        type_code = DNS_RECORD_TYPES.get(record_type)
        if type_code is None:
            return _record(name, record_type, Unavailable(f"unsupported record type {record_type}"))

        try:
            response = await asyncio.wait_for(
                self._client.get(
                    self.endpoint,
                    params={"name": name, "type": type_code},
                    headers={"Accept": DOH_CONTENT_TYPE, "User-Agent": DEFAULT_USER_AGENT},
                ),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return _record(name, record_type, Unavailable(f"timeout after {self.timeout}s"))
        except httpx.HTTPError as e:
            return _record(name, record_type, Unavailable(f"transport error: {e}"))

        if not response.is_success:
            return _record(name, record_type, Unavailable(f"HTTP {response.status_code}"))

        try:
            payload = DohResponse.model_validate_json(response.content)
        except ValidationError as e:
            return _record(
                name, record_type, Unavailable(f"invalid DoH response ({e.error_count()} error(s))")
            )

        if payload.status not in (DNS_STATUS_NOERROR, DNS_STATUS_NXDOMAIN):
            return _record(name, record_type, Unavailable(f"DNS status {payload.status}"))

        # CNAME hops are part of the Answer array; keep only the asked-for type
        answers = tuple(
            DnsAnswer(
                name=strip_root_dot(answer.name),
                record_type=record_type,
                ttl=answer.ttl,
                data=answer.data,
            )
            for answer in payload.answer
            if answer.type == type_code
        )
        return _record(name, record_type, AnswerSet(status=payload.status, answers=answers))


class ResolverClient:
    """Classic DNS client built on dnspython's asyncio resolver."""

    def __init__(
        self,
        nameservers: list[str] | None = None,
        timeout: float = DEFAULT_DNS_TIMEOUT,
        resolver: dns.asyncresolver.Resolver | None = None,
    ):
        self.timeout = timeout
        self._resolver = resolver or create_resolver(nameservers=nameservers, timeout=timeout)

    async def __aenter__(self) -> "ResolverClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Nothing to release; present for symmetry with DohClient."""

    async def query(self, name: str, record_type: str) -> QueryResult:
        """Ask one DNS question over UDP/TCP."""
        record_type = record_type.upper()
        if record_type not in DNS_RECORD_TYPES:
            return _record(name, record_type, Unavailable(f"unsupported record type {record_type}"))

        try:
            answer = await self._resolver.resolve(name, record_type, raise_on_no_answer=False)
        except dns.resolver.NXDOMAIN:
            return _record(name, record_type, AnswerSet(status=DNS_STATUS_NXDOMAIN))
        except dns.exception.Timeout:
            return _record(name, record_type, Unavailable(f"timeout after {self.timeout}s"))
        except (dns.exception.DNSException, ValueError) as e:
            return _record(name, record_type, Unavailable(str(e) or e.__class__.__name__))

        rrset = answer.rrset
        if rrset is None:
            return _record(name, record_type, AnswerSet())

        answers = tuple(
            DnsAnswer(
                name=strip_root_dot(rrset.name.to_text()),
                record_type=record_type,
                ttl=rrset.ttl,
                data=rdata.to_text(),
            )
            for rdata in rrset
        )
        return _record(name, record_type, AnswerSet(answers=answers))


def create_client(config: "ResolverConfig") -> DohClient | ResolverClient:
    """Build the query client selected by ``config.transport``."""
    if config.transport == "dns":
        return ResolverClient(nameservers=config.nameservers, timeout=config.timeout)
    return DohClient(endpoint=config.doh_endpoint, timeout=config.timeout)

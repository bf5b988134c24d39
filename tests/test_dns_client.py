"""Tests for the DNS query clients.

The DoH client is exercised through httpx.MockTransport, the classic
resolver client through a stub dnspython resolver. No network access.
"""

import asyncio
import json

import dns.exception
import dns.resolver
import httpx

from email_dns_tool.analyzers.dns_client import (
    AnswerSet,
    DohClient,
    DohResponse,
    ResolverClient,
    Unavailable,
    create_client,
)
from email_dns_tool.config import ResolverConfig
from email_dns_tool.utils.debug_stats import get_stats_tracker

ENDPOINT = "https://dns.test/dns-query"


def _doh(handler) -> DohClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DohClient(endpoint=ENDPOINT, timeout=2.0, http_client=http_client)


def _run(client, name, record_type):
    async def go():
        try:
            return await client.query(name, record_type)
        finally:
            await client.aclose()
            if isinstance(client, DohClient):
                await client._client.aclose()

    return asyncio.run(go())


def _json_response(payload, status_code=200):
    return httpx.Response(status_code, content=json.dumps(payload).encode())


class TestDohResponseModel:
    """Test the pydantic wire model."""

    def test_aliases(self):
        """Test Status/Answer/TTL map to snake_case fields."""
        payload = DohResponse.model_validate(
            {"Status": 0, "Answer": [{"name": "a.", "type": 1, "TTL": 30, "data": "192.0.2.1"}]}
        )
        assert payload.status == 0
        assert payload.answer[0].ttl == 30

    def test_missing_answer(self):
        """Test a response without Answer has an empty list."""
        assert DohResponse.model_validate({"Status": 3}).answer == []


class TestDohClient:
    """Test DohClient request building and error mapping."""

    def test_request_parameters(self):
        """Test name, numeric type and Accept header are sent."""
        seen = {}

        def handler(request):
            seen["url"] = request.url
            seen["accept"] = request.headers["accept"]
            return _json_response({"Status": 0, "Answer": []})

        _run(_doh(handler), "example.com", "MX")

        assert seen["url"].params["name"] == "example.com"
        assert seen["url"].params["type"] == "15"
        assert seen["accept"] == "application/dns-json"

    def test_answers_filtered_by_type(self):
        """Test CNAME hops are dropped and only requested records kept."""

        def handler(request):
            return _json_response(
                {
                    "Status": 0,
                    "Answer": [
                        {"name": "www.example.com.", "type": 5, "TTL": 60, "data": "example.com."},
                        {"name": "example.com.", "type": 1, "TTL": 60, "data": "192.0.2.1"},
                    ],
                }
            )

        result = _run(_doh(handler), "www.example.com", "A")

        assert isinstance(result, AnswerSet)
        assert [a.data for a in result.answers] == ["192.0.2.1"]
        assert result.answers[0].name == "example.com"
        assert result.answers[0].record_type == "A"

    def test_nxdomain_is_empty_answer(self):
        """Test NXDOMAIN is a negative answer, not a failure."""
        result = _run(_doh(lambda r: _json_response({"Status": 3})), "nope.example", "TXT")
        assert result == AnswerSet(status=3)

    def test_servfail_unavailable(self):
        """Test DNS status other than NOERROR/NXDOMAIN is Unavailable."""
        result = _run(_doh(lambda r: _json_response({"Status": 2})), "example.com", "TXT")
        assert result == Unavailable("DNS status 2")

    def test_http_error_status(self):
        """Test non-2xx HTTP responses are Unavailable."""
        result = _run(_doh(lambda r: httpx.Response(503)), "example.com", "TXT")
        assert result == Unavailable("HTTP 503")

    def test_invalid_json(self):
        """Test an undecodable body is Unavailable."""
        result = _run(_doh(lambda r: httpx.Response(200, content=b"<html>")), "example.com", "MX")
        assert isinstance(result, Unavailable)
        assert "invalid DoH response" in result.reason

    def test_wrong_shape(self):
        """Test JSON missing Status is Unavailable."""
        result = _run(_doh(lambda r: _json_response({"Answer": []})), "example.com", "MX")
        assert isinstance(result, Unavailable)

    def test_transport_error(self):
        """Test connection failures are Unavailable and never raise."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = _run(_doh(handler), "example.com", "MX")
        assert isinstance(result, Unavailable)
        assert result.reason.startswith("transport error")

    def test_timeout(self):
        """Test the per-call timeout produces Unavailable."""

        async def handler(request):
            await asyncio.sleep(5)
            return _json_response({"Status": 0})

        client = _doh(handler)
        client.timeout = 0.05
        result = _run(client, "example.com", "MX")
        assert result == Unavailable("timeout after 0.05s")

    def test_unsupported_type(self):
        """Test record types outside the supported set are refused."""
        result = _run(_doh(lambda r: _json_response({"Status": 0})), "example.com", "SRV")
        assert isinstance(result, Unavailable)

    def test_queries_tracked_in_debug_mode(self):
        """Test the debug tracker counts queries by type and outcome."""
        tracker = get_stats_tracker()
        tracker.enable()

        _run(_doh(lambda r: _json_response({"Status": 0})), "example.com", "MX")
        _run(_doh(lambda r: httpx.Response(500)), "example.com", "TXT")

        assert tracker.dns.total == 2
        assert tracker.dns.successful == 1
        assert tracker.dns.failed == 1
        assert tracker.dns.by_type["MX"] == 1
        assert "DNS Queries" in tracker.get_summary()


class _Rdata:
    def __init__(self, text):
        self.text = text

    def to_text(self):
        return self.text


class _Name:
    def to_text(self):
        return "example.com."


class _Rrset(list):
    name = _Name()
    ttl = 120


class _Answer:
    def __init__(self, rrset):
        self.rrset = rrset


class _StubResolver:
    def __init__(self, answer=None, error=None):
        self.answer = answer
        self.error = error

    async def resolve(self, name, record_type, raise_on_no_answer=True):
        if self.error:
            raise self.error
        return self.answer


class TestResolverClient:
    """Test the classic DNS transport."""

    def test_answers(self):
        """Test rdata is converted to text answers."""
        answer = _Answer(_Rrset([_Rdata("10 mail.example.com.")]))
        client = ResolverClient(resolver=_StubResolver(answer=answer))
        result = _run(client, "example.com", "MX")

        assert result.answers[0].data == "10 mail.example.com."
        assert result.answers[0].ttl == 120
        assert result.answers[0].name == "example.com"

    def test_no_answer(self):
        """Test an empty NOERROR answer."""
        client = ResolverClient(resolver=_StubResolver(answer=_Answer(None)))
        assert _run(client, "example.com", "TXT") == AnswerSet()

    def test_nxdomain(self):
        """Test NXDOMAIN maps to an empty answer with status 3."""
        client = ResolverClient(resolver=_StubResolver(error=dns.resolver.NXDOMAIN()))
        assert _run(client, "example.com", "TXT") == AnswerSet(status=3)

    def test_timeout(self):
        """Test resolver timeouts are Unavailable."""
        client = ResolverClient(timeout=1.0, resolver=_StubResolver(error=dns.exception.Timeout()))
        assert _run(client, "example.com", "TXT") == Unavailable("timeout after 1.0s")

    def test_servfail(self):
        """Test other resolver failures are Unavailable."""
        client = ResolverClient(resolver=_StubResolver(error=dns.resolver.NoNameservers()))
        assert isinstance(_run(client, "example.com", "TXT"), Unavailable)


class TestCreateClient:
    """Test transport selection."""

    def test_default_is_doh(self):
        """Test the default transport is DNS-over-HTTPS."""
        client = create_client(ResolverConfig(doh_endpoint=ENDPOINT))
        assert isinstance(client, DohClient)
        assert client.endpoint == ENDPOINT
        asyncio.run(client.aclose())

    def test_dns_transport(self):
        """Test transport=dns builds a resolver client."""
        client = create_client(ResolverConfig(transport="dns", nameservers=["192.0.2.53"]))
        assert isinstance(client, ResolverClient)
        assert len(client._resolver.nameservers) == 1

"""DKIM selector probing."""

import logging
from dataclasses import dataclass
from enum import Enum

from ..constants import DKIM_VERSION
from .dns_client import DnsQueryClient, Unavailable
from .records import decode_txt

logger = logging.getLogger(__name__)


class LookupStatus(str, Enum):
    """Outcome of one report branch."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class DkimResult:
    """DKIM key lookup for a single selector."""

    selector: str
    status: LookupStatus
    record: str | None = None
    error: str | None = None


def dkim_name(selector: str, domain: str) -> str:
    """Name of the TXT record holding the key for a selector."""
    return f"{selector}._domainkey.{domain}"


async def probe_dkim(client: DnsQueryClient, selector: str, domain: str) -> DkimResult:
    """
    Look for a DKIM key record under the given selector.

    Only presence is checked; the key itself is not parsed or verified.

    Args:
        client: DNS query client
        selector: DKIM selector (e.g. "google", "default")
        domain: Domain to check

    Returns:
        DkimResult with status success, not_found or error
    """
    name = dkim_name(selector, domain)
    result = await client.query(name, "TXT")

    if isinstance(result, Unavailable):
        logger.debug(f"DKIM lookup for {name} failed: {result.reason}")
        return DkimResult(selector=selector, status=LookupStatus.ERROR, error=result.reason)

    record = next((value for value in decode_txt(result) if DKIM_VERSION in value), None)
    if record is None:
        logger.debug(f"No DKIM record found at {name}")
        return DkimResult(selector=selector, status=LookupStatus.NOT_FOUND)

    logger.debug(f"Found DKIM record for selector {selector}")
    return DkimResult(selector=selector, status=LookupStatus.SUCCESS, record=record)

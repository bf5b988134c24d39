"""Forward and reverse lookups for MX hosts."""

import asyncio
import dataclasses
import logging

from .dns_client import DnsQueryClient
from .dns_utils import reverse_pointer_name
from .records import MxRecord, decode_names

logger = logging.getLogger(__name__)


async def lookup_ptr(client: DnsQueryClient, address: str) -> list[str]:
    """
    Reverse-resolve one address.

    Only IPv4 is supported; IPv6 addresses yield an empty list.
    """
    pointer = reverse_pointer_name(address)
    if pointer is None:
        return []
    return decode_names(await client.query(pointer, "PTR"))


async def enrich_mx(client: DnsQueryClient, record: MxRecord) -> MxRecord:
    """
    Resolve an MX host's addresses and the PTR name of its first address.

    A and AAAA are asked concurrently. Only the first address found is
    reverse-resolved, which bounds the number of queries per host. Never
    raises: on any failure the record comes back with empty lists.

    Args:
        client: DNS query client
        record: MX record to enrich (left untouched)

    Returns:
        Copy of the record with ``ip_addresses`` and ``ptr_names`` filled in
    """
    if record.is_null:
        return dataclasses.replace(record, ip_addresses=[], ptr_names=[])

    try:
        v4, v6 = await asyncio.gather(
            client.query(record.exchange, "A"),
            client.query(record.exchange, "AAAA"),
        )
        addresses = decode_names(v4) + decode_names(v6)
        ptr_names = await lookup_ptr(client, addresses[0]) if addresses else []
    except Exception as e:
        logger.debug(f"Enrichment of {record.exchange} failed: {e}")
        return dataclasses.replace(record, ip_addresses=[], ptr_names=[])

    return dataclasses.replace(record, ip_addresses=addresses, ptr_names=ptr_names)


async def enrich_all(client: DnsQueryClient, records: list[MxRecord]) -> list[MxRecord]:
    """Enrich every record concurrently; output order matches input order."""
    return list(await asyncio.gather(*(enrich_mx(client, record) for record in records)))

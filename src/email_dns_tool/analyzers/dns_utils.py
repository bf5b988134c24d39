"""DNS helpers shared by the query clients and the host enricher."""

import ipaddress
import logging

import dns.asyncresolver
import dns.resolver
import dns.reversename

from ..constants import DEFAULT_DNS_PUBLIC_SERVERS, DEFAULT_DNS_TIMEOUT

logger = logging.getLogger(__name__)


def create_resolver(
    nameservers: list[str] | None = None,
    timeout: float = DEFAULT_DNS_TIMEOUT,
) -> dns.asyncresolver.Resolver:
    """
    Create an asyncio DNS resolver with fallback to public DNS servers.

    Handles:
    - System DNS configuration with fallback
    - Custom nameserver configuration
    - Public DNS fallback when system DNS is unavailable
    - Timeout configuration

    Args:
        nameservers: Custom nameservers to use (optional).
                    If None, will try system DNS first, then fallback to public DNS.
        timeout: Per-query timeout in seconds (default: 5.0)

    Returns:
        Configured asyncio resolver

    Example:
        >>> resolver = create_resolver(timeout=10.0)
        >>> answer = await resolver.resolve('example.com', 'MX')
    """
    try:
        resolver = dns.asyncresolver.Resolver()
        if not resolver.nameservers:
            raise dns.resolver.NoResolverConfiguration("no nameservers")
    except (dns.resolver.NoResolverConfiguration, OSError):
        resolver = dns.asyncresolver.Resolver(configure=False)
        logger.debug("System DNS not available, using public DNS servers")

    if nameservers:
        resolver.nameservers = nameservers
        logger.debug(f"Using custom nameservers: {', '.join(nameservers)}")
    elif not resolver.nameservers:
        resolver.nameservers = DEFAULT_DNS_PUBLIC_SERVERS
        logger.debug(
            f"Using fallback public DNS servers: {', '.join(DEFAULT_DNS_PUBLIC_SERVERS)}"
        )

    resolver.timeout = timeout
    resolver.lifetime = timeout

    return resolver


def reverse_pointer_name(address: str) -> str | None:
    """
    Build the in-addr.arpa name for an IPv4 address.

    IPv6 reverse lookups are not performed, so IPv6 (and anything that is not
    an IP address) yields None.
    """
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return None

    if ip.version != 4:
        return None

    return dns.reversename.from_address(address).to_text(omit_final_dot=True)


def strip_root_dot(name: str) -> str:
    """Remove a single trailing root-zone dot from a host name."""
    return name[:-1] if name.endswith(".") else name

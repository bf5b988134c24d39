"""Domain name validation."""

import re

DOMAIN_PATTERN = re.compile(r"^(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}$")


class InvalidDomainError(ValueError):
    """Raised when input cannot be interpreted as a domain name."""


def validate_domain(domain: str) -> str:
    """
    Validate domain name format.

    Accepts a pasted URL as well: the scheme, a trailing slash and a trailing
    root dot are removed before the check.

    Args:
        domain: Domain to validate

    Returns:
        Normalized (lowercase) domain

    Raises:
        InvalidDomainError: If domain format is invalid
    """
    # Remove protocol and trailing slash if present
    cleaned = domain.strip().replace("http://", "").replace("https://", "").rstrip("/")
    cleaned = cleaned.rstrip(".")

    if not DOMAIN_PATTERN.match(cleaned):
        raise InvalidDomainError(
            f"Invalid domain format: {domain}. Expected format: example.com"
        )

    return cleaned.lower()

"""DMARC record parsing and validation."""

import logging
from dataclasses import dataclass, field

from ..constants import DMARC_POLICIES, DMARC_VERSION

logger = logging.getLogger(__name__)


@dataclass
class DmarcEvaluation:
    """Parsed DMARC record with advisory warnings."""

    is_valid: bool
    policy: str | None = None
    subdomain_policy: str | None = None
    percentage: int | None = None
    report_addrs: list[str] | None = None
    rua: list[str] = field(default_factory=list)
    ruf: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def parse_tags(record: str) -> dict[str, str]:
    """
    Split a ``key=value; key=value`` record into a dict.

    Keys are lowercased. Values are split on the first ``=`` only, so
    ``rua=mailto:a@x.com?x=1`` keeps its full value. Parts without ``=``
    are ignored.
    """
    tags = {}
    for part in record.split(";"):
        part = part.strip()
        if "=" in part:
            key, value = part.split("=", 1)
            tags[key.strip().lower()] = value.strip()
    return tags


def _addresses(value: str | None) -> list[str]:
    if not value:
        return []
    return [addr.strip() for addr in value.split(",") if addr.strip()]


def validate_dmarc(record: str) -> DmarcEvaluation:
    """
    Parse a DMARC record and flag weak settings.

    Args:
        record: The TXT value published at ``_dmarc.<domain>``

    Returns:
        DmarcEvaluation; ``is_valid`` is False only when the record does not
        start with ``v=DMARC1``
    """
    if not record.startswith(DMARC_VERSION):
        return DmarcEvaluation(is_valid=False)

    tags = parse_tags(record)
    dmarc = DmarcEvaluation(
        is_valid=True,
        policy=tags.get("p"),
        subdomain_policy=tags.get("sp"),
        rua=_addresses(tags.get("rua")),
        ruf=_addresses(tags.get("ruf")),
    )
    report_addrs = dmarc.rua + dmarc.ruf
    dmarc.report_addrs = report_addrs or None

    if "pct" in tags:
        try:
            dmarc.percentage = int(tags["pct"])
        except ValueError:
            dmarc.warnings.append(f"DMARC pct is not a number: {tags['pct']!r}")

    # Check policy
    if not dmarc.policy:
        dmarc.warnings.append("DMARC has no policy defined (p= tag)")
    elif dmarc.policy.lower() not in DMARC_POLICIES:
        dmarc.warnings.append(f"Unknown DMARC policy: {dmarc.policy}")
    elif dmarc.policy.lower() == "none":
        dmarc.warnings.append(
            "DMARC policy is 'none' (monitoring only, consider 'quarantine' or 'reject')"
        )

    if dmarc.subdomain_policy and dmarc.subdomain_policy.lower() not in DMARC_POLICIES:
        dmarc.warnings.append(f"Unknown DMARC subdomain policy: {dmarc.subdomain_policy}")

    if dmarc.percentage is not None and dmarc.percentage < 100:
        dmarc.warnings.append(f"DMARC policy applies to only {dmarc.percentage}% of messages")

    if not report_addrs:
        dmarc.warnings.append("No DMARC report address configured (rua or ruf)")

    logger.debug(f"Parsed DMARC record: policy={dmarc.policy}, warnings={len(dmarc.warnings)}")
    return dmarc

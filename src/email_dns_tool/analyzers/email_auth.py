"""Email authentication report: MX, SPF, DMARC and DKIM for one domain.

The four branches run concurrently on one event loop and are joined with a
settle-all gather, so an exception in one branch turns into that branch's
``error`` result and never disturbs the others. The report always completes.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass, field

from ..constants import (
    DMARC_VERSION,
    MAX_RECORD_DISPLAY,
    SMTP_PORT,
    SMTP_SUBMISSION_PORT,
    SMTPS_PORT,
    SPF_LOOKUP_WARNING,
)
from ..config import ResolverConfig
from .base import BaseAnalysisResult
from .dkim import DkimResult, LookupStatus, probe_dkim
from .dmarc import DmarcEvaluation, validate_dmarc
from .dns_client import DnsQueryClient, Unavailable, create_client
from .dns_utils import strip_root_dot
from .host_enricher import enrich_all
from .protocol import OutputDescriptor, VerbosityLevel
from .records import MxRecord, decode_mx, decode_txt
from .spf import SpfEvaluation, SpfExpansion, find_spf_record, validate_spf

logger = logging.getLogger(__name__)

__all__ = [
    "DiagnosticCommands",
    "DmarcResult",
    "EmailAuthAnalyzer",
    "EmailAuthReport",
    "LookupStatus",
    "MxResult",
    "SpfResult",
    "resolve_email_authentication",
]


# ============================================================================
# Result Models
# ============================================================================


@dataclass
class MxResult:
    """MX branch of the report."""

    status: LookupStatus
    records: list[MxRecord] = field(default_factory=list)
    error: str | None = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class SpfResult:
    """SPF branch of the report."""

    status: LookupStatus
    record: str | None = None
    error: str | None = None
    details: SpfEvaluation | None = None


@dataclass
class DmarcResult:
    """DMARC branch of the report."""

    status: LookupStatus
    record: str | None = None
    error: str | None = None
    details: DmarcEvaluation | None = None


@dataclass
class DiagnosticCommands:
    """Manual SMTP checks against the primary MX host. Never executed."""

    telnet: list[str] = field(default_factory=list)
    curl: list[str] = field(default_factory=list)
    openssl: list[str] = field(default_factory=list)


@dataclass
class EmailAuthReport(BaseAnalysisResult):
    """
    Complete email authentication report for a domain.

    ``mx``, ``spf`` and ``dmarc`` are always present; ``dkim`` only when a
    selector was checked. ``errors`` lists branches that could not be
    resolved, ``warnings`` every advisory finding.
    """

    mx: MxResult = field(default_factory=lambda: MxResult(status=LookupStatus.NOT_FOUND))
    spf: SpfResult = field(default_factory=lambda: SpfResult(status=LookupStatus.NOT_FOUND))
    dmarc: DmarcResult = field(default_factory=lambda: DmarcResult(status=LookupStatus.NOT_FOUND))
    dkim: DkimResult | None = None
    recommendations: list[str] = field(default_factory=list)
    diagnostic_commands: DiagnosticCommands | None = None


# ============================================================================
# Branches
# ============================================================================


def _mx_warnings(records: list[MxRecord]) -> list[str]:
    warnings = []
    for record in records:
        if record.is_null:
            warnings.append("Domain publishes a null MX record (RFC 7505) and accepts no email")
        elif not record.ip_addresses:
            warnings.append(f"MX host {record.exchange} does not resolve to any IP address")

    primary = records[0]
    if not primary.is_null and primary.ip_addresses and not primary.ptr_names:
        warnings.append(
            f"No PTR record for {primary.ip_addresses[0]} ({primary.exchange}), "
            "receivers may reject mail from this host"
        )
    return warnings


async def resolve_mx(client: DnsQueryClient, domain: str) -> MxResult:
    """MX lookup followed by A/AAAA/PTR enrichment of every host."""
    result = await client.query(domain, "MX")
    if isinstance(result, Unavailable):
        return MxResult(status=LookupStatus.ERROR, error=result.reason)

    records = decode_mx(result)
    if not records:
        return MxResult(status=LookupStatus.NOT_FOUND)

    records = await enrich_all(client, records)
    return MxResult(status=LookupStatus.SUCCESS, records=records, warnings=_mx_warnings(records))


async def resolve_spf(client: DnsQueryClient, domain: str, config: ResolverConfig) -> SpfResult:
    """
    Find the domain's SPF record and validate its include tree.

    The expansion deadline is taken here, when the branch begins.
    """
    result = await client.query(domain, "TXT")
    if isinstance(result, Unavailable):
        return SpfResult(status=LookupStatus.ERROR, error=result.reason)

    values = decode_txt(result)
    record = find_spf_record(values)
    if record is None:
        return SpfResult(status=LookupStatus.NOT_FOUND)

    expansion = SpfExpansion.start(budget=config.spf_timeout, max_depth=config.spf_max_depth)
    details = await validate_spf(client, record, domain, expansion)

    count = sum(1 for value in values if find_spf_record([value]))
    if count > 1:
        details.warnings.insert(
            0, f"Multiple SPF records found ({count}), receivers may return permerror"
        )

    return SpfResult(status=LookupStatus.SUCCESS, record=record, details=details)


async def resolve_dmarc(client: DnsQueryClient, domain: str) -> DmarcResult:
    result = await client.query(f"_dmarc.{domain}", "TXT")
    if isinstance(result, Unavailable):
        return DmarcResult(status=LookupStatus.ERROR, error=result.reason)

    records = [value for value in decode_txt(result) if value.startswith(DMARC_VERSION)]
    if not records:
        return DmarcResult(status=LookupStatus.NOT_FOUND)

    details = validate_dmarc(records[0])
    if len(records) > 1:
        details.warnings.insert(
            0, f"Multiple DMARC records found ({len(records)}), receivers may ignore DMARC"
        )

    return DmarcResult(status=LookupStatus.SUCCESS, record=records[0], details=details)


def normalize_selector(selector: str | None) -> str | None:
    """Trimmed selector, or None when it is missing or blank."""
    return (selector or "").strip() or None


def _describe_exception(e: BaseException) -> str:
    return str(e) or type(e).__name__


def _settle(outcome, on_error, branch: str):
    """Turn an exception returned by the gather into the branch's error result."""
    if not isinstance(outcome, BaseException):
        return outcome
    if not isinstance(outcome, Exception):
        raise outcome
    logger.debug(f"{branch} branch failed", exc_info=outcome)
    return on_error(_describe_exception(outcome))


# ============================================================================
# Recommendations and diagnostics
# ============================================================================


def build_recommendations(report: EmailAuthReport, dkim_selector: str | None) -> list[str]:
    """Flat list of suggestions derived from branch statuses."""
    recommendations = []

    if report.spf.status == LookupStatus.NOT_FOUND:
        recommendations.append(
            f"Add an SPF record to {report.domain} listing your sending servers, "
            'e.g. "v=spf1 mx ~all"'
        )

    if report.dmarc.status == LookupStatus.NOT_FOUND:
        recommendations.append(
            f"Add a DMARC record at _dmarc.{report.domain}, e.g. "
            f'"v=DMARC1; p=none; rua=mailto:dmarc@{report.domain}", then tighten the policy'
        )

    if all(
        branch.status == LookupStatus.SUCCESS for branch in (report.mx, report.spf, report.dmarc)
    ):
        recommendations.append("MX, SPF and DMARC records are all published")

    if dkim_selector is None:
        recommendations.append("Specify a DKIM selector (--dkim-selector) to check the DKIM key")
    elif report.dkim is not None and report.dkim.status == LookupStatus.NOT_FOUND:
        recommendations.append(
            f"No DKIM key found for selector '{dkim_selector}', "
            "verify the selector name with your mail provider"
        )

    return recommendations


def build_diagnostic_commands(domain: str, mx: MxResult) -> DiagnosticCommands | None:
    """SMTP commands for checking the primary MX by hand, if there is one."""
    if mx.status != LookupStatus.SUCCESS or not mx.records or mx.records[0].is_null:
        return None

    host = mx.records[0].exchange
    return DiagnosticCommands(
        telnet=[f"telnet {host} {SMTP_PORT}", f"EHLO {domain}", "QUIT"],
        curl=[
            f"curl -v smtp://{host}:{SMTP_PORT}",
            f"curl -v --ssl-reqd smtp://{host}:{SMTP_SUBMISSION_PORT}",
        ],
        openssl=[
            f"openssl s_client -connect {host}:{SMTP_PORT} -starttls smtp",
            f"openssl s_client -connect {host}:{SMTPS_PORT}",
        ],
    )


# ============================================================================
# Orchestrator
# ============================================================================


async def resolve_email_authentication(
    domain: str,
    dkim_selector: str | None = None,
    *,
    client: DnsQueryClient | None = None,
    config: ResolverConfig | None = None,
) -> EmailAuthReport:
    """
    Resolve and validate the email authentication records of a domain.

    Args:
        domain: Domain to check (already validated)
        dkim_selector: DKIM selector to probe (trimmed); DKIM is skipped when None or blank
        client: DNS query client; one is created from ``config`` (and closed
            afterwards) when omitted
        config: Resolver settings, defaults when omitted

    Returns:
        EmailAuthReport; never raises for DNS failures
    """
    config = config or ResolverConfig()
    domain = strip_root_dot(domain.strip().lower())
    dkim_selector = normalize_selector(dkim_selector)
    logger.info(f"Starting email authentication check for {domain}")

    owned = client is None
    if client is None:
        client = create_client(config)

    try:
        branches = [
            resolve_mx(client, domain),
            resolve_spf(client, domain, config),
            resolve_dmarc(client, domain),
        ]
        if dkim_selector is not None:
            branches.append(probe_dkim(client, dkim_selector, domain))

        outcomes = await asyncio.gather(*branches, return_exceptions=True)
    finally:
        if owned:
            await client.aclose()

    report = EmailAuthReport(
        domain=domain,
        mx=_settle(outcomes[0], lambda e: MxResult(status=LookupStatus.ERROR, error=e), "MX"),
        spf=_settle(outcomes[1], lambda e: SpfResult(status=LookupStatus.ERROR, error=e), "SPF"),
        dmarc=_settle(
            outcomes[2], lambda e: DmarcResult(status=LookupStatus.ERROR, error=e), "DMARC"
        ),
    )
    if dkim_selector is not None:
        report.dkim = _settle(
            outcomes[3],
            lambda e: DkimResult(selector=dkim_selector, status=LookupStatus.ERROR, error=e),
            "DKIM",
        )

    _collect_messages(report)
    report.recommendations = build_recommendations(report, dkim_selector)
    report.diagnostic_commands = build_diagnostic_commands(domain, report.mx)

    logger.info(
        f"Finished email authentication check for {domain}: "
        f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)"
    )
    return report


def _collect_messages(report: EmailAuthReport) -> None:
    """Copy branch errors and warnings up to the report."""
    for label, branch in (("MX", report.mx), ("SPF", report.spf), ("DMARC", report.dmarc)):
        if branch.status == LookupStatus.ERROR:
            report.errors.append(f"{label} lookup failed: {branch.error}")

    if report.dkim is not None and report.dkim.status == LookupStatus.ERROR:
        report.errors.append(f"DKIM lookup failed: {report.dkim.error}")

    report.warnings.extend(report.mx.warnings)
    if report.spf.details:
        report.warnings.extend(report.spf.details.warnings)
    if report.dmarc.details:
        report.warnings.extend(report.dmarc.details.warnings)


# ============================================================================
# Analyzer
# ============================================================================


_STATUS_STYLE = {
    LookupStatus.SUCCESS: ("success", "check"),
    LookupStatus.NOT_FOUND: ("warning", "warning"),
    LookupStatus.ERROR: ("error", "cross"),
}


def _missing_value(branch: MxResult | SpfResult | DmarcResult) -> str:
    if branch.status == LookupStatus.NOT_FOUND:
        return "Not found"
    return f"Lookup failed: {branch.error}"


class EmailAuthAnalyzer:
    """
    Checks MX, SPF, DMARC and DKIM for a domain.

    Wraps :func:`resolve_email_authentication` with:
    - Configuration schema (ResolverConfig)
    - Output formatting (via describe_output)
    - JSON serialization (via to_dict)
    """

    analyzer_id = "email-auth"
    name = "Email Authentication"
    description = "Resolve and validate MX, SPF, DMARC and DKIM records"
    category = "email"
    icon = "envelope"
    config_class = ResolverConfig

    def analyze(
        self, domain: str, config: ResolverConfig, dkim_selector: str | None = None
    ) -> EmailAuthReport:
        """
        Run the report synchronously.

        Args:
            domain: The domain to analyze
            config: Resolver configuration
            dkim_selector: Selector to probe; falls back to ``config.dkim_selector``

        Returns:
            EmailAuthReport
        """
        selector = normalize_selector(dkim_selector) or normalize_selector(config.dkim_selector)
        return asyncio.run(resolve_email_authentication(domain, selector, config=config))

    def describe_output(self, result: EmailAuthReport) -> OutputDescriptor:
        """
        Describe how to render the report.

        Uses semantic styling (theme-agnostic) - no hardcoded colors.
        """
        descriptor = OutputDescriptor(title=f"{self.name}: {result.domain}", category=self.category)
        descriptor.quiet_summary = self._get_quiet_summary

        self._describe_mx(descriptor, result.mx)
        self._describe_spf(descriptor, result.spf)
        self._describe_dmarc(descriptor, result.dmarc)
        if result.dkim is not None:
            self._describe_dkim(descriptor, result.dkim)

        for recommendation in result.recommendations:
            descriptor.add_row(
                value=recommendation,
                section_type="text",
                section_name="Recommendations",
                style_class="info",
                icon="arrow",
            )

        commands = result.diagnostic_commands
        if commands:
            for label, lines in (
                ("telnet", commands.telnet),
                ("curl", commands.curl),
                ("openssl", commands.openssl),
            ):
                descriptor.add_row(
                    label=label,
                    value=lines,
                    section_type="list",
                    section_name="Diagnostics",
                    style_class="muted",
                    icon="terminal",
                    format_as="code",
                    verbosity=VerbosityLevel.VERBOSE,
                )

        return descriptor

    def to_dict(self, result: EmailAuthReport) -> dict:
        """
        Serialize result to JSON-compatible dictionary.

        Enum members become their string values; absent optional parts are None.
        """
        output = asdict(result)
        for key in ("mx", "spf", "dmarc", "dkim"):
            if output.get(key) is not None:
                output[key]["status"] = LookupStatus(output[key]["status"]).value
        return output

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def _status_row(
        self, descriptor: OutputDescriptor, section: str, label: str, status: LookupStatus, value
    ) -> None:
        style_class, icon = _STATUS_STYLE[status]
        descriptor.add_row(
            label=label,
            value=value,
            section_name=section,
            style_class=style_class,
            icon=icon,
            severity="error" if status == LookupStatus.ERROR else "info",
        )

    def _add_warnings(
        self, descriptor: OutputDescriptor, section: str, warnings: list[str]
    ) -> None:
        for warning in warnings:
            descriptor.add_row(
                value=warning,
                section_type="text",
                section_name=section,
                style_class="warning",
                severity="warning",
                icon="warning",
            )

    def _describe_mx(self, descriptor: OutputDescriptor, mx: MxResult) -> None:
        if mx.status != LookupStatus.SUCCESS:
            self._status_row(descriptor, "MX", "MX Records", mx.status, _missing_value(mx))
            return

        self._status_row(descriptor, "MX", "MX Records", mx.status, f"Found {len(mx.records)}")
        for record in mx.records:
            exchange = record.exchange or "(null MX)"
            descriptor.add_row(
                label=f"MX {record.priority}",
                value=exchange,
                section_name="MX",
                style_class="highlight",
            )
            if record.ip_addresses:
                descriptor.add_row(
                    label=f"{exchange} addresses",
                    value=record.ip_addresses,
                    section_type="list",
                    section_name="MX",
                    style_class="info",
                    verbosity=VerbosityLevel.VERBOSE,
                )
            if record.ptr_names:
                descriptor.add_row(
                    label=f"{exchange} PTR",
                    value=", ".join(record.ptr_names),
                    section_name="MX",
                    style_class="info",
                    verbosity=VerbosityLevel.VERBOSE,
                )
            descriptor.add_row(
                label=f"{exchange} TTL",
                value=record.ttl,
                section_name="MX",
                style_class="muted",
                verbosity=VerbosityLevel.DEBUG,
            )
        self._add_warnings(descriptor, "MX", mx.warnings)

    def _describe_spf(self, descriptor: OutputDescriptor, spf: SpfResult) -> None:
        if spf.status != LookupStatus.SUCCESS:
            self._status_row(descriptor, "SPF", "SPF Record", spf.status, _missing_value(spf))
            return

        self._status_row(descriptor, "SPF", "SPF Record", spf.status, spf.record)
        details = spf.details
        if details is None:
            return

        descriptor.add_row(
            label="DNS Lookups",
            value=details.lookup_count,
            section_name="SPF",
            style_class="warning" if details.lookup_count > SPF_LOOKUP_WARNING else "info",
        )
        if details.expanded_includes:
            descriptor.add_row(
                label="Includes",
                value=details.expanded_includes,
                section_type="list",
                section_name="SPF",
                style_class="info",
                verbosity=VerbosityLevel.VERBOSE,
            )
        if details.mechanisms:
            descriptor.add_row(
                label="Mechanisms",
                value=details.mechanisms,
                section_type="list",
                section_name="SPF",
                style_class="muted",
                verbosity=VerbosityLevel.DEBUG,
            )
        self._add_warnings(descriptor, "SPF", details.warnings)

    def _describe_dmarc(self, descriptor: OutputDescriptor, dmarc: DmarcResult) -> None:
        if dmarc.status != LookupStatus.SUCCESS:
            self._status_row(
                descriptor, "DMARC", "DMARC Record", dmarc.status, _missing_value(dmarc)
            )
            return

        self._status_row(descriptor, "DMARC", "DMARC Record", dmarc.status, dmarc.record)
        details = dmarc.details
        if details is None:
            return

        descriptor.add_row(
            label="Policy",
            value=details.policy or "(none set)",
            section_name="DMARC",
            style_class="success" if details.policy in ("quarantine", "reject") else "warning",
        )
        if details.subdomain_policy:
            descriptor.add_row(
                label="Subdomain Policy",
                value=details.subdomain_policy,
                section_name="DMARC",
                style_class="info",
                verbosity=VerbosityLevel.VERBOSE,
            )
        if details.percentage is not None:
            descriptor.add_row(
                label="Percentage",
                value=f"{details.percentage}%",
                section_name="DMARC",
                style_class="info",
                verbosity=VerbosityLevel.VERBOSE,
            )
        for label, addrs in (
            ("Aggregate Reports (rua)", details.rua),
            ("Forensic Reports (ruf)", details.ruf),
        ):
            if addrs:
                descriptor.add_row(
                    label=label,
                    value=addrs,
                    section_type="list",
                    section_name="DMARC",
                    style_class="info",
                    verbosity=VerbosityLevel.VERBOSE,
                )
        self._add_warnings(descriptor, "DMARC", details.warnings)

    def _describe_dkim(self, descriptor: OutputDescriptor, dkim: DkimResult) -> None:
        label = f"DKIM ({dkim.selector})"
        if dkim.status == LookupStatus.SUCCESS:
            record = dkim.record or ""
            if len(record) > MAX_RECORD_DISPLAY:
                record = record[:MAX_RECORD_DISPLAY] + "..."
            self._status_row(descriptor, "DKIM", label, dkim.status, "Found")
            descriptor.add_row(
                label="Key Record",
                value=record,
                section_name="DKIM",
                style_class="info",
                format_as="code",
                verbosity=VerbosityLevel.VERBOSE,
            )
        elif dkim.status == LookupStatus.NOT_FOUND:
            self._status_row(descriptor, "DKIM", label, dkim.status, "Not found")
        else:
            self._status_row(descriptor, "DKIM", label, dkim.status, f"Lookup failed: {dkim.error}")

    def _get_quiet_summary(self, result: EmailAuthReport) -> str:
        """Generate quiet mode summary."""
        parts = [
            f"MX: {result.mx.status.value}",
            f"SPF: {result.spf.status.value}",
        ]
        if result.dmarc.details and result.dmarc.details.policy:
            parts.append(f"DMARC: {result.dmarc.details.policy}")
        else:
            parts.append(f"DMARC: {result.dmarc.status.value}")
        if result.dkim is not None:
            parts.append(f"DKIM: {result.dkim.status.value}")
        return " | ".join(parts)

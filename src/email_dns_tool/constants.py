"""Constants and default values used across the application."""

# DNS Constants
DEFAULT_DNS_TIMEOUT = 5.0  # Per-query timeout in seconds
DEFAULT_DNS_PUBLIC_SERVERS = ["8.8.8.8", "8.8.4.4", "1.1.1.1"]  # Google and Cloudflare DNS
DEFAULT_DOH_ENDPOINT = "https://cloudflare-dns.com/dns-query"
DOH_CONTENT_TYPE = "application/dns-json"
DEFAULT_USER_AGENT = "email-dns-tool/0.1 (+https://github.com/email-dns-tool/email-dns-tool)"

# DNS response codes (RFC 1035 RCODE)
DNS_STATUS_NOERROR = 0
DNS_STATUS_NXDOMAIN = 3

# Record types the resolver asks for, with their numeric QTYPE
DNS_RECORD_TYPES = {
    "A": 1,
    "PTR": 12,
    "MX": 15,
    "TXT": 16,
    "AAAA": 28,
}

# Version tokens
SPF_VERSION = "v=spf1"
DMARC_VERSION = "v=DMARC1"
DKIM_VERSION = "v=DKIM1"

# SPF Constants
DEFAULT_SPF_TIMEOUT = 10.0  # Wall-clock budget for one whole include tree
SPF_MAX_DEPTH = 10  # Deepest include nesting that is still expanded
SPF_LOOKUP_WARNING = 8  # Warn once the lookup count goes beyond this
SPF_LOOKUP_LIMIT = 10  # RFC 7208 limit for DNS-querying terms
SPF_LOOKUP_MECHANISMS = ("a", "mx")  # Counted, never expanded
SPF_QUALIFIERS = "+-~?"

# DMARC Constants
DMARC_POLICIES = ("none", "quarantine", "reject")

# Diagnostic command ports
SMTP_PORT = 25
SMTP_SUBMISSION_PORT = 587
SMTPS_PORT = 465

# Output Display Constants
MAX_RECORD_DISPLAY = 100  # Truncate long TXT values (DKIM keys) in normal output

"""Analyzers for the email authentication report.

Leaf modules (DNS clients, record decoders, SPF/DMARC/DKIM checks, host
enrichment) are composed by :mod:`.email_auth`, which runs the whole report.
"""

__all__: list[str] = []

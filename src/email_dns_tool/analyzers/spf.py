"""SPF record validation with recursive ``include:`` expansion.

The include tree of one SPF record is walked depth-first, one include at a
time, so each child's lookup count and warnings are folded into the running
totals before the next include is evaluated. Three guards bound the walk:

- a wall-clock deadline shared by the whole tree,
- a maximum include depth,
- a visited-domain set that stops include cycles.

Tripping a guard is never fatal: it adds a warning and the branch returns
what it has built so far. Macros (``%{i}`` etc.) are not expanded, and
``a``/``mx`` mechanisms are counted but not resolved.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from ..constants import (
    DEFAULT_SPF_TIMEOUT,
    SPF_LOOKUP_LIMIT,
    SPF_LOOKUP_MECHANISMS,
    SPF_LOOKUP_WARNING,
    SPF_MAX_DEPTH,
    SPF_QUALIFIERS,
    SPF_VERSION,
)
from .dns_client import DnsQueryClient, Unavailable
from .dns_utils import strip_root_dot
from .records import decode_txt

logger = logging.getLogger(__name__)

INCLUDE_PREFIX = "include:"


@dataclass
class SpfEvaluation:
    """Outcome of validating one SPF record (and, recursively, its includes)."""

    is_valid: bool
    version: str | None = None
    mechanisms: list[str] | None = None
    lookup_count: int = 0
    warnings: list[str] = field(default_factory=list)
    expanded_includes: list[str] = field(default_factory=list)


@dataclass
class SpfExpansion:
    """
    State shared by every level of a single SPF include tree.

    Created once per top-level validation and passed down by reference.
    Never reuse one across independent records or requests.
    """

    deadline: float
    max_depth: int = SPF_MAX_DEPTH
    visited: set[str] = field(default_factory=set)
    clock: Callable[[], float] = time.monotonic
    timed_out: bool = False

    @classmethod
    def start(
        cls,
        budget: float = DEFAULT_SPF_TIMEOUT,
        max_depth: int = SPF_MAX_DEPTH,
        clock: Callable[[], float] = time.monotonic,
    ) -> "SpfExpansion":
        """Begin a new tree whose deadline is ``budget`` seconds from now."""
        return cls(deadline=clock() + budget, max_depth=max_depth, clock=clock)

    def expired(self) -> bool:
        return self.clock() >= self.deadline

    def timeout_warnings(self, domain: str) -> list[str]:
        """The timed-out warning, reported only once per tree."""
        if self.timed_out:
            return []
        self.timed_out = True
        logger.debug(f"SPF validation budget exhausted at {domain}")
        return [f"SPF validation timed out while expanding {domain}; remaining includes skipped"]


def _strip_qualifier(term: str) -> str:
    if term and term[0] in SPF_QUALIFIERS:
        return term[1:]
    return term


def costs_lookup(term: str) -> bool:
    """True for ``a``, ``mx``, ``a:``, ``mx:`` and their ``/cidr`` forms."""
    name = _strip_qualifier(term).split(":", 1)[0].split("/", 1)[0]
    return name.lower() in SPF_LOOKUP_MECHANISMS


def include_target(term: str) -> str | None:
    """Target domain of an ``include:`` term, or None for any other term."""
    mechanism = _strip_qualifier(term)
    if not mechanism.lower().startswith(INCLUDE_PREFIX):
        return None
    return strip_root_dot(mechanism[len(INCLUDE_PREFIX) :].lower())


def find_spf_record(values: list[str]) -> str | None:
    """First value that is an SPF record."""
    return next((value for value in values if value.startswith(SPF_VERSION)), None)


async def validate_spf(
    client: DnsQueryClient,
    record: str,
    domain: str,
    expansion: SpfExpansion,
    depth: int = 0,
) -> SpfEvaluation:
    """
    Validate an SPF record, expanding its includes recursively.

    Args:
        client: DNS query client used for include lookups
        record: The SPF TXT value
        domain: Domain the record was published at
        expansion: Shared tree state (visited set, deadline, depth limit)
        depth: Include nesting level of ``record`` (0 for the domain's own record)

    Returns:
        SpfEvaluation; ``is_valid`` only reflects the version check, every
        other finding is an advisory warning
    """
    if not record.startswith(SPF_VERSION):
        return SpfEvaluation(is_valid=False)

    tokens = record.split()
    evaluation = SpfEvaluation(is_valid=True, version=tokens[0], mechanisms=tokens[1:])

    if expansion.expired():
        evaluation.warnings.extend(expansion.timeout_warnings(domain))
        return evaluation

    if depth > expansion.max_depth:
        logger.debug(f"SPF include depth {depth} exceeded at {domain}")
        evaluation.warnings.append(
            f"SPF include nesting too deep at {domain} (limit is {expansion.max_depth} levels)"
        )
        return evaluation

    if domain in expansion.visited:
        logger.debug(f"SPF include cycle at {domain}")
        evaluation.warnings.append(f"SPF circular reference detected: {domain} includes itself")
        return evaluation

    expansion.visited.add(domain)

    for term in evaluation.mechanisms:
        target = include_target(term)
        if target is None:
            if costs_lookup(term):
                evaluation.lookup_count += 1
            continue

        evaluation.lookup_count += 1
        evaluation.expanded_includes.append(target)
        if expansion.expired():
            evaluation.warnings.extend(expansion.timeout_warnings(domain))
            continue

        child = await _expand_include(client, target, expansion, depth + 1)
        evaluation.lookup_count += child.lookup_count
        evaluation.warnings.extend(child.warnings)
        evaluation.expanded_includes.extend(child.expanded_includes)

    if depth == 0:
        _check_top_level(evaluation)

    return evaluation


async def _expand_include(
    client: DnsQueryClient,
    target: str,
    expansion: SpfExpansion,
    depth: int,
) -> SpfEvaluation:
    """Fetch the SPF record of an include target and validate it."""
    result = await client.query(target, "TXT")
    if isinstance(result, Unavailable):
        return SpfEvaluation(
            is_valid=False,
            warnings=[f"SPF include lookup failed for {target}: {result.reason}"],
        )

    child_record = find_spf_record(decode_txt(result))
    if child_record is None:
        return SpfEvaluation(
            is_valid=False,
            warnings=[f"SPF include lookup failed for {target}: no SPF record found"],
        )

    return await validate_spf(client, child_record, target, expansion, depth)


def _check_top_level(evaluation: SpfEvaluation) -> None:
    """Whole-tree checks, run once on the domain's own record."""
    if evaluation.lookup_count > SPF_LOOKUP_LIMIT:
        evaluation.warnings.append(
            f"SPF lookup limit exceeded: {evaluation.lookup_count} DNS lookups "
            f"(limit is {SPF_LOOKUP_LIMIT}), receivers may return permerror"
        )
    elif evaluation.lookup_count > SPF_LOOKUP_WARNING:
        evaluation.warnings.append(
            f"SPF is approaching the lookup limit: {evaluation.lookup_count} of "
            f"{SPF_LOOKUP_LIMIT} DNS lookups used"
        )

    for term in evaluation.mechanisms or []:
        if term.lower() in ("all", "+all"):
            evaluation.warnings.append("SPF uses '+all' (allows all senders, insecure)")
        elif term.lower() == "?all":
            evaluation.warnings.append("SPF uses '?all' (neutral, not recommended)")

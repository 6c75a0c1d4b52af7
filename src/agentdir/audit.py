"""On-demand agent-readiness audit of a single domain.

Unlike a scan run, an audit takes a user-supplied domain, so it first checks
that the host resolves only to public addresses. It then runs the same two
probes as the scanner and reports what it saw, scored from this run's live
signals alone (no ledger history).
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from pydantic import Field

from agentdir.config import DEFAULT_REQUEST_TIMEOUT_SECONDS
from agentdir.discovery.normalize import (
    DEFAULT_DNS_TIMEOUT_SECONDS,
    Resolver,
    ensure_public_domain,
    normalize_domain,
)
from agentdir.models import DirectoryStatus, ItemType, VerificationStatus
from agentdir.models.base import AgentDirBaseModel
from agentdir.monitor.evidence import compute_confidence, compute_types
from agentdir.observability import get_logger
from agentdir.probe.outcomes import DomainProbe, FailureReason, ProbeFailure
from agentdir.probe.prober import DomainProber
from agentdir.store.snapshot import DirectoryStore, load_or_empty, utc_now

logger = get_logger(__name__)

MIN_FETCH_SECONDS = 0.5
MAX_FETCH_SECONDS = 10.0


class WellKnownCheck(AgentDirBaseModel):
    attempted: bool
    url: str
    status_code: int | None = None
    parse_ok: bool = False
    failure: FailureReason | None = None


class HomepageCheck(AgentDirBaseModel):
    attempted: bool
    url: str
    status_code: int | None = None
    matched_hints: list[str] = Field(default_factory=list)
    failure: FailureReason | None = None


class AuditResults(AgentDirBaseModel):
    well_known_mcp: WellKnownCheck
    homepage_html: HomepageCheck


class Assessment(AgentDirBaseModel):
    type: list[ItemType]
    confidence: int = Field(..., ge=0, le=100)
    verification_status: VerificationStatus
    summary: str


class Recommendation(AgentDirBaseModel):
    title: str
    how: str
    impact: str


class DirectoryEntrySummary(AgentDirBaseModel):
    exists: bool
    status: DirectoryStatus | None = None
    confidence: int | None = None
    last_seen: datetime | None = None


class AuditReport(AgentDirBaseModel):
    domain: str
    timestamp: datetime
    results: AuditResults
    assessment: Assessment
    recommendations: list[Recommendation]
    directory_entry: DirectoryEntrySummary | None = None


RECOMMENDATIONS: tuple[Recommendation, ...] = (
    Recommendation(
        title="Publish well-known MCP manifest",
        how="Serve JSON at /.well-known/mcp.json",
        impact="high",
    ),
    Recommendation(
        title="Expose structured capability index",
        how="Add an /api/agent-like index describing tools and how to call them",
        impact="medium",
    ),
)


def clamp_fetch_seconds(value: float) -> float:
    return max(MIN_FETCH_SECONDS, min(MAX_FETCH_SECONDS, value))


def summarize(*, well_known_ok: bool, model_context_hit: bool, other_hit: bool) -> str:
    if well_known_ok and model_context_hit:
        return "Strong MCP manifest and WebMCP hints detected."
    if well_known_ok:
        return "Strong MCP manifest detected at /.well-known/mcp.json."
    if model_context_hit:
        return "WebMCP hint detected: navigator.modelContext."
    if other_hit:
        return "Some MCP/WebMCP-related hints detected in homepage HTML."
    return "No strong agent-readiness signals detected."


def _well_known_check(probe: DomainProbe) -> WellKnownCheck:
    outcome = probe.manifest.outcome
    if isinstance(outcome, ProbeFailure):
        return WellKnownCheck(
            attempted=outcome.reason != FailureReason.SKIPPED,
            url=outcome.url,
            status_code=outcome.status_code,
            failure=outcome.reason,
        )
    return WellKnownCheck(
        attempted=True, url=outcome.url, status_code=outcome.status_code, parse_ok=True
    )


def _homepage_check(probe: DomainProbe) -> HomepageCheck:
    outcome = probe.homepage.outcome
    if isinstance(outcome, ProbeFailure):
        return HomepageCheck(
            attempted=outcome.reason != FailureReason.SKIPPED,
            url=outcome.url,
            status_code=outcome.status_code,
            failure=outcome.reason,
        )
    return HomepageCheck(
        attempted=True,
        url=outcome.url,
        status_code=outcome.status_code,
        matched_hints=list(probe.homepage.matched_hints),
    )


def assess(probe: DomainProbe) -> Assessment:
    """Score one probe on its own, without any stored history."""
    signals = probe.signals
    evidence = probe.evidence
    return Assessment(
        type=compute_types(
            evidence,
            model_context_hit=signals.model_context_hit,
            other_hit=signals.other_hit,
        ),
        confidence=compute_confidence(
            evidence,
            model_context_hit=signals.model_context_hit,
            other_hit=signals.other_hit,
        ),
        verification_status=(
            VerificationStatus.VERIFIED if signals.strong_success else VerificationStatus.UNVERIFIED
        ),
        summary=summarize(
            well_known_ok=signals.well_known_ok,
            model_context_hit=signals.model_context_hit,
            other_hit=signals.other_hit,
        ),
    )


async def _directory_entry(store: DirectoryStore, domain: str) -> DirectoryEntrySummary:
    snapshot = await load_or_empty(store)
    item = snapshot.get(domain)
    if item is None:
        return DirectoryEntrySummary(exists=False)
    return DirectoryEntrySummary(
        exists=True,
        status=item.status,
        confidence=item.confidence,
        last_seen=item.last_seen,
    )


async def audit_domain(
    domain: str,
    prober: DomainProber,
    *,
    store: DirectoryStore | None = None,
    check_well_known: bool = True,
    check_homepage: bool = True,
    max_fetch_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
    resolver: Resolver | None = None,
    now: Callable[[], datetime] = utc_now,
) -> AuditReport:
    """Audit one domain for agent readiness.

    Args:
        domain: URL or hostname supplied by the caller.
        prober: Prober used for both checks.
        store: Optional directory store to report the current entry from.
        check_well_known: Run the manifest probe.
        check_homepage: Run the homepage hint probe.
        max_fetch_seconds: Per-request timeout, clamped to [0.5, 10].
        resolver: Optional async resolver for the SSRF guard (tests).
        now: Clock for the report timestamp.

    Raises:
        InvalidDomainError: If the domain cannot be normalized.
        BlockedDomainError: If it resolves to a non-public address.
        UnresolvableDomainError: If it does not resolve.
        DnsTimeoutError: If resolution timed out.
    """
    normalized = normalize_domain(domain)
    timeout = clamp_fetch_seconds(max_fetch_seconds)
    await ensure_public_domain(
        normalized,
        timeout=min(DEFAULT_DNS_TIMEOUT_SECONDS, timeout),
        resolver=resolver,
    )

    probe = await prober.probe(
        normalized,
        check_well_known=check_well_known,
        check_homepage=check_homepage,
        timeout=timeout,
    )
    assessment = assess(probe)
    logger.info(
        "agentdir.audit.completed",
        domain=normalized,
        confidence=assessment.confidence,
        verification_status=assessment.verification_status.value,
    )
    return AuditReport(
        domain=normalized,
        timestamp=now(),
        results=AuditResults(
            well_known_mcp=_well_known_check(probe),
            homepage_html=_homepage_check(probe),
        ),
        assessment=assessment,
        recommendations=list(RECOMMENDATIONS),
        directory_entry=await _directory_entry(store, normalized) if store is not None else None,
    )

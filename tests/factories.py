"""Builders for directory test data."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from agentdir.models import (
    DirectoryItem,
    DirectorySnapshot,
    Evidence,
    EvidenceKind,
    Proof,
    ProofType,
)
from agentdir.probe.outcomes import (
    DomainProbe,
    FailureReason,
    HomepageProbeResult,
    ManifestProbeResult,
    ProbeFailure,
    ProbeSuccess,
    homepage_url,
    manifest_url,
)
from tests.conftest import FIXED_NOW


def make_item(domain: str = "example.com", **overrides: Any) -> DirectoryItem:
    """DirectoryItem with sensible defaults; any field can be overridden."""
    data: dict[str, Any] = {
        "domain": domain,
        "name": domain,
        "last_checked": FIXED_NOW,
        "last_seen": FIXED_NOW,
    }
    data.update(overrides)
    return DirectoryItem(**data)


def make_snapshot(*items: DirectoryItem, updated_at: datetime = FIXED_NOW) -> DirectorySnapshot:
    return DirectorySnapshot(updated_at=updated_at, items=list(items))


def github_hit(repo: str = "owner/repo") -> Evidence:
    return Evidence(
        kind=EvidenceKind.GITHUB_HIT,
        detail=f"repo: {repo}",
        url=f"https://github.com/{repo}",
    )


def well_known_proof(domain: str, when: datetime = FIXED_NOW) -> Proof:
    return Proof(type=ProofType.WELL_KNOWN, url=manifest_url(domain), last_success=when)


def make_probe(
    domain: str = "example.com",
    *,
    manifest_ok: bool = False,
    homepage_ok: bool = True,
    hints: tuple[str, ...] = (),
    manifest_reason: FailureReason = FailureReason.HTTP_STATUS,
    homepage_reason: FailureReason = FailureReason.TRANSPORT_ERROR,
) -> DomainProbe:
    """DomainProbe built directly from the desired signals, no network."""
    m_url = manifest_url(domain)
    h_url = homepage_url(domain)
    if manifest_ok:
        manifest = ManifestProbeResult(outcome=ProbeSuccess(m_url, 200))
    else:
        status = 404 if manifest_reason == FailureReason.HTTP_STATUS else None
        manifest = ManifestProbeResult(
            outcome=ProbeFailure(m_url, manifest_reason, status_code=status)
        )
    if homepage_ok:
        homepage = HomepageProbeResult(
            outcome=ProbeSuccess(h_url, 200), matched_hints=tuple(sorted(hints))
        )
    else:
        homepage = HomepageProbeResult(outcome=ProbeFailure(h_url, homepage_reason))
    return DomainProbe(domain=domain, manifest=manifest, homepage=homepage)


def unreachable_probe(domain: str = "example.com") -> DomainProbe:
    """Both probes failed at the transport level."""
    return make_probe(
        domain,
        manifest_ok=False,
        homepage_ok=False,
        manifest_reason=FailureReason.TRANSPORT_ERROR,
    )

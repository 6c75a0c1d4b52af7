"""Proof ledger: last successful check per (type, url).

Proofs record "last seen working" and are never removed by a failed run.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from agentdir.models import Proof, ProofType
from agentdir.probe.outcomes import DomainProbe


def upsert_proof(proofs: Sequence[Proof], entry: Proof) -> list[Proof]:
    """Replace the entry with the same ``(type, url)`` or append; return sorted by key."""
    updated = list(proofs)
    for index, existing in enumerate(updated):
        if existing.key == entry.key:
            updated[index] = entry
            break
    else:
        updated.append(entry)
    updated.sort(key=lambda p: p.key)
    return updated


def record_probe_proofs(proofs: Sequence[Proof], probe: DomainProbe, now: datetime) -> list[Proof]:
    """Upsert proofs for this run's strong successes.

    A successful manifest probe records a ``well_known`` proof; a strong
    homepage hint records a ``homepage`` proof. Weak hints record nothing.
    """
    updated = list(proofs)
    if probe.manifest.ok:
        updated = upsert_proof(
            updated, Proof(type=ProofType.WELL_KNOWN, url=probe.manifest.url, last_success=now)
        )
    if probe.homepage.model_context_hit:
        updated = upsert_proof(
            updated, Proof(type=ProofType.HOMEPAGE, url=probe.homepage.url, last_success=now)
        )
    return updated

"""Directory scan runs: select, probe, recompute, merge, persist.

One run loads the snapshot once, probes the selected domains strictly one
after another through a single RequestThrottle, and saves once. Items that
were not selected are carried over unchanged; items are never deleted.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from agentdir.config import DEFAULT_MAX_DOMAINS_PER_RUN, ScanConfig
from agentdir.discovery.normalize import try_normalize_domain
from agentdir.discovery.sources import CandidateSource, collect_candidates
from agentdir.models import (
    DirectoryItem,
    DirectorySnapshot,
    DirectoryStatus,
    Evidence,
    strip_legacy_fail_streak,
)
from agentdir.monitor.evidence import compute_confidence, compute_types, merge_evidence
from agentdir.monitor.proof import record_probe_proofs
from agentdir.monitor.verification import evaluate
from agentdir.observability import bind_context, get_logger, unbind_context
from agentdir.probe.outcomes import DomainProbe
from agentdir.probe.prober import DomainProber
from agentdir.store.snapshot import DirectoryStore, load_or_empty, utc_now

logger = get_logger(__name__)


def select_domains(
    candidates: Iterable[str], cap: int = DEFAULT_MAX_DOMAINS_PER_RUN
) -> list[str]:
    """Normalize, drop invalid, dedupe, sort and keep the first ``cap`` domains.

    Example:
        >>> select_domains(["https://www.B.com/x", "a.com", "b.com", "bad"], cap=5)
        ['a.com', 'b.com']
    """
    normalized = {d for d in (try_normalize_domain(c) for c in candidates) if d is not None}
    return sorted(normalized)[: max(cap, 0)]


def prepare_candidates(candidates: Mapping[str, Sequence[Evidence]]) -> dict[str, list[Evidence]]:
    """Re-key candidates by normalized domain, merging evidence of colliding keys."""
    prepared: dict[str, list[Evidence]] = {}
    for raw, evidence in candidates.items():
        domain = try_normalize_domain(raw)
        if domain is not None:
            prepared[domain] = merge_evidence(prepared.get(domain, []), evidence)
    return prepared


def _item_key(item: DirectoryItem) -> str:
    return try_normalize_domain(item.domain) or item.domain


def recompute_item(
    domain: str,
    prev: DirectoryItem | None,
    probe: DomainProbe,
    now: datetime,
    discovery_evidence: Sequence[Evidence] = (),
) -> DirectoryItem:
    """Build the next record for one probed domain.

    Pure: the result depends only on the arguments. Evidence is merged in the
    order prior ledger, discovery, manifest, homepage.
    """
    signals = probe.signals
    evidence = merge_evidence(prev.evidence if prev else [], discovery_evidence)
    evidence = merge_evidence(evidence, probe.manifest.evidence)
    evidence = merge_evidence(evidence, probe.homepage.evidence)

    confidence = compute_confidence(
        evidence,
        model_context_hit=signals.model_context_hit,
        other_hit=signals.other_hit,
    )
    types = compute_types(
        evidence,
        model_context_hit=signals.model_context_hit,
        other_hit=signals.other_hit,
    )

    decision = evaluate(prev, signals, confidence, now)

    return DirectoryItem(
        domain=domain,
        name=(prev.name if prev else None) or domain,
        type=types,
        confidence=confidence,
        status=decision.status,
        verification_status=decision.verification_status,
        verification_method=decision.verification_method,
        proof=record_probe_proofs(prev.proof if prev else [], probe, now),
        last_verified_success=decision.last_verified_success,
        fail_streak=decision.fail_streak,
        evidence=evidence,
        last_checked=now,
        last_seen=decision.last_seen,
        sponsored=prev.sponsored if prev else False,
        verification_available=prev.verification_available if prev else True,
        notes=strip_legacy_fail_streak(prev.notes if prev else None),
    )


def merge_snapshot(
    existing: DirectorySnapshot,
    updated: Sequence[DirectoryItem],
    now: datetime,
) -> DirectorySnapshot:
    """Union of updated items and untouched existing items, sorted by domain.

    An existing item is replaced when an updated item has the same normalized
    domain; every other existing item is kept verbatim.
    """
    updated_keys = {item.domain for item in updated}
    carried = [item for item in existing.items if _item_key(item) not in updated_keys]
    items = sorted([*updated, *carried], key=lambda item: item.domain)
    return DirectorySnapshot(updated_at=now, items=items)


@dataclass
class ScanReport:
    """Summary of one scan run."""

    snapshot: DirectorySnapshot
    probed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    carried_over: int = 0

    @property
    def status_counts(self) -> dict[str, int]:
        """Item count per display status over the whole saved snapshot."""
        counts = Counter(item.status.value for item in self.snapshot.items)
        return {status.value: counts.get(status.value, 0) for status in DirectoryStatus}

    def to_dict(self) -> dict[str, object]:
        return {
            "updated_at": self.snapshot.updated_at.isoformat(),
            "items": len(self.snapshot.items),
            "probed": len(self.probed),
            "failed": list(self.failed),
            "carried_over": self.carried_over,
            "status_counts": self.status_counts,
        }


class DirectoryScanner:
    """Runs bounded, sequential scans against one DirectoryStore.

    The scanner relies on the store's single-writer contract: never run two
    scans against the same store at once.

    Example:
        >>> async with DomainProber.create(config) as prober:
        ...     scanner = DirectoryScanner(store, prober, config)
        ...     report = await scanner.run({"example.com": []})
    """

    def __init__(
        self,
        store: DirectoryStore,
        prober: DomainProber,
        config: ScanConfig | None = None,
        *,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._prober = prober
        self._config = config or ScanConfig()
        self._now = now

    async def run_sources(self, sources: Iterable[CandidateSource]) -> ScanReport:
        """Collect candidates from ``sources`` and run a scan over them."""
        return await self.run(await collect_candidates(sources))

    async def _scan_one(
        self,
        domain: str,
        prev: DirectoryItem | None,
        prepared: Mapping[str, Sequence[Evidence]],
    ) -> DirectoryItem | None:
        """Probe and recompute one domain; None if recompute failed."""
        probe = await self._prober.probe(
            domain,
            check_well_known=self._config.check_well_known,
            check_homepage=self._config.check_homepage,
        )
        try:
            item = recompute_item(domain, prev, probe, self._now(), prepared.get(domain, ()))
        except Exception:  # noqa: BLE001
            logger.exception("agentdir.scan.recompute_failed")
            return None
        logger.debug(
            "agentdir.scan.item_updated",
            status=item.status.value,
            confidence=item.confidence,
            fail_streak=item.fail_streak,
        )
        return item

    async def run(self, candidates: Mapping[str, Sequence[Evidence]]) -> ScanReport:
        """Probe the selected candidates and persist the merged snapshot.

        Args:
            candidates: Domain (any spelling) to discovery evidence.

        Returns:
            ScanReport for the saved snapshot.

        Raises:
            Exception: Whatever the store raises on save; a run that cannot
                persist fails.
        """
        existing = await load_or_empty(self._store, self._now)
        previous = {_item_key(item): item for item in existing.items}
        prepared = prepare_candidates(candidates)
        domains = select_domains(prepared, self._config.max_domains_per_run)

        logger.info(
            "agentdir.scan.started",
            candidates=len(prepared),
            selected=len(domains),
            existing_items=len(existing.items),
        )

        updated: list[DirectoryItem] = []
        probed: list[str] = []
        failed: list[str] = []
        for domain in domains:
            bind_context(domain=domain)
            try:
                item = await self._scan_one(domain, previous.get(domain), prepared)
            finally:
                unbind_context("domain")
            probed.append(domain)
            if item is None:
                failed.append(domain)
            else:
                updated.append(item)

        snapshot = merge_snapshot(existing, updated, self._now())
        await self._store.save(snapshot)

        report = ScanReport(
            snapshot=snapshot,
            probed=probed,
            failed=failed,
            carried_over=len(snapshot.items) - len(updated),
        )
        logger.info(
            "agentdir.scan.completed",
            probed=len(probed),
            failed=len(failed),
            carried_over=report.carried_over,
            items=len(snapshot.items),
            status_counts=report.status_counts,
        )
        return report

"""Tests for the proof ledger."""

from __future__ import annotations

from datetime import timedelta

from agentdir.models import Proof, ProofType
from agentdir.monitor.proof import record_probe_proofs, upsert_proof
from tests.conftest import FIXED_NOW
from tests.factories import make_probe, unreachable_probe, well_known_proof


class TestUpsertProof:
    """upsert_proof replaces by (type, url) and keeps the list sorted."""

    def test_replaces_same_key(self) -> None:
        old = well_known_proof("example.com", FIXED_NOW - timedelta(days=1))
        new = well_known_proof("example.com", FIXED_NOW)
        assert upsert_proof([old], new) == [new]

    def test_appends_and_sorts(self) -> None:
        homepage = Proof(type=ProofType.HOMEPAGE, url="https://example.com/", last_success=FIXED_NOW)
        wk = well_known_proof("example.com")
        assert upsert_proof([wk], homepage) == [homepage, wk]


class TestRecordProbeProofs:
    """Strong successes record proofs; failures never remove them."""

    def test_manifest_and_strong_hint(self) -> None:
        probe = make_probe(manifest_ok=True, hints=("navigator.modelContext",))
        proofs = record_probe_proofs([], probe, FIXED_NOW)
        assert [p.type for p in proofs] == [ProofType.HOMEPAGE, ProofType.WELL_KNOWN]
        assert all(p.last_success == FIXED_NOW for p in proofs)

    def test_weak_hint_records_nothing(self) -> None:
        probe = make_probe(hints=("webmcp",))
        assert record_probe_proofs([], probe, FIXED_NOW) == []

    def test_failure_keeps_existing(self) -> None:
        existing = [well_known_proof("example.com", FIXED_NOW - timedelta(days=7))]
        assert record_probe_proofs(existing, unreachable_probe(), FIXED_NOW) == existing

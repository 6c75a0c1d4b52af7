"""Tests for directory entities and their serialization."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from agentdir.models import (
    ClaimRecord,
    ClaimStatus,
    DirectoryItem,
    DirectoryStatus,
    Evidence,
    EvidenceKind,
    ProofType,
    VerificationStatus,
    strip_legacy_fail_streak,
)
from tests.conftest import FIXED_NOW
from tests.factories import github_hit, make_item, make_snapshot, well_known_proof


class TestEvidence:
    """Evidence keys and immutability."""

    def test_key_uses_empty_string_for_missing_url(self) -> None:
        """An evidence entry without url keys as (kind, detail, "")."""
        ev = Evidence(kind=EvidenceKind.HEURISTIC_HTML, detail="heuristic match in homepage html")
        assert ev.key == ("heuristic_html", "heuristic match in homepage html", "")

    def test_evidence_is_frozen(self) -> None:
        """Evidence cannot be mutated after creation."""
        ev = github_hit()
        with pytest.raises(ValidationError):
            ev.detail = "changed"  # type: ignore[misc]

    def test_unknown_kind_rejected(self) -> None:
        """Only the three known evidence kinds are accepted."""
        with pytest.raises(ValidationError):
            Evidence.model_validate({"kind": "dns_txt", "detail": "x"})


class TestDirectoryItem:
    """DirectoryItem defaults, bounds and legacy compatibility."""

    def test_defaults_for_new_item(self) -> None:
        """A bare item starts unverified with empty ledgers."""
        item = make_item()
        assert item.status == DirectoryStatus.UNVERIFIED
        assert item.verification_status == VerificationStatus.UNVERIFIED
        assert item.verification_method is None
        assert item.fail_streak == 0
        assert item.evidence == []
        assert item.proof == []
        assert item.sponsored is False
        assert item.verification_available is True

    @pytest.mark.parametrize("confidence", [-1, 101])
    def test_confidence_bounds(self, confidence: int) -> None:
        """Confidence outside 0..100 is rejected."""
        with pytest.raises(ValidationError):
            make_item(confidence=confidence)

    def test_negative_fail_streak_rejected(self) -> None:
        """fail_streak must be non-negative."""
        with pytest.raises(ValidationError):
            make_item(fail_streak=-1)

    def test_legacy_fail_streak_recovered_from_notes(self) -> None:
        """Older records without fail_streak read it from a notes token."""
        data = make_item(notes="flaky host fail_streak:4").model_dump(mode="json")
        del data["fail_streak"]
        item = DirectoryItem.model_validate(data)
        assert item.fail_streak == 4

    def test_explicit_fail_streak_wins_over_notes(self) -> None:
        """A stored fail_streak field is never overridden by notes."""
        data = make_item(notes="fail_streak:9", fail_streak=1).model_dump(mode="json")
        assert DirectoryItem.model_validate(data).fail_streak == 1

    def test_evidence_kinds_sorted_unique(self) -> None:
        """evidence_kinds lists each kind once, sorted."""
        item = make_item(
            evidence=[
                github_hit("a/b"),
                Evidence(kind=EvidenceKind.WELL_KNOWN_MCP_JSON, detail="found .well-known/mcp.json"),
                github_hit("c/d"),
            ]
        )
        assert item.evidence_kinds == ["github_hit", "well_known_mcp_json"]

    def test_json_uses_enum_values_and_z_timestamps(self) -> None:
        """Dumped JSON carries enum values and UTC timestamps."""
        item = make_item(proof=[well_known_proof("example.com")])
        data = item.model_dump(mode="json")
        assert data["status"] == "unverified"
        assert data["proof"][0]["type"] == ProofType.WELL_KNOWN.value
        assert data["last_seen"].endswith("Z")


class TestStripLegacyFailStreak:
    """strip_legacy_fail_streak removes only the legacy token."""

    @pytest.mark.parametrize(
        ("notes", "expected"),
        [
            (None, None),
            ("", None),
            ("fail_streak:3", None),
            ("manual review fail_streak:2", "manual review"),
            ("keep me", "keep me"),
        ],
    )
    def test_strip(self, notes: str | None, expected: str | None) -> None:
        assert strip_legacy_fail_streak(notes) == expected


class TestDirectorySnapshot:
    """Snapshot lookup by domain."""

    def test_get_returns_item_or_none(self) -> None:
        snapshot = make_snapshot(make_item("a.com"), make_item("b.com"))
        assert snapshot.get("b.com") is not None
        assert snapshot.get("c.com") is None


class TestClaimRecord:
    """Claim public view hides internal metadata."""

    def test_public_view_excludes_ip_and_user_agent(self) -> None:
        record = ClaimRecord(
            claim_id="6f1c2a9e-8d4b-4c1a-9f3e-2b7d5a6c8e01",
            created_at=FIXED_NOW,
            updated_at=FIXED_NOW,
            domain="example.com",
            ip="203.0.113.5",
            user_agent="curl/8.0",
            notes="private",
        )
        view = record.public_view()
        assert set(view) == {"claim_id", "domain", "status", "created_at", "updated_at"}
        assert view["status"] == ClaimStatus.PENDING.value

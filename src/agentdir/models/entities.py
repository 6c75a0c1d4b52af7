"""Directory entities: evidence, proofs, directory items and snapshots.

These models define the persisted shape of the directory. A snapshot is
``{"updated_at": ..., "items": [...]}`` with one DirectoryItem per normalized
domain. Claim records for the submission intake live here too.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from pydantic import Field, model_validator

from agentdir.models.base import AgentDirBaseModel
from agentdir.models.enums import (
    ClaimStatus,
    DirectoryStatus,
    EvidenceKind,
    ItemType,
    ProofType,
    VerificationMethod,
    VerificationStatus,
)

# Older snapshots kept the fail streak inside the free-text notes field.
_LEGACY_FAIL_STREAK_RE = re.compile(r"fail_streak:(\d+)")
_LEGACY_FAIL_STREAK_STRIP_RE = re.compile(r"(?:^|\s)fail_streak:\d+")


class Evidence(AgentDirBaseModel):
    """A single observation supporting a domain's agent readiness.

    Evidence is immutable and never deleted; the ledger is deduplicated by
    ``(kind, detail, url)``.

    Attributes:
        kind: What produced the evidence.
        detail: Free-text description (e.g. "repo: owner/name").
        url: Optional URL where the evidence was observed.
    """

    kind: EvidenceKind = Field(..., description="Evidence kind")
    detail: str = Field(..., description="Free-text description")
    url: str | None = Field(default=None, description="Where the evidence was observed")

    @property
    def key(self) -> tuple[str, str, str]:
        """Composite dedup key ``(kind, detail, url or "")``."""
        return (self.kind.value, self.detail, self.url or "")


class Proof(AgentDirBaseModel):
    """Last successful check for one proof mechanism at one URL.

    Attributes:
        type: Proof mechanism.
        url: URL that was checked.
        last_success: When the check last succeeded.
    """

    type: ProofType = Field(..., description="Proof mechanism")
    url: str = Field(..., description="URL that was checked")
    last_success: datetime = Field(..., description="When the check last succeeded")

    @property
    def key(self) -> tuple[str, str]:
        """Composite key ``(type, url)``."""
        return (self.type.value, self.url)


class DirectoryItem(AgentDirBaseModel):
    """One domain's directory record.

    ``confidence`` and ``status`` are recomputed on every run that probes the
    domain. ``verification_status``, ``verification_method``, ``proof`` and
    ``evidence`` carry history forward.
    """

    domain: str = Field(..., min_length=1, description="Normalized hostname (unique key)")
    name: str | None = Field(default=None, description="Display name")
    type: list[ItemType] = Field(default_factory=list, description="Advertised capability types")
    confidence: int = Field(default=0, ge=0, le=100, description="Confidence score 0-100")
    status: DirectoryStatus = Field(
        default=DirectoryStatus.UNVERIFIED, description="Display status"
    )
    verification_status: VerificationStatus = Field(
        default=VerificationStatus.UNVERIFIED, description="Sticky verification state"
    )
    verification_method: VerificationMethod | None = Field(
        default=None, description="Last method that ever succeeded"
    )
    proof: list[Proof] = Field(default_factory=list, description="Proof ledger")
    last_verified_success: datetime | None = Field(
        default=None, description="Last strong success"
    )
    fail_streak: int = Field(default=0, ge=0, description="Consecutive fully failed runs")
    evidence: list[Evidence] = Field(default_factory=list, description="Evidence ledger")
    last_checked: datetime = Field(..., description="When the domain was last probed")
    last_seen: datetime = Field(..., description="When any success signal was last seen")
    sponsored: bool = Field(default=False, description="Sponsored listing flag")
    verification_available: bool = Field(
        default=True, description="Whether the owner can request verification"
    )
    notes: str | None = Field(default=None, description="Operator notes")

    @model_validator(mode="before")
    @classmethod
    def _recover_legacy_fail_streak(cls, data: Any) -> Any:
        """Read ``fail_streak`` from notes when older records lack the field."""
        if not isinstance(data, dict) or data.get("fail_streak") is not None:
            return data
        notes = data.get("notes")
        if isinstance(notes, str):
            match = _LEGACY_FAIL_STREAK_RE.search(notes)
            if match:
                return {**data, "fail_streak": int(match.group(1))}
        return data

    @property
    def evidence_kinds(self) -> list[str]:
        """Sorted unique evidence kind values."""
        return sorted({e.kind.value for e in self.evidence})


def strip_legacy_fail_streak(notes: str | None) -> str | None:
    """Remove ``fail_streak:N`` tokens from notes; empty results become None."""
    base = _LEGACY_FAIL_STREAK_STRIP_RE.sub("", notes or "").strip()
    return base or None


class DirectorySnapshot(AgentDirBaseModel):
    """The persisted directory: every known item plus the write timestamp."""

    updated_at: datetime = Field(..., description="When the snapshot was written")
    items: list[DirectoryItem] = Field(default_factory=list, description="Directory items")

    def get(self, domain: str) -> DirectoryItem | None:
        """Return the item for ``domain`` (exact key match), or None."""
        for item in self.items:
            if item.domain == domain:
                return item
        return None


class ClaimRecord(AgentDirBaseModel):
    """A submitted ownership claim awaiting review.

    ``ip`` and ``user_agent`` are internal metadata and are never part of the
    public claim view.
    """

    claim_id: str = Field(..., description="UUID4 claim identifier")
    created_at: datetime
    updated_at: datetime
    status: ClaimStatus = Field(default=ClaimStatus.PENDING)
    domain: str = Field(..., description="Normalized claimed domain")
    proof_url: str | None = None
    notes: str | None = None
    ip: str | None = None
    user_agent: str | None = None

    def public_view(self) -> dict[str, Any]:
        """Return the fields safe to expose to the submitter."""
        return self.model_dump(
            mode="json",
            include={"claim_id", "domain", "status", "created_at", "updated_at"},
        )

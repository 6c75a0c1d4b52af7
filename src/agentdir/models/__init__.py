"""agentdir data models.

Public exports:
    Evidence, Proof, DirectoryItem, DirectorySnapshot, ClaimRecord: entities
    EvidenceKind, ProofType, ItemType, DirectoryStatus, VerificationStatus,
    VerificationMethod, ClaimStatus: enumerations
"""

from agentdir.models.entities import (
    ClaimRecord,
    DirectoryItem,
    DirectorySnapshot,
    Evidence,
    Proof,
    strip_legacy_fail_streak,
)
from agentdir.models.enums import (
    ClaimStatus,
    DirectoryStatus,
    EvidenceKind,
    ItemType,
    ProofType,
    VerificationMethod,
    VerificationStatus,
)

__all__ = [
    "ClaimRecord",
    "ClaimStatus",
    "DirectoryItem",
    "DirectorySnapshot",
    "DirectoryStatus",
    "Evidence",
    "EvidenceKind",
    "ItemType",
    "Proof",
    "ProofType",
    "VerificationMethod",
    "VerificationStatus",
    "strip_legacy_fail_streak",
]

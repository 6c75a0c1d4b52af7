"""Enumerations for the agentdir directory.

This module defines all enum types used by the directory so that statuses,
evidence kinds and proof types never appear as magic strings.
"""

from enum import Enum


class EvidenceKind(str, Enum):
    """Kinds of evidence recorded in a domain's evidence ledger.

    Example:
        >>> EvidenceKind.WELL_KNOWN_MCP_JSON.value
        'well_known_mcp_json'
    """

    GITHUB_HIT = "github_hit"
    WELL_KNOWN_MCP_JSON = "well_known_mcp_json"
    HEURISTIC_HTML = "heuristic_html"


class ProofType(str, Enum):
    """Proof mechanisms tracked in the proof ledger."""

    WELL_KNOWN = "well_known"
    HOMEPAGE = "homepage"


class ItemType(str, Enum):
    """Capability types a directory item can advertise."""

    WEBMCP = "webmcp"
    MCP_SERVER = "mcp-server"


class DirectoryStatus(str, Enum):
    """Display status of a directory item.

    Derived fresh each run from confidence and fail streak; carries no memory.
    ``rank`` gives the ordering used by directory queries.

    Example:
        >>> DirectoryStatus.VERIFIED.rank < DirectoryStatus.DEAD.rank
        True
    """

    VERIFIED = "verified"
    LIKELY = "likely"
    UNVERIFIED = "unverified"
    DEAD = "dead"

    @property
    def rank(self) -> int:
        """Sort rank: verified < likely < unverified < dead."""
        return _STATUS_RANK[self]


_STATUS_RANK: dict[DirectoryStatus, int] = {
    DirectoryStatus.VERIFIED: 0,
    DirectoryStatus.LIKELY: 1,
    DirectoryStatus.UNVERIFIED: 2,
    DirectoryStatus.DEAD: 3,
}


class VerificationStatus(str, Enum):
    """Sticky verification state persisted across runs.

    Only a strong fresh success grants VERIFIED; only a sustained transport
    failure streak on a VERIFIED item yields REVOKED.
    """

    UNVERIFIED = "unverified"
    VERIFIED = "verified"
    REVOKED = "revoked"


class VerificationMethod(str, Enum):
    """Last method that ever succeeded in verifying a domain."""

    WELL_KNOWN = "well_known"
    MODEL_CONTEXT_DETECTED = "modelContext_detected"
    MANUAL = "manual"


class ClaimStatus(str, Enum):
    """Review state of a submitted domain claim."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REVOKED = "revoked"

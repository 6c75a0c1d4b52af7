"""Evidence scoring, verification state machine and proof ledger.

Scan orchestration lives in ``agentdir.monitor.scan`` (DirectoryScanner);
it is not re-exported here because it depends on the discovery package,
which itself builds on ``merge_evidence``.
"""

from agentdir.monitor.evidence import (
    compute_confidence,
    compute_types,
    evidence_kinds,
    merge_evidence,
)
from agentdir.monitor.proof import record_probe_proofs, upsert_proof
from agentdir.monitor.verification import (
    DEAD_FAIL_STREAK,
    LIKELY_CONFIDENCE,
    REVOKE_FAIL_STREAK,
    VERIFIED_CONFIDENCE,
    VerificationDecision,
    derive_status,
    evaluate,
    next_fail_streak,
    next_verification_method,
    next_verification_status,
)

__all__ = [
    "DEAD_FAIL_STREAK",
    "LIKELY_CONFIDENCE",
    "REVOKE_FAIL_STREAK",
    "VERIFIED_CONFIDENCE",
    "VerificationDecision",
    "compute_confidence",
    "compute_types",
    "derive_status",
    "evaluate",
    "evidence_kinds",
    "merge_evidence",
    "next_fail_streak",
    "next_verification_method",
    "next_verification_status",
    "record_probe_proofs",
    "upsert_proof",
]

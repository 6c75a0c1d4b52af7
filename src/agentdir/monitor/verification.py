"""Directory status and verification state machine.

Two states are derived per domain per run:

- ``status`` is memoryless: a pure function of this run's confidence, strong
  success and fail streak.
- ``verification_status`` is sticky (hysteretic): only a strong fresh success
  with confidence >= 80 grants VERIFIED, and only five consecutive fully
  failed runs revoke it.

The fail streak counts runs in which *neither* probe got a usable response.
A run that reaches the site but finds no evidence leaves it unchanged.

Example:
    >>> from agentdir.probe.outcomes import ProbeSignals
    >>> signals = ProbeSignals(well_known_ok=True, homepage_reachable=True)
    >>> next_fail_streak(4, signals)
    0
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from agentdir.models import (
    DirectoryItem,
    DirectoryStatus,
    VerificationMethod,
    VerificationStatus,
)
from agentdir.probe.outcomes import ProbeSignals

__all__ = [
    "DEAD_FAIL_STREAK",
    "LIKELY_CONFIDENCE",
    "REVOKE_FAIL_STREAK",
    "VERIFIED_CONFIDENCE",
    "VerificationDecision",
    "derive_status",
    "evaluate",
    "next_fail_streak",
    "next_verification_method",
    "next_verification_status",
]

DEAD_FAIL_STREAK = 3
REVOKE_FAIL_STREAK = 5
VERIFIED_CONFIDENCE = 80
LIKELY_CONFIDENCE = 50


def next_fail_streak(prev_fail_streak: int, signals: ProbeSignals) -> int:
    """Reset on strong success, +1 when both probes failed, otherwise unchanged."""
    if signals.strong_success:
        return 0
    if signals.both_failed_transport:
        return prev_fail_streak + 1
    return prev_fail_streak


def derive_status(
    confidence: int, *, strong_success: bool, fail_streak: int
) -> DirectoryStatus:
    """Display status, evaluated in precedence order dead > verified > likely > unverified."""
    if fail_streak >= DEAD_FAIL_STREAK:
        return DirectoryStatus.DEAD
    if confidence >= VERIFIED_CONFIDENCE and strong_success:
        return DirectoryStatus.VERIFIED
    if confidence >= LIKELY_CONFIDENCE:
        return DirectoryStatus.LIKELY
    return DirectoryStatus.UNVERIFIED


def next_verification_status(
    prev: VerificationStatus | None,
    *,
    strong_success: bool,
    confidence: int,
    fail_streak: int,
) -> VerificationStatus:
    """Sticky verification transition.

    VERIFIED whenever a strong success lands with confidence >= 80 (even from
    REVOKED); REVOKED only from VERIFIED after a fail streak of 5 with no
    strong success; otherwise the previous value (UNVERIFIED if never set).
    """
    if strong_success and confidence >= VERIFIED_CONFIDENCE:
        return VerificationStatus.VERIFIED
    if (
        prev == VerificationStatus.VERIFIED
        and fail_streak >= REVOKE_FAIL_STREAK
        and not strong_success
    ):
        return VerificationStatus.REVOKED
    return prev or VerificationStatus.UNVERIFIED


def next_verification_method(
    prev: VerificationMethod | None, signals: ProbeSignals
) -> VerificationMethod | None:
    """Most recent successful method; never cleared by a failed run."""
    if signals.well_known_ok:
        return VerificationMethod.WELL_KNOWN
    if signals.model_context_hit:
        return VerificationMethod.MODEL_CONTEXT_DETECTED
    return prev


@dataclass(frozen=True)
class VerificationDecision:
    """Everything the state machine decides for one domain in one run."""

    fail_streak: int
    status: DirectoryStatus
    verification_status: VerificationStatus
    verification_method: VerificationMethod | None
    last_verified_success: datetime | None
    last_seen: datetime


def evaluate(
    prev: DirectoryItem | None,
    signals: ProbeSignals,
    confidence: int,
    now: datetime,
) -> VerificationDecision:
    """Apply every transition rule for one domain.

    Args:
        prev: The domain's previous record, or None on first sighting.
        signals: This run's probe signals.
        confidence: This run's recomputed confidence.
        now: Timestamp of this run's check.
    """
    strong = signals.strong_success
    fail_streak = next_fail_streak(prev.fail_streak if prev else 0, signals)

    if strong:
        last_verified_success: datetime | None = now
    else:
        last_verified_success = prev.last_verified_success if prev else None

    if signals.any_success or prev is None:
        last_seen = now
    else:
        last_seen = prev.last_seen

    return VerificationDecision(
        fail_streak=fail_streak,
        status=derive_status(confidence, strong_success=strong, fail_streak=fail_streak),
        verification_status=next_verification_status(
            prev.verification_status if prev else None,
            strong_success=strong,
            confidence=confidence,
            fail_streak=fail_streak,
        ),
        verification_method=next_verification_method(
            prev.verification_method if prev else None, signals
        ),
        last_verified_success=last_verified_success,
        last_seen=last_seen,
    )

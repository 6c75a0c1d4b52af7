"""agentdir Error Taxonomy.

This module defines the error hierarchy for the directory engine,
providing structured error handling with specific error codes
and context information.

Probe transport, timeout and parse errors are deliberately absent: the probe
layer turns them into ``ProbeFailure`` outcomes and never raises them.
"""
from __future__ import annotations

from typing import Any


class AgentDirError(Exception):
    """Base exception for all agentdir errors.

    Attributes:
        code: Error code following the agentdir:<area>/<reason> pattern
        message: Human-readable error message
        details: Optional additional error context
    """

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class InvalidDomainError(AgentDirError):
    """Raised when a string cannot be normalized into a public hostname.

    Attributes:
        value: The rejected input
        reason: Why the input was rejected
    """

    def __init__(self, value: str, reason: str, details: dict[str, Any] | None = None) -> None:
        message = f"Invalid domain {value!r}: {reason}"
        super().__init__(
            code="agentdir:input/invalid_domain",
            message=message,
            details={"value": value, "reason": reason, **(details or {})},
        )
        self.value = value
        self.reason = reason


class BlockedDomainError(AgentDirError):
    """Raised when a hostname resolves to a private, loopback or link-local address.

    Attributes:
        domain: The rejected hostname
        address: The blocked address it resolved to
    """

    def __init__(self, domain: str, address: str, details: dict[str, Any] | None = None) -> None:
        message = f"Domain {domain} resolves to a private/loopback address ({address})"
        super().__init__(
            code="agentdir:input/blocked_domain",
            message=message,
            details={"domain": domain, "address": address, **(details or {})},
        )
        self.domain = domain
        self.address = address


class UnresolvableDomainError(AgentDirError):
    """Raised when a hostname does not resolve to any address."""

    def __init__(self, domain: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="agentdir:input/unresolvable_domain",
            message=f"Domain did not resolve: {domain}",
            details={"domain": domain, **(details or {})},
        )
        self.domain = domain


class DnsTimeoutError(AgentDirError):
    """Raised when resolving a hostname exceeds the lookup timeout."""

    def __init__(
        self, domain: str, timeout_seconds: float, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            code="agentdir:input/dns_timeout",
            message=f"DNS lookup for {domain} timed out after {timeout_seconds}s",
            details={"domain": domain, "timeout_seconds": timeout_seconds, **(details or {})},
        )
        self.domain = domain
        self.timeout_seconds = timeout_seconds


class InvalidQueryError(AgentDirError):
    """Raised when a directory query or its filters are malformed.

    Attributes:
        errors: Flattened validation messages
    """

    def __init__(self, errors: list[str], details: dict[str, Any] | None = None) -> None:
        message = "Invalid directory query: " + "; ".join(errors)
        super().__init__(
            code="agentdir:input/invalid_query",
            message=message,
            details={"errors": errors, **(details or {})},
        )
        self.errors = errors


class InvalidClaimIdError(AgentDirError):
    """Raised when a claim ID is not a UUID."""

    def __init__(self, claim_id: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="agentdir:input/invalid_claim_id",
            message=f"Invalid claim id: {claim_id!r}",
            details={"claim_id": claim_id, **(details or {})},
        )
        self.claim_id = claim_id


class ClaimNotFoundError(AgentDirError):
    """Raised when a claim ID is well-formed but unknown to the queue."""

    def __init__(self, claim_id: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="agentdir:claim/not_found",
            message=f"Claim not found: {claim_id}",
            details={"claim_id": claim_id, **(details or {})},
        )
        self.claim_id = claim_id


class SnapshotLoadError(AgentDirError):
    """Raised by a store when the persisted snapshot cannot be parsed.

    Callers that run scans absorb this via ``load_or_empty`` and start from an
    empty directory.

    Attributes:
        location: File path or store key that held the payload
    """

    def __init__(self, location: str, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="agentdir:store/snapshot_corrupt",
            message=f"Cannot load directory snapshot from {location}: {reason}",
            details={"location": location, "reason": reason, **(details or {})},
        )
        self.location = location
        self.reason = reason

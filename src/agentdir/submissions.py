"""Submission intake: ownership claims for directory domains.

Submitting a site never probes it. Claims are queued for review and can be
looked up by ID; the lookup exposes only the public claim fields.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any, Literal

from agentdir.discovery.normalize import normalize_domain
from agentdir.errors import ClaimNotFoundError, InvalidClaimIdError
from agentdir.models import ClaimRecord, ClaimStatus
from agentdir.models.base import AgentDirBaseModel
from agentdir.observability import get_logger
from agentdir.store.snapshot import SubmissionQueue, utc_now

logger = get_logger(__name__)

MAX_NOTES_LENGTH = 1000

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class ClaimReceipt(AgentDirBaseModel):
    """Acknowledgement returned to the submitter."""

    status: Literal["received"] = "received"
    claim_id: str
    domain: str
    queued: bool = True


def is_claim_id(value: str) -> bool:
    return bool(_UUID_RE.match(value))


def _clean(value: str | None, max_length: int | None = None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    if max_length is not None:
        cleaned = cleaned[:max_length]
    return cleaned or None


class SubmissionIntake:
    """Accepts site submissions and answers claim-status lookups.

    Args:
        queue: Bounded claim queue (newest first).
        now: Clock used for claim timestamps.
    """

    def __init__(
        self,
        queue: SubmissionQueue,
        *,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._queue = queue
        self._now = now

    async def submit(
        self,
        domain: str,
        proof_url: str | None = None,
        notes: str | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> ClaimReceipt:
        """Queue a pending claim for ``domain``.

        Raises:
            InvalidDomainError: If the domain cannot be normalized.
        """
        normalized = normalize_domain(domain)
        timestamp = self._now()
        record = ClaimRecord(
            claim_id=str(uuid.uuid4()),
            created_at=timestamp,
            updated_at=timestamp,
            status=ClaimStatus.PENDING,
            domain=normalized,
            proof_url=_clean(proof_url),
            notes=_clean(notes, MAX_NOTES_LENGTH),
            ip=ip,
            user_agent=user_agent,
        )
        await self._queue.append(record)
        logger.info("agentdir.submission.received", claim_id=record.claim_id, domain=normalized)
        return ClaimReceipt(claim_id=record.claim_id, domain=normalized)

    async def claim_status(self, claim_id: str) -> dict[str, Any]:
        """Return the public view of a claim.

        Raises:
            InvalidClaimIdError: If ``claim_id`` is not a UUID.
            ClaimNotFoundError: If no queued claim has this ID.
        """
        candidate = claim_id.strip()
        if not is_claim_id(candidate):
            raise InvalidClaimIdError(claim_id)
        record = await self._queue.get(candidate.lower())
        if record is None:
            raise ClaimNotFoundError(candidate)
        return record.public_view()

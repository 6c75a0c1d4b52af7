"""In-memory DirectoryStore and SubmissionQueue implementations.

Useful for tests and one-off runs that don't need persistence across restarts.
"""

from __future__ import annotations

from agentdir.models import ClaimRecord, DirectorySnapshot
from agentdir.store.snapshot import MAX_QUEUED_CLAIMS


class InMemoryDirectoryStore:
    """Keeps the current snapshot in memory.

    ``save_count`` counts saves so tests can assert a run writes exactly once.
    """

    def __init__(self, snapshot: DirectorySnapshot | None = None) -> None:
        self._snapshot = snapshot
        self.save_count = 0

    async def load(self) -> DirectorySnapshot | None:
        return self._snapshot

    async def save(self, snapshot: DirectorySnapshot) -> None:
        self._snapshot = snapshot
        self.save_count += 1


class InMemorySubmissionQueue:
    """Bounded in-memory claim queue, newest first."""

    def __init__(self, max_claims: int = MAX_QUEUED_CLAIMS) -> None:
        self._max_claims = max_claims
        self._records: list[ClaimRecord] = []

    async def append(self, record: ClaimRecord) -> None:
        self._records.insert(0, record)
        del self._records[self._max_claims :]

    async def get(self, claim_id: str) -> ClaimRecord | None:
        for record in self._records:
            if record.claim_id == claim_id:
                return record
        return None

    async def list_recent(self, limit: int = MAX_QUEUED_CLAIMS) -> list[ClaimRecord]:
        return self._records[:limit]


__all__ = [
    "InMemoryDirectoryStore",
    "InMemorySubmissionQueue",
]

"""Directory store interfaces and snapshot serialization.

A DirectoryStore holds exactly one current DirectorySnapshot. A scan run loads
it once and saves it once.

Single-writer contract: stores take no locks. Callers must make sure at most
one scan run writes to a given store at a time (e.g. a scheduler with mutual
exclusion); overlapping runs lose updates.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, ValidationError

from agentdir.errors import SnapshotLoadError
from agentdir.models import ClaimRecord, DirectoryItem, DirectorySnapshot
from agentdir.observability import get_logger

logger = get_logger(__name__)

# Newest claims kept by a submission queue.
MAX_QUEUED_CLAIMS = 1000


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@runtime_checkable
class DirectoryStore(Protocol):
    """Protocol for directory snapshot storage.

    Implementations can use various backends (memory, JSON file, SQLite).
    """

    async def load(self) -> DirectorySnapshot | None:
        """Return the stored snapshot, or None if nothing was stored yet.

        Raises:
            SnapshotLoadError: If a stored payload exists but cannot be parsed.
        """
        ...

    async def save(self, snapshot: DirectorySnapshot) -> None:
        """Replace the stored snapshot atomically."""
        ...


@runtime_checkable
class SubmissionQueue(Protocol):
    """Protocol for the bounded claim queue behind the submission intake."""

    async def append(self, record: ClaimRecord) -> None:
        """Store a claim; only the newest MAX_QUEUED_CLAIMS are retained."""
        ...

    async def get(self, claim_id: str) -> ClaimRecord | None:
        """Return the claim with this ID, or None."""
        ...

    async def list_recent(self, limit: int = MAX_QUEUED_CLAIMS) -> list[ClaimRecord]:
        """Return up to ``limit`` claims, newest first."""
        ...


def empty_snapshot(now: datetime | None = None) -> DirectorySnapshot:
    return DirectorySnapshot(updated_at=now or utc_now(), items=[])


def dump_snapshot_json(snapshot: DirectorySnapshot) -> str:
    """Serialize deterministically: items sorted by domain, proofs by (type, url).

    Output is 2-space indented JSON with a trailing newline so that identical
    snapshots produce byte-identical files.
    """
    ordered = snapshot.model_copy(
        update={
            "items": [
                item.model_copy(update={"proof": sorted(item.proof, key=lambda p: p.key)})
                for item in sorted(snapshot.items, key=lambda i: i.domain)
            ]
        }
    )
    return json.dumps(ordered.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"


class _StoredSnapshot(BaseModel):
    """Snapshot envelope with items left unvalidated, for item-level recovery."""

    model_config = ConfigDict(extra="ignore")

    updated_at: datetime
    items: list[Any]


def _recover_item(raw: Any, location: str) -> DirectoryItem | None:
    """Validate one stored item, retrying without unknown fields.

    Returns None when the item is unusable even after unknown fields are
    dropped; that case is logged with the item's domain.
    """
    try:
        return DirectoryItem.model_validate(raw)
    except ValidationError as exc:
        first_error = exc
    if isinstance(raw, dict):
        known = {k: v for k, v in raw.items() if k in DirectoryItem.model_fields}
        try:
            item = DirectoryItem.model_validate(known)
        except ValidationError as exc:
            first_error = exc
        else:
            logger.warning(
                "agentdir.store.item_fields_dropped",
                location=location,
                domain=item.domain,
                fields=sorted(set(raw) - set(known)),
            )
            return item
    logger.warning(
        "agentdir.store.item_dropped",
        location=location,
        domain=raw.get("domain") if isinstance(raw, dict) else None,
        errors=first_error.error_count(),
    )
    return None


def parse_snapshot_json(raw: str | bytes, location: str) -> DirectorySnapshot:
    """Parse a stored snapshot payload.

    Items are validated one by one when the payload as a whole does not match
    the schema: an item with unknown fields is kept with those fields dropped,
    and only an item that is still invalid is left out. Every other item
    survives.

    Raises:
        SnapshotLoadError: If the payload is not UTF-8, not valid JSON, or its
            envelope (``updated_at``, ``items`` list) does not match.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SnapshotLoadError(location, f"not valid UTF-8: {exc.reason}") from exc
    try:
        return DirectorySnapshot.model_validate_json(raw)
    except ValidationError:
        pass
    try:
        stored = _StoredSnapshot.model_validate_json(raw)
    except ValidationError as exc:
        raise SnapshotLoadError(location, f"{exc.error_count()} validation error(s)") from exc
    recovered = [_recover_item(item, location) for item in stored.items]
    items = [item for item in recovered if item is not None]
    logger.warning(
        "agentdir.store.partially_recovered",
        location=location,
        kept=len(items),
        dropped=len(recovered) - len(items),
    )
    return DirectorySnapshot(updated_at=stored.updated_at, items=items)


async def load_or_empty(
    store: DirectoryStore, now: Callable[[], datetime] = utc_now
) -> DirectorySnapshot:
    """Load the stored snapshot, falling back to an empty one.

    A missing snapshot and a corrupt snapshot both yield an empty directory;
    the corrupt case is logged as a warning.
    """
    try:
        snapshot = await store.load()
    except SnapshotLoadError as exc:
        logger.warning(
            "agentdir.store.load_failed",
            location=exc.location,
            reason=exc.reason,
        )
        return empty_snapshot(now())
    if snapshot is None:
        logger.info("agentdir.store.empty")
        return empty_snapshot(now())
    return snapshot

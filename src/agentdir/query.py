"""Directory query and public snapshot export.

Both operate on an already-loaded DirectorySnapshot and never touch the
network. Results use one deterministic order: status rank (verified, likely,
unverified, dead), confidence descending, last_seen descending, domain.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from pydantic import Field, ValidationError, field_validator

from agentdir.errors import InvalidQueryError
from agentdir.models import (
    DirectoryItem,
    DirectorySnapshot,
    DirectoryStatus,
    ItemType,
    VerificationStatus,
)
from agentdir.models.base import AgentDirBaseModel

DEFAULT_QUERY_LIMIT = 10
MAX_QUERY_LIMIT = 50
DEFAULT_SNAPSHOT_LIMIT = 50
MAX_SNAPSHOT_LIMIT = 200

DOMAIN_MATCH_SCORE = 50
EVIDENCE_MATCH_SCORE = 10

PUBLIC_STATUSES = frozenset({DirectoryStatus.VERIFIED, DirectoryStatus.LIKELY})


def _clamp(value: Any, low: int, high: int) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    if isinstance(value, float) and not math.isfinite(value):
        return value
    return max(low, min(high, math.floor(value)))


class QueryFilters(AgentDirBaseModel):
    """Optional filters; all given filters must hold for an item to match.

    Attributes:
        status: Exact display status.
        type: Item must carry at least one of these types.
        min_confidence: Confidence floor (inclusive).
    """

    status: DirectoryStatus | None = None
    type: list[ItemType] | None = None
    min_confidence: int | None = Field(default=None, ge=0, le=100)


class DirectoryQuery(AgentDirBaseModel):
    """A directory search request.

    ``limit`` is clamped to 1..50 rather than rejected.
    """

    query: str | None = None
    filters: QueryFilters | None = None
    limit: int = Field(default=DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT)

    @field_validator("limit", mode="before")
    @classmethod
    def _clamp_limit(cls, v: Any) -> Any:
        return _clamp(v, 1, MAX_QUERY_LIMIT)


class DirectoryQueryResult(AgentDirBaseModel):
    domain: str
    type: list[ItemType]
    confidence: int
    status: DirectoryStatus
    evidence_summary: list[str]
    last_seen: datetime


class DirectoryQueryResponse(AgentDirBaseModel):
    results: list[DirectoryQueryResult]
    total: int = Field(..., description="Matches before the limit was applied")


class PublicSnapshotEntry(AgentDirBaseModel):
    domain: str
    type: list[ItemType]
    verification_status: VerificationStatus
    confidence: int
    last_seen: datetime
    proof_summary: list[str]


class PublicSnapshot(AgentDirBaseModel):
    updated_at: datetime
    results: list[PublicSnapshotEntry]


def parse_query(data: Any) -> DirectoryQuery:
    """Validate a raw request (e.g. decoded JSON) into a DirectoryQuery.

    Raises:
        InvalidQueryError: On unknown status/type values, unknown fields or
            wrongly typed values.
    """
    if isinstance(data, DirectoryQuery):
        return data
    try:
        return DirectoryQuery.model_validate(data or {})
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or 'query'}: {err['msg']}"
            for err in exc.errors()
        ]
        raise InvalidQueryError(errors) from exc


def directory_sort_key(item: DirectoryItem) -> tuple[int, int, float, str]:
    return (item.status.rank, -item.confidence, -item.last_seen.timestamp(), item.domain)


def match_score(item: DirectoryItem, query: str) -> int:
    """50 for a domain substring match, else 10 for an evidence-kind match, else 0."""
    needle = query.strip().lower()
    if not needle:
        return 0
    if needle in item.domain.lower():
        return DOMAIN_MATCH_SCORE
    if needle in " ".join(item.evidence_kinds).lower():
        return EVIDENCE_MATCH_SCORE
    return 0


def _matches_filters(item: DirectoryItem, filters: QueryFilters | None) -> bool:
    if filters is None:
        return True
    if filters.status is not None and item.status != filters.status:
        return False
    if filters.type and not set(filters.type) & set(item.type):
        return False
    if filters.min_confidence is not None and item.confidence < filters.min_confidence:
        return False
    return True


def search_directory(
    snapshot: DirectorySnapshot, request: DirectoryQuery | dict[str, Any] | None = None
) -> DirectoryQueryResponse:
    """Filter, match and order directory items.

    Raises:
        InvalidQueryError: If ``request`` is a dict that fails validation.
    """
    query = parse_query(request)
    items = [item for item in snapshot.items if _matches_filters(item, query.filters)]
    text = (query.query or "").strip()
    if text:
        items = [item for item in items if match_score(item, text) > 0]
    items.sort(key=directory_sort_key)
    return DirectoryQueryResponse(
        results=[
            DirectoryQueryResult(
                domain=item.domain,
                type=item.type,
                confidence=item.confidence,
                status=item.status,
                evidence_summary=item.evidence_kinds,
                last_seen=item.last_seen,
            )
            for item in items[: query.limit]
        ],
        total=len(items),
    )


def build_public_snapshot(
    snapshot: DirectorySnapshot, limit: int = DEFAULT_SNAPSHOT_LIMIT
) -> PublicSnapshot:
    """Verified and likely items only, in directory order, limit clamped to 1..200."""
    bounded = _clamp(limit, 1, MAX_SNAPSHOT_LIMIT)
    items = sorted(
        (item for item in snapshot.items if item.status in PUBLIC_STATUSES),
        key=directory_sort_key,
    )
    return PublicSnapshot(
        updated_at=snapshot.updated_at,
        results=[
            PublicSnapshotEntry(
                domain=item.domain,
                type=item.type,
                verification_status=item.verification_status,
                confidence=item.confidence,
                last_seen=item.last_seen,
                proof_summary=sorted({p.type.value for p in item.proof}),
            )
            for item in items[:bounded]
        ],
    )

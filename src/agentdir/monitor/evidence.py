"""Evidence ledger merging and confidence scoring.

The ledger only grows. Confidence is recomputed from scratch every run:
ledger-backed signals (manifest, GitHub) keep contributing once recorded,
while the homepage hint contribution counts only when this run's probe saw it.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from agentdir.models import Evidence, EvidenceKind, ItemType

WELL_KNOWN_WEIGHT = 70
GITHUB_WEIGHT = 30
MODEL_CONTEXT_WEIGHT = 60
OTHER_HINT_WEIGHT = 25
MAX_CONFIDENCE = 100


def merge_evidence(existing: Sequence[Evidence], added: Iterable[Evidence]) -> list[Evidence]:
    """Merge two evidence lists, deduplicated by ``(kind, detail, url)``.

    Order of first occurrence is preserved, so no distinct entry is ever
    dropped. Duplicates already present in ``existing`` collapse as well.

    Example:
        >>> a = Evidence(kind=EvidenceKind.GITHUB_HIT, detail="repo: o/r")
        >>> len(merge_evidence([a], [a]))
        1
    """
    seen: set[tuple[str, str, str]] = set()
    merged: list[Evidence] = []
    for entry in [*existing, *added]:
        if entry.key not in seen:
            seen.add(entry.key)
            merged.append(entry)
    return merged


def evidence_kinds(evidence: Iterable[Evidence]) -> set[EvidenceKind]:
    return {e.kind for e in evidence}


def compute_confidence(
    evidence: Iterable[Evidence],
    *,
    model_context_hit: bool,
    other_hit: bool,
) -> int:
    """Score 0-100 from the ledger plus this run's homepage signals.

    +70 if the ledger holds any well_known_mcp_json entry, +30 for any
    github_hit, +60 for a live strong hint, +25 for a live weak hint when the
    strong hint did not already count. Clamped to [0, 100].
    """
    kinds = evidence_kinds(evidence)
    score = 0
    if EvidenceKind.WELL_KNOWN_MCP_JSON in kinds:
        score += WELL_KNOWN_WEIGHT
    if EvidenceKind.GITHUB_HIT in kinds:
        score += GITHUB_WEIGHT
    if model_context_hit:
        score += MODEL_CONTEXT_WEIGHT
    elif other_hit:
        score += OTHER_HINT_WEIGHT
    return max(0, min(MAX_CONFIDENCE, score))


def compute_types(
    evidence: Iterable[Evidence],
    *,
    model_context_hit: bool,
    other_hit: bool,
) -> list[ItemType]:
    """Capability types supported by the ledger and this run's signals, sorted."""
    types: set[ItemType] = set()
    if EvidenceKind.WELL_KNOWN_MCP_JSON in evidence_kinds(evidence):
        types.add(ItemType.MCP_SERVER)
    if model_context_hit or other_hit:
        types.add(ItemType.WEBMCP)
    return sorted(types, key=lambda t: t.value)

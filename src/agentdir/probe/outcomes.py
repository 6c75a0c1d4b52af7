"""Tagged probe outcomes.

A probe never raises: it returns either ProbeSuccess or ProbeFailure, and the
failure carries a FailureReason so that "the page was unreachable" and "the
page was fine but had no hint" stay distinguishable in diagnostics even though
both contribute nothing to confidence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from agentdir.models import Evidence, EvidenceKind

WELL_KNOWN_MANIFEST_PATH = "/.well-known/mcp.json"

STRONG_HINT = "navigator.modelContext"
WEAK_HINTS: tuple[str, ...] = (
    "registerTool",
    "provideContext",
    "mcp-b",
    "react-webmcp",
    "webmcp",
)
HTML_HINTS: tuple[str, ...] = (STRONG_HINT, *WEAK_HINTS)

MANIFEST_EVIDENCE_DETAIL = "found .well-known/mcp.json"
HOMEPAGE_EVIDENCE_DETAIL = "heuristic match in homepage html"


class FailureReason(str, Enum):
    """Why a probe did not succeed."""

    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
    HTTP_STATUS = "http_status"
    BODY_NOT_JSON = "body_not_json"
    NOT_JSON_OBJECT = "not_json_object"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ProbeSuccess:
    """A request that returned a usable 2xx response."""

    url: str
    status_code: int

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ProbeFailure:
    """A request that did not yield a usable response."""

    url: str
    reason: FailureReason
    status_code: int | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False

    @property
    def reached_server(self) -> bool:
        """True if an HTTP response came back at all (any status)."""
        return self.status_code is not None


ProbeOutcome = Union[ProbeSuccess, ProbeFailure]


def manifest_url(domain: str) -> str:
    return f"https://{domain}{WELL_KNOWN_MANIFEST_PATH}"


def homepage_url(domain: str) -> str:
    return f"https://{domain}/"


@dataclass(frozen=True)
class ManifestProbeResult:
    """Outcome of the well-known manifest probe."""

    outcome: ProbeOutcome

    @property
    def url(self) -> str:
        return self.outcome.url

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, ProbeSuccess)

    @property
    def evidence(self) -> list[Evidence]:
        if not self.ok:
            return []
        return [
            Evidence(
                kind=EvidenceKind.WELL_KNOWN_MCP_JSON,
                detail=MANIFEST_EVIDENCE_DETAIL,
                url=self.url,
            )
        ]


@dataclass(frozen=True)
class HomepageProbeResult:
    """Outcome of the homepage hint probe.

    ``matched_hints`` holds the display form of each hint found, sorted.
    """

    outcome: ProbeOutcome
    matched_hints: tuple[str, ...] = field(default_factory=tuple)

    @property
    def url(self) -> str:
        return self.outcome.url

    @property
    def reachable(self) -> bool:
        return isinstance(self.outcome, ProbeSuccess)

    @property
    def model_context_hit(self) -> bool:
        return STRONG_HINT in self.matched_hints

    @property
    def other_hit(self) -> bool:
        return any(hint != STRONG_HINT for hint in self.matched_hints)

    @property
    def evidence(self) -> list[Evidence]:
        if not self.matched_hints:
            return []
        return [
            Evidence(
                kind=EvidenceKind.HEURISTIC_HTML,
                detail=HOMEPAGE_EVIDENCE_DETAIL,
                url=self.url,
            )
        ]


def match_hints(html: str) -> tuple[str, ...]:
    """Return the sorted hints present in ``html`` (case-insensitive substring match)."""
    lowered = html.lower()
    return tuple(sorted(hint for hint in HTML_HINTS if hint.lower() in lowered))


@dataclass(frozen=True)
class ProbeSignals:
    """This run's live signals for one domain, as seen by the state machine."""

    well_known_ok: bool = False
    model_context_hit: bool = False
    other_hit: bool = False
    homepage_reachable: bool = False

    @property
    def strong_success(self) -> bool:
        return self.well_known_ok or self.model_context_hit

    @property
    def any_success(self) -> bool:
        return self.strong_success or self.other_hit

    @property
    def both_failed_transport(self) -> bool:
        """Neither probe produced a usable response this run."""
        return not self.well_known_ok and not self.homepage_reachable


@dataclass(frozen=True)
class DomainProbe:
    """Both probe results for one domain in one run."""

    domain: str
    manifest: ManifestProbeResult
    homepage: HomepageProbeResult

    @property
    def signals(self) -> ProbeSignals:
        return ProbeSignals(
            well_known_ok=self.manifest.ok,
            model_context_hit=self.homepage.model_context_hit,
            other_hit=self.homepage.other_hit,
            homepage_reachable=self.homepage.reachable,
        )

    @property
    def evidence(self) -> list[Evidence]:
        """Evidence observed this run: manifest first, then homepage."""
        return [*self.manifest.evidence, *self.homepage.evidence]

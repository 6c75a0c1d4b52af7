"""agentdir probe layer.

Public exports:
    RequestThrottle: run-scoped spacing of outbound requests
    DomainProber: manifest and homepage probes returning tagged outcomes
    ProbeSuccess, ProbeFailure, FailureReason: tagged outcome types
    ManifestProbeResult, HomepageProbeResult, DomainProbe, ProbeSignals: per-domain results
"""

from agentdir.probe.outcomes import (
    HTML_HINTS,
    STRONG_HINT,
    WELL_KNOWN_MANIFEST_PATH,
    DomainProbe,
    FailureReason,
    HomepageProbeResult,
    ManifestProbeResult,
    ProbeFailure,
    ProbeOutcome,
    ProbeSignals,
    ProbeSuccess,
    match_hints,
)
from agentdir.probe.prober import DomainProber, create_http_client
from agentdir.probe.throttle import RequestThrottle

__all__ = [
    "HTML_HINTS",
    "STRONG_HINT",
    "WELL_KNOWN_MANIFEST_PATH",
    "DomainProbe",
    "DomainProber",
    "FailureReason",
    "HomepageProbeResult",
    "ManifestProbeResult",
    "ProbeFailure",
    "ProbeOutcome",
    "ProbeSignals",
    "ProbeSuccess",
    "RequestThrottle",
    "create_http_client",
    "match_hints",
]

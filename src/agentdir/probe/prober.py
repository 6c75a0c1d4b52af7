"""Network probes for agent readiness.

DomainProber issues the two checks the directory relies on:

- Manifest probe: GET https://{domain}/.well-known/mcp.json; succeeds iff the
  response is 2xx and the body (capped at 64 KiB) parses as a JSON object.
- Homepage probe: GET https://{domain}/; on 2xx the body (capped at 256 KiB)
  is scanned for WebMCP hint substrings.

Each request passes through the run's RequestThrottle and is cancelled by
``asyncio.wait_for`` once the timeout elapses. Transport errors, timeouts,
non-2xx statuses and parse errors all come back as ProbeFailure; nothing
raises past this module.
"""

from __future__ import annotations

import asyncio
import json
from types import TracebackType
from typing import Any

import httpx

from agentdir.config import (
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    HOMEPAGE_MAX_BYTES,
    MANIFEST_MAX_BYTES,
    ScanConfig,
)
from agentdir.observability import get_logger
from agentdir.probe.outcomes import (
    DomainProbe,
    FailureReason,
    HomepageProbeResult,
    ManifestProbeResult,
    ProbeFailure,
    ProbeOutcome,
    ProbeSuccess,
    homepage_url,
    manifest_url,
    match_hints,
)
from agentdir.probe.throttle import RequestThrottle

logger = get_logger(__name__)

ACCEPT_JSON = "application/json"
ACCEPT_HTML = "text/html,*/*"


def create_http_client(
    config: ScanConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build the AsyncClient used by probes and discovery.

    Args:
        config: Scan config (timeout, user agent). Defaults to ScanConfig().
        transport: Optional httpx transport for tests (e.g. MockTransport).
    """
    cfg = config or ScanConfig()
    client_kwargs: dict[str, Any] = {
        "timeout": httpx.Timeout(cfg.request_timeout_seconds),
        "follow_redirects": True,
        "headers": {"User-Agent": cfg.user_agent},
    }
    if transport is not None:
        client_kwargs["transport"] = transport
    return httpx.AsyncClient(**client_kwargs)


class DomainProber:
    """Runs manifest and homepage probes against domains.

    The prober does not own the throttle: one throttle is shared by every
    request in a run. When built with ``DomainProber.create`` it owns its
    client and closes it on ``aclose``.

    Example:
        >>> async with DomainProber.create(ScanConfig()) as prober:
        ...     result = await prober.probe("example.com")
        ...     result.signals.strong_success
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        throttle: RequestThrottle,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        manifest_max_bytes: int = MANIFEST_MAX_BYTES,
        homepage_max_bytes: int = HOMEPAGE_MAX_BYTES,
        owns_client: bool = False,
    ) -> None:
        self._client = client
        self._throttle = throttle
        self._timeout = timeout
        self._manifest_max_bytes = manifest_max_bytes
        self._homepage_max_bytes = homepage_max_bytes
        self._owns_client = owns_client

    @classmethod
    def create(
        cls,
        config: ScanConfig | None = None,
        *,
        throttle: RequestThrottle | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> DomainProber:
        """Build a prober with its own client and (unless given) its own throttle."""
        cfg = config or ScanConfig()
        return cls(
            create_http_client(cfg, transport=transport),
            throttle or RequestThrottle(cfg.min_request_interval_seconds),
            timeout=cfg.request_timeout_seconds,
            manifest_max_bytes=cfg.manifest_max_bytes,
            homepage_max_bytes=cfg.homepage_max_bytes,
            owns_client=True,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    @property
    def throttle(self) -> RequestThrottle:
        return self._throttle

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> DomainProber:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def _read_capped(
        self, url: str, accept: str, max_bytes: int
    ) -> tuple[int, bytes]:
        """GET url and return (status, body truncated to max_bytes); body empty on non-2xx."""
        async with self._client.stream("GET", url, headers={"Accept": accept}) as response:
            if not response.is_success:
                return response.status_code, b""
            body = bytearray()
            async for chunk in response.aiter_bytes():
                remaining = max_bytes - len(body)
                if len(chunk) >= remaining:
                    body.extend(chunk[:remaining])
                    break
                body.extend(chunk)
            return response.status_code, bytes(body)

    async def _fetch(
        self, url: str, accept: str, max_bytes: int, timeout: float | None
    ) -> tuple[int, bytes] | ProbeFailure:
        effective_timeout = timeout if timeout is not None else self._timeout
        async with self._throttle:
            try:
                return await asyncio.wait_for(
                    self._read_capped(url, accept, max_bytes), timeout=effective_timeout
                )
            except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
                return ProbeFailure(url, FailureReason.TIMEOUT, detail=type(exc).__name__)
            except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
                return ProbeFailure(
                    url, FailureReason.TRANSPORT_ERROR, detail=str(exc) or type(exc).__name__
                )

    async def probe_manifest(
        self, domain: str, *, timeout: float | None = None
    ) -> ManifestProbeResult:
        """Check https://{domain}/.well-known/mcp.json for a JSON object."""
        url = manifest_url(domain)
        fetched = await self._fetch(url, ACCEPT_JSON, self._manifest_max_bytes, timeout)
        outcome: ProbeOutcome
        if isinstance(fetched, ProbeFailure):
            outcome = fetched
        else:
            status_code, body = fetched
            outcome = _classify_manifest(url, status_code, body)
        _log_outcome("manifest", domain, outcome)
        return ManifestProbeResult(outcome=outcome)

    async def probe_homepage(
        self, domain: str, *, timeout: float | None = None
    ) -> HomepageProbeResult:
        """Scan https://{domain}/ for WebMCP hint substrings."""
        url = homepage_url(domain)
        fetched = await self._fetch(url, ACCEPT_HTML, self._homepage_max_bytes, timeout)
        if isinstance(fetched, ProbeFailure):
            _log_outcome("homepage", domain, fetched)
            return HomepageProbeResult(outcome=fetched)
        status_code, body = fetched
        if not 200 <= status_code < 300:
            failure = ProbeFailure(url, FailureReason.HTTP_STATUS, status_code=status_code)
            _log_outcome("homepage", domain, failure)
            return HomepageProbeResult(outcome=failure)
        hints = match_hints(body.decode("utf-8", errors="replace"))
        success = ProbeSuccess(url, status_code)
        _log_outcome("homepage", domain, success, matched_hints=list(hints))
        return HomepageProbeResult(outcome=success, matched_hints=hints)

    async def probe(
        self,
        domain: str,
        *,
        check_well_known: bool = True,
        check_homepage: bool = True,
        timeout: float | None = None,
    ) -> DomainProbe:
        """Run both probes (manifest first) for one domain.

        A disabled probe returns ProbeFailure(reason=SKIPPED) without touching
        the network or the throttle.
        """
        if check_well_known:
            manifest = await self.probe_manifest(domain, timeout=timeout)
        else:
            manifest = ManifestProbeResult(
                outcome=ProbeFailure(manifest_url(domain), FailureReason.SKIPPED)
            )
        if check_homepage:
            homepage = await self.probe_homepage(domain, timeout=timeout)
        else:
            homepage = HomepageProbeResult(
                outcome=ProbeFailure(homepage_url(domain), FailureReason.SKIPPED)
            )
        return DomainProbe(domain=domain, manifest=manifest, homepage=homepage)


def _classify_manifest(url: str, status_code: int, body: bytes) -> ProbeOutcome:
    if not 200 <= status_code < 300:
        return ProbeFailure(url, FailureReason.HTTP_STATUS, status_code=status_code)
    try:
        parsed = json.loads(body.decode("utf-8", errors="replace"))
    except ValueError as exc:
        return ProbeFailure(
            url, FailureReason.BODY_NOT_JSON, status_code=status_code, detail=str(exc)
        )
    if not isinstance(parsed, dict):
        return ProbeFailure(
            url,
            FailureReason.NOT_JSON_OBJECT,
            status_code=status_code,
            detail=type(parsed).__name__,
        )
    return ProbeSuccess(url, status_code)


def _log_outcome(probe: str, domain: str, outcome: ProbeOutcome, **extra: Any) -> None:
    if isinstance(outcome, ProbeSuccess):
        logger.debug(
            "agentdir.probe.succeeded",
            probe=probe,
            domain=domain,
            status_code=outcome.status_code,
            **extra,
        )
    else:
        logger.debug(
            "agentdir.probe.failed",
            probe=probe,
            domain=domain,
            reason=outcome.reason.value,
            status_code=outcome.status_code,
            detail=outcome.detail,
        )

"""Shared pytest fixtures for agentdir tests.

This module provides a fixed clock, a fake throttle clock, and helpers that
serve canned websites through ``httpx.MockTransport`` so probes never touch
the network.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from agentdir.probe import DomainProber, RequestThrottle

FIXED_NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

MANIFEST_PATH = "/.well-known/mcp.json"
STRONG_HINT_HTML = "<html><script>navigator.modelContext.provideTools([])</script></html>"
WEAK_HINT_HTML = "<html><script src='/vendor/webmcp.js'></script></html>"
PLAIN_HTML = "<html><body>Hello</body></html>"

# (status_code, body) per path, per host.
Site = dict[str, tuple[int, str | bytes]]


@dataclass
class FakeClock:
    """Monotonic clock whose sleeps advance time and are recorded."""

    now: float = 1000.0
    sleeps: list[float] = field(default_factory=list)

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class SiteTransport:
    """MockTransport wrapper that serves ``sites`` and records requested URLs.

    Hosts missing from ``sites`` fail with ConnectError; paths missing from a
    known host return 404.
    """

    sites: dict[str, Site]
    requests: list[str] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(str(request.url))
        site = self.sites.get(request.url.host)
        if site is None:
            raise httpx.ConnectError("connection refused", request=request)
        status_code, body = site.get(request.url.path, (404, "not found"))
        content = body.encode("utf-8") if isinstance(body, str) else body
        return httpx.Response(status_code, content=content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def manifest_site(extra: Site | None = None) -> Site:
    """A site that serves a valid JSON manifest and a plain homepage."""
    return {MANIFEST_PATH: (200, '{"name": "demo"}'), "/": (200, PLAIN_HTML), **(extra or {})}


def make_prober(transport: httpx.AsyncBaseTransport, throttle: RequestThrottle | None = None) -> DomainProber:
    return DomainProber(
        httpx.AsyncClient(transport=transport),
        throttle or RequestThrottle(0.0),
        timeout=5.0,
        owns_client=True,
    )


class SteppingClock:
    """Wall clock that returns FIXED_NOW plus ``step`` for each call."""

    def __init__(self, start: datetime = FIXED_NOW, step: timedelta = timedelta(0)) -> None:
        self._current = start
        self._step = step

    def __call__(self) -> datetime:
        value = self._current
        self._current = value + self._step
        return value


@pytest.fixture
def fixed_now() -> Callable[[], datetime]:
    """Clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def fake_clock() -> FakeClock:
    """Fresh fake monotonic clock per test."""
    return FakeClock()


@pytest.fixture(autouse=True)
def _clear_storage_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep AGENTDIR_* environment from leaking into tests."""
    for name in (
        "AGENTDIR_STORAGE_BACKEND",
        "AGENTDIR_STORAGE_PATH",
        "AGENTDIR_SUBMISSIONS_PATH",
        "AGENTDIR_SEEDS_PATH",
        "AGENTDIR_MAX_DOMAINS_PER_RUN",
        "AGENTDIR_REQUEST_TIMEOUT",
        "AGENTDIR_MIN_REQUEST_INTERVAL",
        "AGENTDIR_CHECK_WELL_KNOWN",
        "AGENTDIR_CHECK_HOMEPAGE",
        "AGENTDIR_USER_AGENT",
        "AGENTDIR_DEBUG",
        "GITHUB_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
    yield

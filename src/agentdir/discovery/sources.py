"""Candidate discovery sources.

A source yields candidate domains mapped to the evidence that surfaced them.
Discovery is best-effort: a source that cannot reach its backend or read its
file logs a warning and yields nothing, so a scan run always proceeds with
whatever the remaining sources found.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from agentdir.config import DEFAULT_REQUEST_TIMEOUT_SECONDS
from agentdir.discovery.normalize import extract_domains, try_normalize_domain
from agentdir.models import Evidence, EvidenceKind
from agentdir.monitor.evidence import merge_evidence
from agentdir.observability import get_logger, sanitize_for_logging
from agentdir.probe.throttle import RequestThrottle

logger = get_logger(__name__)

Candidates = dict[str, list[Evidence]]

GITHUB_API_URL = "https://api.github.com"
GITHUB_ACCEPT = "application/vnd.github+json"

DEFAULT_GITHUB_QUERIES: tuple[str, ...] = (
    '"navigator.modelContext"',
    '"webmcp"',
    '"@mcp-b/react-webmcp"',
    '"mcp-ui-webmcp"',
)
# Repositories whose README is fetched per run.
DEFAULT_MAX_REPOS = 25
DEFAULT_SEARCH_PAGE_SIZE = 20

_SEED_LIST = TypeAdapter(list[str])


@runtime_checkable
class CandidateSource(Protocol):
    """Anything that can produce candidate domains with their discovery evidence."""

    async def candidates(self) -> Candidates:
        """Return ``{normalized_domain: [evidence, ...]}``."""
        ...


class StaticSource:
    """Fixed candidates, e.g. domains named on the command line."""

    def __init__(self, candidates: Mapping[str, Sequence[Evidence]] | Iterable[str]) -> None:
        if isinstance(candidates, Mapping):
            self._candidates = {d: list(ev) for d, ev in candidates.items()}
        else:
            self._candidates = {d: [] for d in candidates}

    async def candidates(self) -> Candidates:
        result: Candidates = {}
        for raw, evidence in self._candidates.items():
            domain = try_normalize_domain(raw)
            if domain is not None:
                result[domain] = merge_evidence(result.get(domain, []), evidence)
        return result


class SeedFileSource:
    """Domains listed in a JSON array file (``data/webmcp_seeds.json``).

    Seeds carry no evidence of their own. A missing file yields nothing; an
    unreadable or malformed file is logged and yields nothing.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _read_sync(self) -> list[str]:
        if not self._path.exists():
            return []
        try:
            return _SEED_LIST.validate_json(self._path.read_bytes())
        except (OSError, ValidationError) as exc:
            logger.warning(
                "agentdir.discovery.seeds_unreadable", path=str(self._path), error=str(exc)
            )
            return []

    async def candidates(self) -> Candidates:
        seeds = await asyncio.to_thread(self._read_sync)
        result: Candidates = {}
        for seed in seeds:
            domain = try_normalize_domain(seed)
            if domain is None:
                logger.debug("agentdir.discovery.seed_rejected", seed=seed)
                continue
            result.setdefault(domain, [])
        return result


class _GitHubRepository(BaseModel):
    model_config = ConfigDict(extra="ignore")

    full_name: str | None = None
    html_url: str | None = None


class _GitHubCodeSearchItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    repository: _GitHubRepository | None = None


class _GitHubCodeSearchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: list[_GitHubCodeSearchItem] = Field(default_factory=list)


class _GitHubReadme(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: str | None = None
    encoding: str | None = None


class GitHubSearchSource:
    """Finds candidate domains in READMEs of repositories matching code searches.

    Runs each query against the GitHub code search API, collects up to
    ``max_repos`` distinct repositories, fetches each README and extracts
    domains from it. Every domain found in a repository's README gets a
    ``github_hit`` evidence entry naming that repository.

    Requests share the run's RequestThrottle. Without a token the API's
    anonymous rate limit applies and searches usually come back empty.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        throttle: RequestThrottle,
        *,
        token: str | None = None,
        queries: Sequence[str] = DEFAULT_GITHUB_QUERIES,
        max_repos: int = DEFAULT_MAX_REPOS,
        per_page: int = DEFAULT_SEARCH_PAGE_SIZE,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        api_url: str = GITHUB_API_URL,
    ) -> None:
        self._client = client
        self._throttle = throttle
        self._token = token
        self._queries = tuple(queries)
        self._max_repos = max_repos
        self._per_page = per_page
        self._timeout = timeout
        self._api_url = api_url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": GITHUB_ACCEPT}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _get_json(self, url: str, params: dict[str, str | int] | None = None) -> bytes | None:
        headers = self._headers()
        async with self._throttle:
            try:
                response = await asyncio.wait_for(
                    self._client.get(url, params=params, headers=headers),
                    timeout=self._timeout,
                )
            except (asyncio.TimeoutError, httpx.HTTPError) as exc:
                logger.warning(
                    "agentdir.discovery.github_request_failed",
                    url=url,
                    headers=sanitize_for_logging(headers),
                    error=str(exc) or type(exc).__name__,
                )
                return None
        if not response.is_success:
            logger.warning(
                "agentdir.discovery.github_request_failed",
                url=url,
                headers=sanitize_for_logging(headers),
                status_code=response.status_code,
            )
            return None
        return response.content

    async def search_repositories(self) -> dict[str, str | None]:
        """Return ``{full_name: html_url}`` for matching repositories, in discovery order."""
        repos: dict[str, str | None] = {}
        for query in self._queries:
            raw = await self._get_json(
                f"{self._api_url}/search/code",
                params={"q": query, "per_page": self._per_page},
            )
            if raw is None:
                continue
            try:
                payload = _GitHubCodeSearchResponse.model_validate_json(raw)
            except ValidationError:
                logger.warning("agentdir.discovery.github_bad_payload", query=query)
                continue
            for item in payload.items:
                repo = item.repository
                if repo is None or not repo.full_name:
                    continue
                owner, _, name = repo.full_name.partition("/")
                if owner and name:
                    repos[repo.full_name] = repo.html_url
        return dict(list(repos.items())[: self._max_repos])

    async def fetch_readme(self, full_name: str) -> str | None:
        """Return the decoded README text of ``owner/repo``, or None."""
        raw = await self._get_json(f"{self._api_url}/repos/{full_name}/readme")
        if raw is None:
            return None
        try:
            readme = _GitHubReadme.model_validate_json(raw)
        except ValidationError:
            return None
        if not readme.content or readme.encoding != "base64":
            return None
        try:
            data = base64.b64decode(readme.content.replace("\n", ""))
        except (binascii.Error, ValueError):
            return None
        return data.decode("utf-8", errors="replace")

    async def candidates(self) -> Candidates:
        result: Candidates = {}
        repos = await self.search_repositories()
        for full_name, html_url in repos.items():
            readme = await self.fetch_readme(full_name)
            if not readme:
                continue
            hit = Evidence(kind=EvidenceKind.GITHUB_HIT, detail=f"repo: {full_name}", url=html_url)
            for domain in extract_domains(readme):
                result[domain] = merge_evidence(result.get(domain, []), [hit])
        logger.info("agentdir.discovery.github_completed", repos=len(repos), domains=len(result))
        return result


async def collect_candidates(sources: Iterable[CandidateSource]) -> Candidates:
    """Run sources in order and merge their candidates.

    Evidence for a domain found by several sources is merged in source order.
    """
    merged: Candidates = {}
    for source in sources:
        found = await source.candidates()
        for domain, evidence in found.items():
            merged[domain] = merge_evidence(merged.get(domain, []), evidence)
    return merged

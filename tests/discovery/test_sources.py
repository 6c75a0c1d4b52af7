"""Tests for candidate discovery sources."""

from __future__ import annotations

import base64
import json
from pathlib import Path

import httpx
import pytest

from agentdir.discovery.sources import (
    CandidateSource,
    GitHubSearchSource,
    SeedFileSource,
    StaticSource,
    collect_candidates,
)
from agentdir.models import EvidenceKind
from agentdir.probe import RequestThrottle
from tests.factories import github_hit


def _readme_payload(text: str) -> dict[str, str]:
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    # GitHub wraps base64 content at 60 characters.
    wrapped = "\n".join(encoded[i : i + 60] for i in range(0, len(encoded), 60))
    return {"content": wrapped, "encoding": "base64"}


class GitHubStub:
    """Minimal GitHub API double for code search and README lookups."""

    def __init__(
        self,
        search_items: list[dict[str, object]],
        readmes: dict[str, str],
        *,
        search_status: int = 200,
    ) -> None:
        self.search_items = search_items
        self.readmes = readmes
        self.search_status = search_status
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/search/code":
            if self.search_status != 200:
                return httpx.Response(self.search_status, json={"message": "rate limited"})
            return httpx.Response(200, json={"total_count": 1, "items": self.search_items})
        if path.startswith("/repos/") and path.endswith("/readme"):
            full_name = path[len("/repos/") : -len("/readme")]
            if full_name in self.readmes:
                return httpx.Response(200, json=_readme_payload(self.readmes[full_name]))
        return httpx.Response(404, json={"message": "Not Found"})


def _source(stub: GitHubStub, **kwargs: object) -> GitHubSearchSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(stub.handler))
    return GitHubSearchSource(client, RequestThrottle(0.0), **kwargs)  # type: ignore[arg-type]


class TestStaticSource:
    """StaticSource normalizes and merges its fixed candidates."""

    @pytest.mark.asyncio
    async def test_plain_domains(self) -> None:
        source = StaticSource(["https://WWW.Example.com/", "example.com", "not-a-domain"])
        assert await source.candidates() == {"example.com": []}

    @pytest.mark.asyncio
    async def test_mapping_keeps_evidence(self) -> None:
        source = StaticSource({"Example.com": [github_hit()]})
        result = await source.candidates()
        assert result == {"example.com": [github_hit()]}

    def test_satisfies_protocol(self) -> None:
        assert isinstance(StaticSource([]), CandidateSource)


class TestSeedFileSource:
    """SeedFileSource reads a JSON list of domains."""

    @pytest.mark.asyncio
    async def test_reads_and_normalizes(self, tmp_path: Path) -> None:
        path = tmp_path / "seeds.json"
        path.write_text(json.dumps(["https://www.a.com", "b.com", "localhost"]), encoding="utf-8")
        result = await SeedFileSource(path).candidates()
        assert result == {"a.com": [], "b.com": []}

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert await SeedFileSource(tmp_path / "absent.json").candidates() == {}

    @pytest.mark.asyncio
    async def test_malformed_file_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "seeds.json"
        path.write_text('{"not": "a list"}', encoding="utf-8")
        assert await SeedFileSource(path).candidates() == {}


class TestGitHubSearchSource:
    """GitHubSearchSource turns README domains into github_hit candidates."""

    @pytest.mark.asyncio
    async def test_readme_domains_get_repo_evidence(self) -> None:
        stub = GitHubStub(
            search_items=[
                {"repository": {"full_name": "acme/webmcp-demo", "html_url": "https://github.com/acme/webmcp-demo"}},
                {"repository": {"full_name": "acme/webmcp-demo", "html_url": "https://github.com/acme/webmcp-demo"}},
                {"repository": None},
            ],
            readmes={"acme/webmcp-demo": "Try it at https://demo.acme.dev and see github.com/acme"},
        )
        result = await _source(stub, queries=['"webmcp"']).candidates()
        assert list(result) == ["demo.acme.dev"]
        (evidence,) = result["demo.acme.dev"]
        assert evidence.kind == EvidenceKind.GITHUB_HIT
        assert evidence.detail == "repo: acme/webmcp-demo"
        assert evidence.url == "https://github.com/acme/webmcp-demo"

    @pytest.mark.asyncio
    async def test_token_sent_as_bearer(self) -> None:
        stub = GitHubStub(search_items=[], readmes={})
        await _source(stub, token="ghp_secret", queries=['"webmcp"']).candidates()
        assert stub.requests[0].headers["Authorization"] == "Bearer ghp_secret"
        assert stub.requests[0].url.params["per_page"] == "20"

    @pytest.mark.asyncio
    async def test_search_failure_yields_nothing(self) -> None:
        stub = GitHubStub(search_items=[], readmes={}, search_status=403)
        assert await _source(stub).candidates() == {}

    @pytest.mark.asyncio
    async def test_repo_cap(self) -> None:
        items = [
            {"repository": {"full_name": f"org/repo{i}", "html_url": f"https://github.com/org/repo{i}"}}
            for i in range(5)
        ]
        stub = GitHubStub(search_items=items, readmes={})
        repos = await _source(stub, queries=['"webmcp"'], max_repos=2).search_repositories()
        assert list(repos) == ["org/repo0", "org/repo1"]

    @pytest.mark.asyncio
    async def test_transport_error_yields_nothing(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        source = GitHubSearchSource(client, RequestThrottle(0.0), queries=['"webmcp"'])
        assert await source.candidates() == {}


class TestCollectCandidates:
    """collect_candidates merges sources in order."""

    @pytest.mark.asyncio
    async def test_merges_evidence_across_sources(self) -> None:
        first = StaticSource({"a.com": [github_hit("x/one")]})
        second = StaticSource({"a.com": [github_hit("x/one"), github_hit("x/two")], "b.com": []})
        result = await collect_candidates([first, second])
        assert result["a.com"] == [github_hit("x/one"), github_hit("x/two")]
        assert result["b.com"] == []

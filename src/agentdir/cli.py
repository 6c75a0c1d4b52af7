"""Command-line interface for the agentdir directory engine.

Results are printed to stdout as JSON; logs go to stderr.

Example:
    >>> # From terminal:
    >>> # agentdir --version
    >>> # agentdir scan example.com --no-github
    >>> # agentdir query docs --status verified --type webmcp --limit 5
    >>> # agentdir snapshot --limit 100
    >>> # agentdir audit https://example.com --max-fetch 3
    >>> # agentdir submit example.com --proof-url https://example.com/.well-known/mcp.json
    >>> # agentdir claim-status 2f1c...-...
    >>> # agentdir normalize "https://WWW.Example.com/path"
"""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any, Optional

import typer

from agentdir import __version__
from agentdir.audit import audit_domain
from agentdir.config import ScanConfig, github_token_from_env, seeds_path_from_env
from agentdir.discovery import (
    CandidateSource,
    GitHubSearchSource,
    SeedFileSource,
    StaticSource,
    normalize_domain,
)
from agentdir.errors import AgentDirError
from agentdir.monitor.scan import DirectoryScanner, ScanReport
from agentdir.observability import configure_logging
from agentdir.probe import DomainProber, RequestThrottle
from agentdir.query import build_public_snapshot, search_directory
from agentdir.store import (
    DirectoryStore,
    SubmissionQueue,
    create_directory_store,
    create_submission_queue,
    load_or_empty,
)
from agentdir.submissions import SubmissionIntake

app = typer.Typer(help="agentdir: agent-readiness directory engine.")

# Global verbose flag
_verbose: bool = False

BACKEND_OPTION = typer.Option(
    None,
    "--backend",
    help="Storage backend: file, sqlite or memory (default: AGENTDIR_STORAGE_BACKEND or file).",
)
STORE_PATH_OPTION = typer.Option(
    None,
    "--store",
    help="Snapshot file or SQLite database path (default: AGENTDIR_STORAGE_PATH).",
)


def _version_callback(value: bool) -> None:
    """Print the version and exit when requested."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


VERSION_OPTION = typer.Option(
    False,
    "--version",
    help="Show agentdir version and exit.",
    callback=_version_callback,
    is_eager=True,
)


@app.callback()
def cli(
    version: bool = VERSION_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """agentdir CLI entrypoint."""
    global _verbose
    _verbose = verbose
    if verbose:
        configure_logging(log_level="DEBUG", force=True)


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _fail(exc: AgentDirError) -> typer.Exit:
    """Print the error as JSON on stderr and return the exit to raise."""
    typer.echo(json.dumps(exc.to_dict(), indent=2), err=True)
    return typer.Exit(1)


def _load_config() -> ScanConfig:
    try:
        return ScanConfig.from_env()
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid scan configuration: {exc}") from exc


def _directory_store(backend: Optional[str], store_path: Optional[Path]) -> DirectoryStore:
    try:
        return create_directory_store(backend, store_path)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _submission_queue(backend: Optional[str], store_path: Optional[Path]) -> SubmissionQueue:
    try:
        return create_submission_queue(backend, store_path)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


async def _run_scan(
    config: ScanConfig,
    store: DirectoryStore,
    domains: list[str],
    *,
    seeds: Optional[Path],
    use_seeds: bool,
    use_github: bool,
) -> ScanReport:
    async with DomainProber.create(config) as prober:
        sources: list[CandidateSource] = []
        if domains:
            sources.append(StaticSource(domains))
        if use_seeds:
            sources.append(SeedFileSource(seeds or seeds_path_from_env()))
        if use_github:
            sources.append(
                GitHubSearchSource(
                    prober.client,
                    prober.throttle,
                    token=github_token_from_env(),
                    timeout=config.request_timeout_seconds,
                )
            )
        scanner = DirectoryScanner(store, prober, config)
        return await scanner.run_sources(sources)


@app.command("scan")
def scan(
    domains: Annotated[
        Optional[list[str]],
        typer.Argument(help="Extra domains or URLs to probe this run."),
    ] = None,
    seeds: Annotated[
        Optional[Path],
        typer.Option("--seeds", help="Seeds JSON file (default: AGENTDIR_SEEDS_PATH)."),
    ] = None,
    use_seeds: Annotated[
        bool, typer.Option("--seeds-source/--no-seeds", help="Read the seeds file.")
    ] = True,
    use_github: Annotated[
        bool, typer.Option("--github/--no-github", help="Search GitHub for candidates.")
    ] = True,
    backend: Optional[str] = BACKEND_OPTION,
    store_path: Optional[Path] = STORE_PATH_OPTION,
) -> None:
    """Discover candidates, probe them and update the directory snapshot."""
    config = _load_config()
    store = _directory_store(backend, store_path)
    report = asyncio.run(
        _run_scan(
            config,
            store,
            list(domains or []),
            seeds=seeds,
            use_seeds=use_seeds,
            use_github=use_github,
        )
    )
    _echo_json(report.to_dict())


@app.command("query")
def query(
    text: Annotated[Optional[str], typer.Argument(help="Substring to match.")] = None,
    status: Annotated[
        Optional[str], typer.Option("--status", help="verified, likely, unverified or dead.")
    ] = None,
    item_type: Annotated[
        Optional[list[str]],
        typer.Option("--type", help="webmcp or mcp-server; repeat for several."),
    ] = None,
    min_confidence: Annotated[
        Optional[int], typer.Option("--min-confidence", help="Confidence floor.")
    ] = None,
    limit: Annotated[int, typer.Option("--limit", help="Maximum results (1-50).")] = 10,
    backend: Optional[str] = BACKEND_OPTION,
    store_path: Optional[Path] = STORE_PATH_OPTION,
) -> None:
    """Search the directory."""
    filters: dict[str, Any] = {}
    if status is not None:
        filters["status"] = status
    if item_type:
        filters["type"] = item_type
    if min_confidence is not None:
        filters["min_confidence"] = min_confidence
    request: dict[str, Any] = {"query": text, "limit": limit}
    if filters:
        request["filters"] = filters

    store = _directory_store(backend, store_path)
    snapshot = asyncio.run(load_or_empty(store))
    try:
        response = search_directory(snapshot, request)
    except AgentDirError as exc:
        raise _fail(exc) from exc
    _echo_json(response.model_dump(mode="json"))


@app.command("snapshot")
def snapshot(
    limit: Annotated[int, typer.Option("--limit", help="Maximum entries (1-200).")] = 50,
    backend: Optional[str] = BACKEND_OPTION,
    store_path: Optional[Path] = STORE_PATH_OPTION,
) -> None:
    """Print the public snapshot (verified and likely items)."""
    store = _directory_store(backend, store_path)
    current = asyncio.run(load_or_empty(store))
    _echo_json(build_public_snapshot(current, limit).model_dump(mode="json"))


@app.command("audit")
def audit(
    domain: Annotated[str, typer.Argument(help="Domain or URL to audit.")],
    well_known: Annotated[
        bool, typer.Option("--well-known/--no-well-known", help="Check the MCP manifest.")
    ] = True,
    homepage: Annotated[
        bool, typer.Option("--homepage/--no-homepage", help="Scan the homepage for hints.")
    ] = True,
    max_fetch: Annotated[
        float, typer.Option("--max-fetch", help="Per-request timeout in seconds (0.5-10).")
    ] = 4.5,
    backend: Optional[str] = BACKEND_OPTION,
    store_path: Optional[Path] = STORE_PATH_OPTION,
) -> None:
    """Audit one domain for agent readiness."""
    config = _load_config()
    store = _directory_store(backend, store_path)

    async def _audit() -> Any:
        async with DomainProber.create(config, throttle=RequestThrottle(0.0)) as prober:
            return await audit_domain(
                domain,
                prober,
                store=store,
                check_well_known=well_known,
                check_homepage=homepage,
                max_fetch_seconds=max_fetch,
            )

    try:
        report = asyncio.run(_audit())
    except AgentDirError as exc:
        raise _fail(exc) from exc
    _echo_json(report.model_dump(mode="json"))


@app.command("submit")
def submit(
    domain: Annotated[str, typer.Argument(help="Domain or URL to submit.")],
    proof_url: Annotated[
        Optional[str], typer.Option("--proof-url", help="Where ownership can be checked.")
    ] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Free-text notes.")] = None,
    backend: Optional[str] = BACKEND_OPTION,
    store_path: Optional[Path] = STORE_PATH_OPTION,
) -> None:
    """Queue an ownership claim for a domain."""
    intake = SubmissionIntake(_submission_queue(backend, store_path))
    try:
        receipt = asyncio.run(intake.submit(domain, proof_url=proof_url, notes=notes))
    except AgentDirError as exc:
        raise _fail(exc) from exc
    _echo_json(receipt.model_dump(mode="json"))


@app.command("claim-status")
def claim_status(
    claim_id: Annotated[str, typer.Argument(help="Claim ID returned by submit.")],
    backend: Optional[str] = BACKEND_OPTION,
    store_path: Optional[Path] = STORE_PATH_OPTION,
) -> None:
    """Show the public status of a claim."""
    intake = SubmissionIntake(_submission_queue(backend, store_path))
    try:
        view = asyncio.run(intake.claim_status(claim_id))
    except AgentDirError as exc:
        raise _fail(exc) from exc
    _echo_json(view)


@app.command("normalize")
def normalize(
    values: Annotated[list[str], typer.Argument(help="URLs or hostnames.")],
) -> None:
    """Print the directory key for each value; exit 1 if any is invalid."""
    failed = False
    for value in values:
        try:
            typer.echo(normalize_domain(value))
        except AgentDirError as exc:
            typer.echo(f"Error: {exc.message}", err=True)
            failed = True
    if failed:
        raise typer.Exit(1)


def main() -> None:
    """Run the agentdir CLI."""
    app()


if __name__ == "__main__":
    main()

"""Candidate discovery and domain normalization.

Public exports:
    normalize_domain, try_normalize_domain, extract_domains: domain keys
    ensure_public_domain, is_blocked_address: SSRF guard for on-demand probes
    CandidateSource, StaticSource, SeedFileSource, GitHubSearchSource: sources
    collect_candidates: merge candidates from several sources
"""

from agentdir.discovery.normalize import (
    EXCLUDED_HOSTS,
    Resolver,
    ensure_public_domain,
    extract_domains,
    is_blocked_address,
    normalize_domain,
    try_normalize_domain,
)
from agentdir.discovery.sources import (
    DEFAULT_GITHUB_QUERIES,
    CandidateSource,
    Candidates,
    GitHubSearchSource,
    SeedFileSource,
    StaticSource,
    collect_candidates,
)

__all__ = [
    "DEFAULT_GITHUB_QUERIES",
    "EXCLUDED_HOSTS",
    "CandidateSource",
    "Candidates",
    "GitHubSearchSource",
    "Resolver",
    "SeedFileSource",
    "StaticSource",
    "collect_candidates",
    "ensure_public_domain",
    "extract_domains",
    "is_blocked_address",
    "normalize_domain",
    "try_normalize_domain",
]

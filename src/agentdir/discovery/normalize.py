"""Domain normalization and SSRF guarding.

Every domain that enters the directory, a query, an audit or the submission
intake goes through ``normalize_domain`` so that keys compare equal no matter
how the caller spelled them (``https://WWW.Example.com/path`` and
``example.com`` are the same key).
"""

from __future__ import annotations

import asyncio
import ipaddress
import re
import socket
from collections.abc import Awaitable, Callable
from urllib.parse import urlsplit

from agentdir.errors import (
    BlockedDomainError,
    DnsTimeoutError,
    InvalidDomainError,
    UnresolvableDomainError,
)

MAX_DOMAIN_LENGTH = 255
DEFAULT_DNS_TIMEOUT_SECONDS = 1.5

# Hosts that show up in README text but are never directory candidates.
EXCLUDED_HOSTS = frozenset({"github.com", "raw.githubusercontent.com"})

_HOST_CHARS_RE = re.compile(r"^[a-z0-9.-]+$")
_IPV4_LITERAL_RE = re.compile(r"^\d{1,3}(?:\.\d{1,3}){3}$")
_URL_RE = re.compile(r"\bhttps?://[^\s)<>\"']+", re.IGNORECASE)
_BARE_DOMAIN_RE = re.compile(r"\b(?:[a-z0-9-]+\.)+[a-z]{2,}\b", re.IGNORECASE)

_CARRIER_GRADE_NAT = ipaddress.ip_network("100.64.0.0/10")

Resolver = Callable[[str], Awaitable[list[str]]]


def normalize_domain(value: str) -> str:
    """Canonicalize a URL or bare host into a directory key.

    Accepts input with or without a scheme, drops userinfo, port, path and
    query, lower-cases, and strips a leading ``www.``.

    Args:
        value: URL or hostname.

    Returns:
        Normalized hostname, e.g. ``"example.com"``.

    Raises:
        InvalidDomainError: If the host is empty, has no dot, is longer than
            255 characters, contains characters outside ``[a-z0-9.-]``, is a
            bare IPv4 literal, or ends in ``.local``.

    Example:
        >>> normalize_domain("https://WWW.Example.com/docs?x=1")
        'example.com'
    """
    raw = value.strip() if isinstance(value, str) else ""
    if not raw:
        raise InvalidDomainError(str(value), "empty value")

    candidate = raw if "://" in raw else f"https://{raw}"
    try:
        host = urlsplit(candidate).hostname
    except ValueError as exc:
        raise InvalidDomainError(raw, "unparseable URL") from exc
    if not host:
        raise InvalidDomainError(raw, "missing hostname")

    host = host.lower().rstrip(".")
    if host.startswith("www."):
        host = host[len("www.") :]

    if "." not in host:
        raise InvalidDomainError(raw, "hostname must contain a dot")
    if len(host) > MAX_DOMAIN_LENGTH:
        raise InvalidDomainError(raw, f"hostname longer than {MAX_DOMAIN_LENGTH} characters")
    if not _HOST_CHARS_RE.match(host):
        raise InvalidDomainError(raw, "hostname contains characters outside [a-z0-9.-]")
    if _IPV4_LITERAL_RE.match(host):
        raise InvalidDomainError(raw, "IP literals are not accepted")
    if host.endswith(".local"):
        raise InvalidDomainError(raw, ".local hosts are not accepted")
    return host


def try_normalize_domain(value: str) -> str | None:
    """Like ``normalize_domain`` but returns None instead of raising."""
    try:
        return normalize_domain(value)
    except InvalidDomainError:
        return None


def extract_domains(text: str) -> list[str]:
    """Find candidate domains in free text such as a README.

    Picks up both full URLs and bare ``name.tld`` tokens, normalizes them and
    drops GitHub's own hosts.

    Returns:
        Sorted unique normalized domains.
    """
    found: set[str] = set()
    for match in _URL_RE.findall(text):
        host = try_normalize_domain(match)
        if host and host not in EXCLUDED_HOSTS:
            found.add(host)
    for match in _BARE_DOMAIN_RE.finditer(text):
        host = try_normalize_domain(match.group(0))
        if host and host not in EXCLUDED_HOSTS:
            found.add(host)
    return sorted(found)


def is_blocked_address(addr: str) -> bool:
    """True if addr is private, loopback, link-local, reserved or carrier-grade NAT."""
    try:
        ip = ipaddress.ip_address(addr)
    except ValueError:
        return False
    if ip.version == 4 and ip in _CARRIER_GRADE_NAT:
        return True
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_unspecified
    )


async def _resolve_hostname(hostname: str) -> list[str]:
    """Resolve hostname to a deduplicated address list via async getaddrinfo."""
    loop = asyncio.get_running_loop()
    try:
        results = await loop.getaddrinfo(
            hostname,
            None,
            family=socket.AF_UNSPEC,
            type=socket.SOCK_STREAM,
        )
    except socket.gaierror:
        return []

    seen: set[str] = set()
    ips: list[str] = []
    for _family, _type, _proto, _canonname, sockaddr in results:
        ip_str = str(sockaddr[0])
        if ip_str not in seen:
            seen.add(ip_str)
            ips.append(ip_str)
    return ips


async def ensure_public_domain(
    domain: str,
    *,
    timeout: float = DEFAULT_DNS_TIMEOUT_SECONDS,
    resolver: Resolver | None = None,
) -> list[str]:
    """Reject domains that resolve to non-public addresses.

    Args:
        domain: A normalized hostname.
        timeout: Seconds allowed for resolution.
        resolver: Optional async resolver (for tests); defaults to getaddrinfo.

    Returns:
        The resolved addresses.

    Raises:
        DnsTimeoutError: Resolution took longer than ``timeout``.
        UnresolvableDomainError: No addresses were returned.
        BlockedDomainError: Any resolved address is non-public.
    """
    resolve = resolver or _resolve_hostname
    try:
        addresses = await asyncio.wait_for(resolve(domain), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise DnsTimeoutError(domain, timeout) from exc
    if not addresses:
        raise UnresolvableDomainError(domain)
    for addr in addresses:
        if is_blocked_address(addr):
            raise BlockedDomainError(domain, addr, details={"resolved_ips": addresses})
    return addresses

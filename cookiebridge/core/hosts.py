"""Host matching and origin normalization helpers."""

from __future__ import annotations

from typing import Iterable, Optional
from urllib.parse import urlsplit


def normalize_domain(host_key: str) -> str:
    """
    Normalize domain by stripping leading dots.

    Args:
        host_key: Raw host from a store (e.g., ".google.com").

    Returns:
        Normalized domain (e.g., "google.com").
    """
    return host_key.lstrip(".")


def host_matches_cookie_domain(host: str, cookie_domain: str) -> bool:
    """
    Check whether a cookie set for ``cookie_domain`` applies to ``host``.

    A leading dot on the cookie domain is ignored; the host must equal the
    domain or be a subdomain of it. Case-insensitive.
    """
    normalized_host = host.lower()
    domain = cookie_domain[1:] if cookie_domain.startswith(".") else cookie_domain
    domain = domain.lower()
    if not domain:
        return False
    return normalized_host == domain or normalized_host.endswith("." + domain)


def host_matches_any(hosts: Iterable[str], cookie_host: str) -> bool:
    """Return True if ``cookie_host`` matches at least one requested host."""
    return any(host_matches_cookie_domain(host, cookie_host) for host in hosts)


def parse_origin(url: str) -> Optional[str]:
    """
    Reduce a URL to its origin with a trailing slash.

    Returns:
        "scheme://host[:port]/", or None when the URL has no scheme or host.
    """
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
        port = parts.port
    except ValueError:
        return None
    if not parts.scheme or not hostname:
        return None
    netloc = hostname if port is None else f"{hostname}:{port}"
    return f"{parts.scheme.lower()}://{netloc}/"


def hostname_from_url(url: str) -> Optional[str]:
    """Return the lowercase hostname of ``url``, or None if it does not parse."""
    try:
        hostname = urlsplit(url.strip()).hostname
    except ValueError:
        return None
    return hostname or None


def normalize_origins(url: str, extra_origins: Optional[Iterable[str]] = None) -> list[str]:
    """
    Build the ordered, de-duplicated origin list for a request.

    The target URL comes first; extra origins that fail to parse are dropped.
    """
    origins: list[str] = []
    primary = parse_origin(url) if url else None
    if primary:
        origins.append(primary)

    for raw in extra_origins or ():
        trimmed = raw.strip() if isinstance(raw, str) else ""
        if not trimmed:
            continue
        parsed = parse_origin(trimmed)
        if parsed and parsed not in origins:
            origins.append(parsed)

    return origins


def hosts_from_origins(origins: Iterable[str]) -> list[str]:
    """Extract hostnames from normalized origins, preserving order."""
    hosts: list[str] = []
    for origin in origins:
        hostname = hostname_from_url(origin)
        if hostname and hostname not in hosts:
            hosts.append(hostname)
    return hosts


def normalize_names(names: Optional[Iterable[str]]) -> Optional[frozenset[str]]:
    """
    Turn a cookie-name allowlist into a set.

    Returns:
        The trimmed, non-empty names, or None when no filtering applies.
    """
    if not names:
        return None
    cleaned = {name.strip() for name in names if isinstance(name, str) and name.strip()}
    return frozenset(cleaned) if cleaned else None

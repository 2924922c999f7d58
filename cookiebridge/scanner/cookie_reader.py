"""Base cookie reader interface and shared query helpers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

if TYPE_CHECKING:
    from cookiebridge.core.models import BrowserStore, Cookie, ProviderResult


class BaseCookieReader(ABC):
    """Abstract base class for cookie store readers."""

    def __init__(self, store: BrowserStore) -> None:
        """
        Initialize reader with a browser store.

        Args:
            store: BrowserStore containing database path and metadata.
        """
        self.store = store

    @abstractmethod
    def read_cookies(
        self,
        hosts: Sequence[str],
        names: Optional[frozenset[str]] = None,
        include_expired: bool = False,
    ) -> ProviderResult:
        """
        Read cookies applying to ``hosts``.

        Never raises for store-level problems; they are reported as warnings.

        Args:
            hosts: Requested hostnames.
            names: Optional cookie-name allowlist.
            include_expired: Keep cookies whose expiry is in the past.

        Returns:
            ProviderResult with cookies and warnings.
        """


def host_domain_candidates(host: str) -> list[str]:
    """
    Cookie domains that can apply to ``host``: the host and each parent.

    Single-label parents (public suffixes like "com") are skipped unless the
    host itself has one label (e.g. "localhost").
    """
    labels = host.strip(".").lower().split(".")
    candidates = [".".join(labels[i:]) for i in range(len(labels) - 1)]
    return candidates or [labels[-1]]


def build_host_where_clause(hosts: Sequence[str], column: str) -> tuple[str, list[str]]:
    """
    Build a parameterized host predicate.

    Selects rows stored for each host or any of its parent domains, with or
    without the leading dot, so ".example.com" rows apply to
    "app.example.com". Callers still post-filter with host_matches_any.

    Returns:
        SQL fragment and its parameters. No hosts yields a false predicate.
    """
    params: list[str] = []
    for host in hosts:
        for domain in host_domain_candidates(host):
            for value in (domain, f".{domain}"):
                if value not in params:
                    params.append(value)
    if not params:
        return "1=0", []
    placeholders = ", ".join("?" for _ in params)
    return f"{column} IN ({placeholders})", params


def is_missing_column_error(error: Exception) -> bool:
    """Return True for SQLite "no such column" errors."""
    return "no such column" in str(error).lower()


def dedupe_cookies(cookies: Iterable[Cookie]) -> list[Cookie]:
    """Keep the first cookie for each name|domain|path identity."""
    merged: dict[str, Cookie] = {}
    for cookie in cookies:
        merged.setdefault(cookie.identity_key, cookie)
    return list(merged.values())

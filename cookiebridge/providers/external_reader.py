"""Adapter around browser_cookie3, used as the richer Chrome reader on macOS."""

from __future__ import annotations

import http.cookiejar
import logging
import sqlite3
import threading
from typing import Any, Callable, Iterable, Optional

import browser_cookie3

from cookiebridge.core.expiry import is_expired, normalize_expiration
from cookiebridge.core.hosts import host_matches_any, normalize_domain
from cookiebridge.core.models import BrowserStore, Cookie, CookieSource, ProviderResult
from cookiebridge.providers.base import ProviderOptions
from cookiebridge.scanner.cookie_reader import dedupe_cookies

logger = logging.getLogger(__name__)

DEFAULT_EXTERNAL_TIMEOUT_SECONDS = 5.0

# loader(cookie_file=..., domain_name=...) -> CookieJar
JarLoader = Callable[..., Iterable[http.cookiejar.Cookie]]

_LOAD_ERRORS = (browser_cookie3.BrowserCookieError, OSError, sqlite3.Error, ValueError, RuntimeError)


class ExternalChromeReader:
    """Reads Chrome cookies through browser_cookie3, one request per host."""

    def __init__(self, loader: Optional[JarLoader] = None) -> None:
        self._load = loader or browser_cookie3.chrome

    def read(self, store: BrowserStore, options: ProviderOptions) -> ProviderResult:
        warnings: list[str] = []
        timeout = options.timeout_seconds or DEFAULT_EXTERNAL_TIMEOUT_SECONDS
        cookies: list[Cookie] = []

        for host in options.hosts:
            jar = self._load_with_timeout(store, host, timeout, warnings)
            if jar is None:
                continue
            for raw in jar:
                cookie = self._convert(raw, store)
                if cookie is None or not host_matches_any(options.hosts, cookie.domain):
                    continue
                if options.names and cookie.name not in options.names:
                    continue
                if not options.include_expired and is_expired(cookie.expires):
                    continue
                cookies.append(cookie)

        return ProviderResult(cookies=dedupe_cookies(cookies), warnings=warnings)

    def _load_with_timeout(
        self,
        store: BrowserStore,
        host: str,
        timeout: float,
        warnings: list[str],
    ) -> Optional[list[http.cookiejar.Cookie]]:
        outcome: dict[str, Any] = {}

        def run() -> None:
            try:
                outcome["jar"] = list(self._load(cookie_file=str(store.db_path), domain_name=host))
            except Exception as e:  # handed back to the calling thread below
                outcome["error"] = e

        # Daemon worker: a load stuck on a keychain prompt is abandoned and
        # never keeps the interpreter alive at exit
        worker = threading.Thread(target=run, name=f"browser-cookie3-{host}", daemon=True)
        worker.start()
        worker.join(timeout)

        if worker.is_alive():
            logger.warning("browser_cookie3 timed out for %s", host)
            warnings.append(f"Chrome cookie read timed out for {host} after {timeout:g}s.")
            return None

        error = outcome.get("error")
        if error is None:
            return outcome["jar"]
        if not isinstance(error, _LOAD_ERRORS):
            raise error
        logger.debug("browser_cookie3 failed for %s: %s", host, error)
        warnings.append(f"Chrome cookie read failed for {host}: {error}")
        return None

    @staticmethod
    def _convert(raw: http.cookiejar.Cookie, store: BrowserStore) -> Optional[Cookie]:
        if not raw.name or raw.value is None or not raw.domain:
            return None
        http_only = raw.has_nonstandard_attr("HTTPOnly") or raw.has_nonstandard_attr("HttpOnly")
        return Cookie(
            name=raw.name,
            value=raw.value,
            domain=normalize_domain(raw.domain),
            path=raw.path or "/",
            expires=normalize_expiration(raw.expires),
            secure=bool(raw.secure),
            http_only=bool(http_only),
            source=CookieSource(browser=store.browser_name, profile=store.profile_id),
        )

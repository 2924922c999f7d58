"""Inline provider: caller-supplied cookie payloads (JSON, base64 JSON, or a file)."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from cookiebridge.core.expiry import normalize_expiration
from cookiebridge.core.hosts import host_matches_any, hostname_from_url, normalize_domain
from cookiebridge.core.models import Cookie, CookieRequest, CookieSource, ProviderResult, SameSite

logger = logging.getLogger(__name__)

INLINE_BROWSER = "inline"

SOURCE_JSON = "inline-json"
SOURCE_BASE64 = "inline-base64"
SOURCE_FILE = "inline-file"

_FILE_SUFFIXES = (".json", ".base64")


@dataclass(frozen=True)
class InlineSource:
    """One inline payload and where it came from."""

    kind: str  # "inline-json", "inline-base64", "inline-file"
    payload: str


def resolve_inline_sources(request: CookieRequest) -> list[InlineSource]:
    """Collect the request's inline payloads in JSON, base64, file order."""
    sources: list[InlineSource] = []
    if request.inline_cookies_json:
        sources.append(InlineSource(SOURCE_JSON, request.inline_cookies_json))
    if request.inline_cookies_base64:
        sources.append(InlineSource(SOURCE_BASE64, request.inline_cookies_base64))
    if request.inline_cookies_file:
        sources.append(InlineSource(SOURCE_FILE, request.inline_cookies_file))
    return sources


def try_decode_base64_json(payload: str) -> Optional[str]:
    """Return the decoded text if ``payload`` is base64 of valid JSON, else None."""
    compact = "".join(payload.split())
    if not compact:
        return None
    try:
        decoded = base64.b64decode(compact, validate=True).decode("utf-8")
        json.loads(decoded)
    except (binascii.Error, ValueError):
        # UnicodeDecodeError and JSONDecodeError are both ValueErrors
        return None
    return decoded


def parse_cookie_payload(text: str) -> Optional[list[Any]]:
    """
    Extract the cookie list from a JSON payload.

    Accepts a bare array or an object with a ``cookies`` array (including
    the extension export envelope).

    Returns:
        The raw cookie entries, or None if the payload has neither shape.
    """
    trimmed = text.strip()
    if not trimmed:
        return None
    try:
        parsed = json.loads(trimmed)
    except ValueError:
        return None
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get("cookies"), list):
        return parsed["cookies"]
    return None


def cookie_from_payload(entry: Any) -> Optional[Cookie]:
    """Build a Cookie from one payload entry; unknown fields are ignored."""
    if not isinstance(entry, dict):
        return None

    name = entry.get("name")
    if not isinstance(name, str) or not name:
        return None

    domain = entry.get("domain")
    if not isinstance(domain, str) or not domain.strip():
        url = entry.get("url")
        domain = hostname_from_url(url) if isinstance(url, str) else None
    if not domain:
        return None

    value = entry.get("value")
    path = entry.get("path")
    source = CookieSource.from_dict(entry.get("source")) or CookieSource(browser=INLINE_BROWSER)
    return Cookie(
        name=name,
        value=value if isinstance(value, str) else "",
        domain=normalize_domain(domain.strip()),
        path=path if isinstance(path, str) and path else "/",
        expires=normalize_expiration(entry.get("expires")),
        secure=entry.get("secure") is True,
        http_only=entry.get("httpOnly") is True,
        same_site=SameSite.parse(entry.get("sameSite")),
        source=source,
    )


class InlineProvider:
    """Parses an inline payload; never touches browser stores or secret stores."""

    name = INLINE_BROWSER

    def get_cookies(
        self,
        source: InlineSource,
        hosts: list[str],
        names: Optional[frozenset[str]] = None,
    ) -> ProviderResult:
        raw = self._read_payload(source)
        text = try_decode_base64_json(raw) or raw
        entries = parse_cookie_payload(text)
        if entries is None:
            logger.debug("Inline payload from %s has no cookie list", source.kind)
            return ProviderResult.failure(
                f"Inline cookie payload ({source.kind}) is not a JSON cookie list."
            )

        cookies: list[Cookie] = []
        for entry in entries:
            cookie = cookie_from_payload(entry)
            if cookie is None:
                continue
            if names and cookie.name not in names:
                continue
            if hosts and not host_matches_any(hosts, cookie.domain):
                continue
            cookies.append(cookie)

        logger.debug("Inline %s: %d of %d entries matched", source.kind, len(cookies), len(entries))
        return ProviderResult(cookies=cookies)

    @staticmethod
    def _read_payload(source: InlineSource) -> str:
        """File sources (and payloads that look like file names) are read when they exist."""
        payload = source.payload
        if source.kind != SOURCE_FILE and not payload.endswith(_FILE_SUFFIXES):
            return payload
        try:
            path = Path(payload).expanduser()
            if path.is_file():
                return path.read_text(encoding="utf-8")
        except (OSError, ValueError) as e:
            logger.debug("Cannot read inline payload file: %s", e)
        return payload

"""Core data models for cookiebridge."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class SameSite(str, Enum):
    """SameSite attribute values carried by the interchange model."""

    STRICT = "Strict"
    LAX = "Lax"
    NONE = "None"

    @classmethod
    def parse(cls, value: Any) -> Optional[SameSite]:
        """
        Map a raw store value onto a SameSite member.

        Chromium and Firefox store integers (0 = None, 1 = Lax, 2 = Strict);
        exports and extension payloads use strings, including the Chromium
        extension spelling "no_restriction".

        Returns:
            The matching member, or None for unknown/unspecified values.
        """
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, int):
            return _SAMESITE_BY_INT.get(value)
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            try:
                return _SAMESITE_BY_INT.get(int(text, 10))
            except ValueError:
                pass
            return _SAMESITE_BY_NAME.get(text.lower())
        return None


_SAMESITE_BY_INT = {0: SameSite.NONE, 1: SameSite.LAX, 2: SameSite.STRICT}
_SAMESITE_BY_NAME = {
    "strict": SameSite.STRICT,
    "lax": SameSite.LAX,
    "none": SameSite.NONE,
    "no_restriction": SameSite.NONE,
}


@dataclass(frozen=True)
class CookieSource:
    """Provenance of a cookie: which browser, profile and origin produced it."""

    browser: str  # "chrome", "edge", "firefox", "safari", "inline"
    profile: Optional[str] = None
    origin: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data: dict[str, Any] = {"browser": self.browser}
        if self.profile:
            data["profile"] = self.profile
        if self.origin:
            data["origin"] = self.origin
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Optional[CookieSource]:
        """Create instance from dictionary, or None if the shape is unusable."""
        if not isinstance(data, dict):
            return None
        browser = data.get("browser")
        if not isinstance(browser, str) or not browser:
            return None
        profile = data.get("profile")
        origin = data.get("origin")
        return cls(
            browser=browser,
            profile=profile if isinstance(profile, str) and profile else None,
            origin=origin if isinstance(origin, str) and origin else None,
        )


@dataclass(frozen=True)
class Cookie:
    """A single cookie normalized from any store or payload."""

    name: str
    value: str
    domain: str  # Normalized: "google.com"
    path: str = "/"
    expires: Optional[int] = None  # Unix seconds; None for session cookies
    secure: bool = False
    http_only: bool = False
    same_site: Optional[SameSite] = None
    source: Optional[CookieSource] = None

    @property
    def identity_key(self) -> str:
        """Dedupe key shared by providers and the orchestrator."""
        return f"{self.name}|{self.domain}|{self.path}"

    @property
    def is_session(self) -> bool:
        return self.expires is None

    def to_dict(self) -> dict:
        """Convert to the interchange dictionary shape (camelCase keys)."""
        data: dict[str, Any] = {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
            "secure": self.secure,
            "httpOnly": self.http_only,
        }
        if self.expires is not None:
            data["expires"] = self.expires
        if self.same_site is not None:
            data["sameSite"] = self.same_site.value
        if self.source is not None:
            data["source"] = self.source.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Cookie:
        """Create instance from an interchange dictionary."""
        return cls(
            name=data["name"],
            value=data.get("value", ""),
            domain=data["domain"],
            path=data.get("path") or "/",
            expires=data.get("expires"),
            secure=bool(data.get("secure", False)),
            http_only=bool(data.get("httpOnly", False)),
            same_site=SameSite.parse(data.get("sameSite")),
            source=CookieSource.from_dict(data.get("source")),
        )


@dataclass
class ProviderResult:
    """Cookies produced by one provider plus its non-fatal warnings."""

    cookies: list[Cookie] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, warning: str) -> ProviderResult:
        """Empty result carrying a single warning."""
        return cls(cookies=[], warnings=[warning])


@dataclass
class BrowserStore:
    """Resolved location of one browser profile's cookie store."""

    browser_name: str  # e.g., "chrome", "firefox", "safari"
    profile_id: Optional[str]  # e.g., "Default", "Profile 1"
    db_path: Path  # Full path to cookie database or jar file
    user_data_dir: Optional[Path] = None  # Holds "Local State" (Chromium only)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "browser_name": self.browser_name,
            "profile_id": self.profile_id,
            "db_path": str(self.db_path),
            "user_data_dir": str(self.user_data_dir) if self.user_data_dir else None,
        }


@dataclass
class CookieRequest:
    """
    Input to the orchestrator.

    Only ``url`` is required. Unset browser list and mode fall back to the
    orchestrator's configuration.
    """

    url: str
    origins: list[str] = field(default_factory=list)
    names: list[str] = field(default_factory=list)
    browsers: list[str] = field(default_factory=list)
    mode: Optional[str] = None
    profile: Optional[str] = None  # Alias for chrome_profile
    chrome_profile: Optional[str] = None
    edge_profile: Optional[str] = None
    firefox_profile: Optional[str] = None
    safari_cookies_file: Optional[str] = None
    include_expired: bool = False
    timeout_seconds: Optional[float] = None
    inline_cookies_json: Optional[str] = None
    inline_cookies_base64: Optional[str] = None
    inline_cookies_file: Optional[str] = None

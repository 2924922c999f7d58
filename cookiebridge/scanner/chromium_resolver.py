"""Chromium-based browser profile resolver."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional

from cookiebridge.core.models import BrowserStore
from cookiebridge.scanner.browser_paths import (
    CHROMIUM_COOKIES_FILE,
    CHROMIUM_LOCAL_STATE_FILE,
    DEFAULT_CHROMIUM_PROFILE,
    BrowserConfig,
    expand_path,
    looks_like_path,
)

logger = logging.getLogger(__name__)

# How far up from a Cookies file to look for the user-data dir
_USER_DATA_SEARCH_DEPTH = 6


class ChromiumProfileResolver:
    """Locates the cookie store of one Chromium-based browser profile."""

    def __init__(
        self,
        config: BrowserConfig,
        platform: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None,
    ) -> None:
        self.config = config
        self._platform = platform
        self._environ = environ
        self._home = home

    def resolve(self, profile: Optional[str] = None) -> Optional[BrowserStore]:
        """
        Resolve a profile to its cookie database.

        Args:
            profile: A profile directory name ("Default", "Profile 1"), an
                explicit path to a profile/user-data directory or Cookies
                file, or None for "Default".

        Returns:
            BrowserStore, or None if no cookie database exists.
        """
        if profile and looks_like_path(profile):
            return self._resolve_explicit_path(profile)

        profile_dir = profile.strip() if profile and profile.strip() else DEFAULT_CHROMIUM_PROFILE
        for root in self.config.roots(self._platform, self._environ, self._home):
            cookie_db = self._find_cookie_db(root / profile_dir)
            if cookie_db is not None:
                return BrowserStore(
                    browser_name=self.config.name,
                    profile_id=profile_dir,
                    db_path=cookie_db,
                    user_data_dir=root,
                )

        logger.debug("%s profile %s not found", self.config.display_name, profile_dir)
        return None

    def _resolve_explicit_path(self, profile: str) -> Optional[BrowserStore]:
        expanded = expand_path(profile, self._home)

        if expanded.is_file():
            candidates = [expanded]
        else:
            candidates = [
                expanded / "Network" / CHROMIUM_COOKIES_FILE,
                expanded / CHROMIUM_COOKIES_FILE,
                expanded / DEFAULT_CHROMIUM_PROFILE / "Network" / CHROMIUM_COOKIES_FILE,
            ]

        for candidate in candidates:
            if candidate.is_file():
                return BrowserStore(
                    browser_name=self.config.name,
                    profile_id=profile,
                    db_path=candidate,
                    user_data_dir=find_user_data_dir(candidate),
                )

        logger.debug("No Chromium cookie database under %s", expanded)
        return None

    def _find_cookie_db(self, profile_dir: Path) -> Optional[Path]:
        """Find cookie database in profile directory."""
        # Modern Chromium (v96+): Network/Cookies
        modern_path = profile_dir / "Network" / CHROMIUM_COOKIES_FILE
        if modern_path.is_file():
            return modern_path

        # Legacy Chromium: Cookies in profile root
        legacy_path = profile_dir / CHROMIUM_COOKIES_FILE
        if legacy_path.is_file():
            return legacy_path

        return None


def find_user_data_dir(cookies_db_path: Path) -> Optional[Path]:
    """
    Walk up from a Cookies file to the directory holding "Local State".

    Returns:
        The user-data directory, or None if none is found nearby.
    """
    current = cookies_db_path.parent
    for _ in range(_USER_DATA_SEARCH_DEPTH):
        if (current / CHROMIUM_LOCAL_STATE_FILE).is_file():
            return current
        if current.parent == current:
            break
        current = current.parent
    return None

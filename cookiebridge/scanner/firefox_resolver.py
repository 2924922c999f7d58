"""Firefox browser profile resolver."""

from __future__ import annotations

import configparser
import logging
from pathlib import Path
from typing import Iterator, Mapping, Optional

from cookiebridge.core.models import BrowserStore
from cookiebridge.scanner.browser_paths import (
    FIREFOX_CONFIG,
    FIREFOX_COOKIES_FILE,
    FIREFOX_PROFILES_INI,
    expand_path,
    looks_like_path,
)

logger = logging.getLogger(__name__)

DEFAULT_RELEASE_MARKER = "default-release"


class FirefoxProfileResolver:
    """Locates a Firefox profile's cookies.sqlite."""

    def __init__(
        self,
        platform: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None,
    ) -> None:
        self.config = FIREFOX_CONFIG
        self._platform = platform
        self._environ = environ
        self._home = home

    def resolve(self, profile: Optional[str] = None) -> Optional[BrowserStore]:
        """
        Resolve a profile to its cookies.sqlite.

        Args:
            profile: A profile folder name ("abc123.default-release"), an
                explicit path to a profile folder or cookies.sqlite, or None
                for the default profile.

        Returns:
            BrowserStore, or None if no cookie database exists.
        """
        if profile and looks_like_path(profile):
            expanded = expand_path(profile, self._home)
            candidate = expanded if expanded.name == FIREFOX_COOKIES_FILE else expanded / FIREFOX_COOKIES_FILE
            if candidate.is_file():
                return self._store(candidate, profile)
            logger.debug("Firefox cookies.sqlite not found at %s", candidate)
            return None

        for firefox_root in self.config.roots(self._platform, self._environ, self._home):
            if not firefox_root.is_dir():
                logger.debug("Firefox root not found: %s", firefox_root)
                continue

            if profile:
                for profile_dir in self._profile_dirs(firefox_root):
                    if profile_dir.name == profile.strip():
                        candidate = profile_dir / FIREFOX_COOKIES_FILE
                        if candidate.is_file():
                            return self._store(candidate, profile_dir.name)
                continue

            default_dir = self._default_profile_dir(firefox_root)
            if default_dir is not None:
                return self._store(default_dir / FIREFOX_COOKIES_FILE, default_dir.name)

        return None

    def _store(self, cookie_db: Path, profile_id: str) -> BrowserStore:
        return BrowserStore(
            browser_name=self.config.name,
            profile_id=profile_id,
            db_path=cookie_db,
        )

    def _default_profile_dir(self, firefox_root: Path) -> Optional[Path]:
        """
        Pick the default profile.

        Order: the profiles.ini entry marked Default=1, then a directory whose
        name contains "default-release", then the first directory with cookies.
        """
        for profile_path in self._iter_ini_defaults(firefox_root):
            if (profile_path / FIREFOX_COOKIES_FILE).is_file():
                return profile_path

        candidates = [d for d in self._profile_dirs(firefox_root) if (d / FIREFOX_COOKIES_FILE).is_file()]
        for candidate in candidates:
            if DEFAULT_RELEASE_MARKER in candidate.name:
                return candidate
        return candidates[0] if candidates else None

    def _profile_dirs(self, firefox_root: Path) -> list[Path]:
        """Profile folders live under Profiles/ on macOS and Windows, directly under the root on Linux."""
        profiles_dir = firefox_root / "Profiles"
        base = profiles_dir if profiles_dir.is_dir() else firefox_root
        try:
            return sorted(entry for entry in base.iterdir() if entry.is_dir())
        except OSError as e:
            logger.debug("Cannot list Firefox profiles in %s: %s", base, e)
            return []

    def _iter_ini_defaults(self, firefox_root: Path) -> Iterator[Path]:
        profiles_ini = firefox_root / FIREFOX_PROFILES_INI
        if not profiles_ini.is_file():
            return

        parser = configparser.ConfigParser()
        try:
            parser.read(profiles_ini, encoding="utf-8")
        except configparser.Error as e:
            logger.warning("Failed to parse Firefox profiles.ini: %s", e)
            return

        for section in parser.sections():
            if not section.startswith("Profile"):
                continue
            if parser.get(section, "Default", fallback="0") != "1":
                continue
            profile_path = self._resolve_profile_path(parser, section, firefox_root)
            if profile_path is not None:
                yield profile_path

    def _resolve_profile_path(
        self,
        parser: configparser.ConfigParser,
        section: str,
        firefox_root: Path,
    ) -> Path | None:
        """Resolve profile path from profiles.ini section."""
        if not parser.has_option(section, "Path"):
            logger.debug("Firefox section %s has no Path", section)
            return None

        path_value = parser.get(section, "Path")
        try:
            is_relative = parser.getint(section, "IsRelative", fallback=1)
        except ValueError:
            is_relative = 1

        profile_path = firefox_root / path_value if is_relative else Path(path_value)

        if not profile_path.is_dir():
            logger.debug("Firefox profile path does not exist: %s", profile_path)
            return None

        return profile_path

"""Safari provider."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from cookiebridge.core.models import BrowserStore, ProviderResult
from cookiebridge.providers.base import BrowserProvider, ProviderOptions
from cookiebridge.scanner.binary_cookies import SafariCookieReader
from cookiebridge.scanner.browser_paths import (
    PLATFORM_MAC,
    SAFARI_CONFIG,
    SAFARI_COOKIES_FILE,
    expand_path,
)

logger = logging.getLogger(__name__)


class SafariProvider(BrowserProvider):
    """
    Reads Safari's Cookies.binarycookies jar.

    Off macOS nothing is read unless an explicit jar file is given.
    """

    name = "safari"

    def get_cookies(self, options: ProviderOptions) -> ProviderResult:
        if options.file:
            jar_path: Optional[Path] = expand_path(options.file, self.home)
        elif self.platform != PLATFORM_MAC:
            return ProviderResult()
        else:
            jar_path = self._find_default_jar()
            if jar_path is None:
                return ProviderResult.failure("Safari Cookies.binarycookies not found.")

        logger.debug("Reading Safari cookies from %s", jar_path)
        store = BrowserStore(browser_name=self.name, profile_id=None, db_path=jar_path)
        return SafariCookieReader(store).read_cookies(
            options.hosts, options.names, options.include_expired
        )

    def _find_default_jar(self) -> Optional[Path]:
        # Sandboxed container location first, then the legacy one
        for root in SAFARI_CONFIG.roots(self.platform, self.environ, self.home):
            candidate = root / SAFARI_COOKIES_FILE
            if candidate.is_file():
                return candidate
        return None

"""Firefox provider."""

from __future__ import annotations

import logging

from cookiebridge.core.models import ProviderResult
from cookiebridge.providers.base import BrowserProvider, ProviderOptions
from cookiebridge.scanner.firefox_cookie_reader import FirefoxCookieReader
from cookiebridge.scanner.firefox_resolver import FirefoxProfileResolver

logger = logging.getLogger(__name__)


class FirefoxProvider(BrowserProvider):
    """Reads the plaintext moz_cookies store of a Firefox profile."""

    name = "firefox"

    def get_cookies(self, options: ProviderOptions) -> ProviderResult:
        resolver = FirefoxProfileResolver(self.platform, self.environ, self.home)
        store = resolver.resolve(options.profile or self.config.firefox_profile)
        if store is None:
            return ProviderResult.failure("Firefox cookie database not found.")

        logger.debug("Reading Firefox cookies from %s", store.db_path)
        return FirefoxCookieReader(store).read_cookies(
            options.hosts, options.names, options.include_expired
        )

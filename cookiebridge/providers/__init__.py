"""Browser providers and the name -> provider registry."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Mapping, Optional

from cookiebridge.core.config import ExtractorConfig
from cookiebridge.providers.base import BrowserProvider, ProviderOptions
from cookiebridge.providers.chromium import ChromeProvider, ChromiumProvider, EdgeProvider
from cookiebridge.providers.firefox import FirefoxProvider
from cookiebridge.providers.inline import InlineProvider, InlineSource, resolve_inline_sources
from cookiebridge.providers.safari import SafariProvider

ProviderFactory = Callable[..., BrowserProvider]

PROVIDER_FACTORIES: dict[str, ProviderFactory] = {
    "chrome": ChromeProvider,
    "edge": EdgeProvider,
    "firefox": FirefoxProvider,
    "safari": SafariProvider,
}


def create_provider(
    name: str,
    config: Optional[ExtractorConfig] = None,
    platform: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Optional[BrowserProvider]:
    """
    Factory function to create the provider for a browser name.

    Returns:
        The provider, or None for an unknown browser.
    """
    factory = PROVIDER_FACTORIES.get(name.strip().lower())
    if factory is None:
        return None
    return factory(config=config, platform=platform, environ=environ, home=home)


__all__ = [
    "BrowserProvider",
    "ProviderOptions",
    "ChromiumProvider",
    "ChromeProvider",
    "EdgeProvider",
    "FirefoxProvider",
    "SafariProvider",
    "InlineProvider",
    "InlineSource",
    "resolve_inline_sources",
    "PROVIDER_FACTORIES",
    "create_provider",
]

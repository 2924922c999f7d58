"""Multi-source cookie orchestration: inline short-circuit, provider fan-out, merge."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from cookiebridge.core.config import ExtractorConfig, load_config, parse_mode
from cookiebridge.core.constants import MODE_FIRST
from cookiebridge.core.hosts import hosts_from_origins, normalize_names, normalize_origins
from cookiebridge.core.logging_config import log_extraction
from cookiebridge.core.models import Cookie, CookieRequest, ProviderResult
from cookiebridge.providers import BrowserProvider, ProviderOptions, create_provider
from cookiebridge.providers.inline import InlineProvider, resolve_inline_sources

logger = logging.getLogger(__name__)


class CookieOrchestrator:
    """
    Fans a cookie request out to inline payloads and browser providers.

    Providers run sequentially in the requested order. The orchestrator never
    raises for extraction problems; the worst outcome is an empty cookie list
    with warnings.
    """

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        providers: Optional[Mapping[str, BrowserProvider]] = None,
        inline_provider: Optional[InlineProvider] = None,
        platform: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None,
    ) -> None:
        """
        Args:
            config: Effective configuration (defaults to ExtractorConfig()).
            providers: Provider instances by browser name. Names missing here
                are created from the registry on first use.
            inline_provider: Inline payload parser.
            platform, home: Passed to registry-created providers.
            environ: Environment mapping handed to providers; None means
                empty. Use from_environment to capture the process environment.
        """
        self.config = config or ExtractorConfig()
        self._providers: dict[str, BrowserProvider] = dict(providers or {})
        self._inline = inline_provider or InlineProvider()
        self._platform = platform
        self._environ = environ
        self._home = home

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> CookieOrchestrator:
        """Build an orchestrator from the settings file and environment variables."""
        if environ is None:
            environ = dict(os.environ)
        return cls(config=load_config(environ), environ=environ)

    def provider(self, name: str) -> Optional[BrowserProvider]:
        """Return the provider for ``name``, creating it from the registry if needed."""
        if name not in self._providers:
            created = create_provider(
                name,
                config=self.config,
                platform=self._platform,
                environ=self._environ,
                home=self._home,
            )
            if created is None:
                return None
            self._providers[name] = created
        return self._providers[name]

    def get_cookies(self, request: CookieRequest) -> ProviderResult:
        """
        Resolve cookies for ``request``.

        Inline payloads are tried first; the first one yielding any cookie is
        returned as-is. Otherwise providers run in order: "first" mode stops
        at the first provider with cookies, "merge" mode returns the union
        deduplicated by name|domain|path, first seen wins.
        """
        warnings: list[str] = []
        origins = normalize_origins(request.url, request.origins)
        hosts = hosts_from_origins(origins)
        names = normalize_names(request.names)

        if not hosts:
            warnings.append("No valid origin could be parsed from the request URL or origins.")

        for source in resolve_inline_sources(request):
            inline_result = self._inline.get_cookies(source, hosts, names)
            warnings.extend(inline_result.warnings)
            if inline_result.cookies:
                log_extraction(
                    [source.kind], MODE_FIRST, len(inline_result.cookies), len(warnings), origins, inline=True
                )
                return ProviderResult(cookies=inline_result.cookies, warnings=warnings)

        if not hosts:
            return ProviderResult(cookies=[], warnings=warnings)

        browsers = self._resolve_browsers(request)
        mode = self._resolve_mode(request, warnings)
        merged: dict[str, Cookie] = {}
        consulted: list[str] = []

        for name in browsers:
            provider = self.provider(name)
            if provider is None:
                warnings.append(f"Unknown browser '{name}' ignored.")
                continue

            consulted.append(name)
            result = self._run_provider(provider, name, self._options_for(name, request, origins, hosts, names))
            warnings.extend(result.warnings)

            if mode == MODE_FIRST and result.cookies:
                log_extraction(consulted, mode, len(result.cookies), len(warnings), origins)
                return ProviderResult(cookies=list(result.cookies), warnings=warnings)

            for cookie in result.cookies:
                merged.setdefault(cookie.identity_key, cookie)

        cookies = list(merged.values())
        log_extraction(consulted, mode, len(cookies), len(warnings), origins)
        return ProviderResult(cookies=cookies, warnings=warnings)

    def _run_provider(self, provider: BrowserProvider, name: str, options: ProviderOptions) -> ProviderResult:
        try:
            return provider.get_cookies(options)
        except Exception as e:
            # Store problems arrive as warnings; anything raised here is unexpected
            logger.exception("Provider %s failed unexpectedly", name)
            return ProviderResult.failure(f"{name} provider failed: {type(e).__name__}: {e}")

    def _resolve_browsers(self, request: CookieRequest) -> list[str]:
        requested = request.browsers or list(self.config.browsers)
        browsers: list[str] = []
        for raw in requested:
            name = raw.strip().lower() if isinstance(raw, str) else ""
            if not name:
                continue
            if name not in browsers:
                browsers.append(name)
        return browsers

    def _resolve_mode(self, request: CookieRequest, warnings: list[str]) -> str:
        if request.mode is None:
            return self.config.mode
        mode = parse_mode(request.mode)
        if mode is None:
            warnings.append(f"Unknown mode '{request.mode}'; using {self.config.mode}.")
            return self.config.mode
        return mode

    @staticmethod
    def _options_for(
        name: str,
        request: CookieRequest,
        origins: list[str],
        hosts: list[str],
        names: Optional[frozenset[str]],
    ) -> ProviderOptions:
        profile = {
            "chrome": request.chrome_profile or request.profile,
            "edge": request.edge_profile,
            "firefox": request.firefox_profile,
        }.get(name)
        return ProviderOptions(
            origins=origins,
            hosts=hosts,
            names=names,
            include_expired=request.include_expired,
            profile=profile,
            file=request.safari_cookies_file if name == "safari" else None,
            timeout_seconds=request.timeout_seconds,
        )


def get_cookies(
    url: str,
    config: Optional[ExtractorConfig] = None,
    **kwargs: Any,
) -> ProviderResult:
    """
    Read cookies for ``url`` in one call.

    Keyword arguments are CookieRequest fields (origins, names, browsers, mode,
    profiles, inline payloads, ...). Without ``config`` the settings file and
    environment are read.
    """
    environ = dict(os.environ)
    if config is None:
        orchestrator = CookieOrchestrator.from_environment(environ)
    else:
        orchestrator = CookieOrchestrator(config=config, environ=environ)
    return orchestrator.get_cookies(CookieRequest(url=url, **kwargs))

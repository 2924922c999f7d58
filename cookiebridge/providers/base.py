"""Browser provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from cookiebridge.core.config import ExtractorConfig
from cookiebridge.core.models import ProviderResult
from cookiebridge.scanner.browser_paths import current_platform


@dataclass
class ProviderOptions:
    """What one provider call should return."""

    origins: list[str]
    hosts: list[str]
    names: Optional[frozenset[str]] = None
    include_expired: bool = False
    profile: Optional[str] = None  # Profile name or explicit path
    file: Optional[str] = None  # Explicit cookie file (Safari)
    timeout_seconds: Optional[float] = None


class BrowserProvider(ABC):
    """
    Produces cookies for requested hosts from one browser.

    Store-level problems never raise; they are returned as warnings next to an
    empty or partial cookie list.
    """

    name: str = ""

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        platform: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None,
    ) -> None:
        self.config = config or ExtractorConfig()
        self.platform = platform or current_platform()
        self.environ: Mapping[str, str] = {} if environ is None else environ
        self.home = home

    @abstractmethod
    def get_cookies(self, options: ProviderOptions) -> ProviderResult:
        """Return cookies applying to ``options.hosts``."""

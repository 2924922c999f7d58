"""Browser path constants for cookiebridge."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

PLATFORM_MAC = "darwin"
PLATFORM_LINUX = "linux"
PLATFORM_WINDOWS = "win32"


def current_platform() -> str:
    """Return "darwin", "linux" or "win32" (other platforms map to themselves)."""
    if sys.platform.startswith("linux"):
        return PLATFORM_LINUX
    return sys.platform


@dataclass(frozen=True)
class BrowserConfig:
    """Configuration for a browser's profile locations and secret labels."""

    name: str  # "chrome", "edge", etc.
    display_name: str  # "Chrome", "Microsoft Edge", etc.
    is_chromium: bool
    executable_names: frozenset[str]  # For process detection (lowercase)
    mac_roots: tuple[str, ...] = ()  # Relative to home
    linux_roots: tuple[str, ...] = ()  # Relative to XDG config home (Chromium) or home
    windows_roots: tuple[str, ...] = ()  # Relative to LOCALAPPDATA (Chromium) or APPDATA
    # (account, service) pairs tried in order against the macOS keychain
    keychain_labels: tuple[tuple[str, str], ...] = ()
    # Linux libsecret / KWallet labels
    linux_application: Optional[str] = None

    @property
    def safe_storage_service(self) -> str:
        return f"{self.linux_application} Safe Storage"

    @property
    def kwallet_folder(self) -> str:
        return f"{self.linux_application} Keys"

    def roots(
        self,
        platform: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None,
    ) -> list[Path]:
        """
        Return the OS-conventional root directories for this browser.

        Args:
            platform: Target platform (defaults to the running one)
            environ: Environment mapping captured by the caller (None means empty)
            home: Home directory (defaults to Path.home())
        """
        platform = platform or current_platform()
        env = {} if environ is None else environ
        home_dir = home or Path.home()

        if platform == PLATFORM_MAC:
            return [home_dir / rel for rel in self.mac_roots]

        if platform == PLATFORM_LINUX:
            if self.is_chromium:
                config_home = (env.get("XDG_CONFIG_HOME") or "").strip()
                base = Path(config_home) if config_home else home_dir / ".config"
            else:
                base = home_dir
            return [base / rel for rel in self.linux_roots]

        if platform == PLATFORM_WINDOWS:
            var = "LOCALAPPDATA" if self.is_chromium else "APPDATA"
            base_value = (env.get(var) or "").strip()
            if not base_value:
                return []
            return [Path(base_value) / rel for rel in self.windows_roots]

        return []


# Browser configurations
CHROME_CONFIG = BrowserConfig(
    name="chrome",
    display_name="Chrome",
    is_chromium=True,
    executable_names=frozenset({"chrome.exe", "google chrome", "chrome"}),
    mac_roots=("Library/Application Support/Google/Chrome",),
    linux_roots=("google-chrome",),
    windows_roots=("Google/Chrome/User Data",),
    keychain_labels=(("Chrome", "Chrome Safe Storage"),),
    linux_application="Chrome",
)

EDGE_CONFIG = BrowserConfig(
    name="edge",
    display_name="Microsoft Edge",
    is_chromium=True,
    executable_names=frozenset({"msedge.exe", "microsoft edge", "msedge", "microsoft-edge"}),
    mac_roots=("Library/Application Support/Microsoft Edge",),
    linux_roots=("microsoft-edge",),
    windows_roots=("Microsoft/Edge/User Data",),
    keychain_labels=(
        ("Microsoft Edge", "Microsoft Edge Safe Storage"),
        ("Microsoft Edge", "Microsoft Edge"),
    ),
    linux_application="Microsoft Edge",
)

FIREFOX_CONFIG = BrowserConfig(
    name="firefox",
    display_name="Firefox",
    is_chromium=False,
    executable_names=frozenset({"firefox.exe", "firefox", "firefox-bin"}),
    mac_roots=("Library/Application Support/Firefox",),
    linux_roots=(".mozilla/firefox",),
    windows_roots=("Mozilla/Firefox",),
)

SAFARI_CONFIG = BrowserConfig(
    name="safari",
    display_name="Safari",
    is_chromium=False,
    executable_names=frozenset({"safari"}),
    mac_roots=(
        "Library/Containers/com.apple.Safari/Data/Library/Cookies",
        "Library/Cookies",
    ),
)

# All supported browsers
CHROMIUM_BROWSERS = (CHROME_CONFIG, EDGE_CONFIG)
ALL_BROWSERS = (*CHROMIUM_BROWSERS, FIREFOX_CONFIG, SAFARI_CONFIG)
BROWSERS_BY_NAME = {config.name: config for config in ALL_BROWSERS}

# Cookie store file names
CHROMIUM_COOKIES_FILE = "Cookies"
CHROMIUM_LOCAL_STATE_FILE = "Local State"
FIREFOX_COOKIES_FILE = "cookies.sqlite"
FIREFOX_PROFILES_INI = "profiles.ini"
SAFARI_COOKIES_FILE = "Cookies.binarycookies"

DEFAULT_CHROMIUM_PROFILE = "Default"


def looks_like_path(value: str) -> bool:
    """Profile arguments containing a path separator are treated as paths."""
    return "/" in value or "\\" in value


def expand_path(value: str, home: Optional[Path] = None) -> Path:
    """Expand "~/" and make relative paths absolute against the working directory."""
    if value.startswith("~/") or value.startswith("~\\"):
        return (home or Path.home()) / value[2:]
    path = Path(value)
    return path if path.is_absolute() else Path.cwd() / path

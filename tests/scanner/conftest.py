"""Fixtures for cookie store resolution and reading."""

from pathlib import Path

import pytest

from cookiebridge.core.models import BrowserStore


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


@pytest.fixture
def mock_chromium_user_data(tmp_path: Path) -> Path:
    """Chrome user-data dir under a Linux config home.

    Default keeps its store under Network/, Profile 1 uses the pre-96 location
    and Profile 2 has no store at all.
    """
    user_data = tmp_path / "config" / "google-chrome"
    _touch(user_data / "Local State").write_text("{}")
    _touch(user_data / "Default" / "Network" / "Cookies")
    _touch(user_data / "Profile 1" / "Cookies")
    (user_data / "Profile 2").mkdir()
    return user_data


PROFILES_INI = """\
[General]
StartWithLastProfile=1

[Profile0]
Name=default
IsRelative=1
Path=abc123.default

[Profile1]
Name=dev
IsRelative=1
Path=xyz789.dev
Default=1
"""


@pytest.fixture
def mock_firefox_root(tmp_path: Path) -> Path:
    """Linux Firefox root whose profiles.ini marks the dev profile as default."""
    firefox_root = tmp_path / "home" / ".mozilla" / "firefox"
    for name in ("abc123.default", "xyz789.dev"):
        _touch(firefox_root / name / "cookies.sqlite")
    (firefox_root / "profiles.ini").write_text(PROFILES_INI)
    return firefox_root


@pytest.fixture
def mock_firefox_without_ini(tmp_path: Path) -> Path:
    """Firefox root with no profiles.ini; one default-release profile."""
    firefox_root = tmp_path / "home" / ".mozilla" / "firefox"
    for name in ("aaa.other", "bbb.default-release"):
        _touch(firefox_root / name / "cookies.sqlite")
    (firefox_root / "000.empty").mkdir()
    return firefox_root


@pytest.fixture
def make_store():
    """Build a BrowserStore for a database path."""

    def _make(db_path: Path, browser_name: str = "chrome", profile_id: str = "Default") -> BrowserStore:
        return BrowserStore(browser_name=browser_name, profile_id=profile_id, db_path=db_path)

    return _make

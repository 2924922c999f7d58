"""End-to-end cookie extraction against real on-disk stores."""

import json
import os
from pathlib import Path

import pytest

import cookiebridge
from cookiebridge import CookieOrchestrator, CookieRequest, ExtractorConfig, to_cookie_header
from cookiebridge.scanner.decryptor import HASH_PREFIX_LENGTH, derive_cbc_key


@pytest.fixture
def linux_home(tmp_path: Path, chromium_db_factory, firefox_db_factory, cbc_encrypt, jar_builder, far_future_unix):
    """A Linux home with Chrome, Firefox and a Safari jar export."""
    home = tmp_path / "home"
    config_home = home / ".config"
    user_data = config_home / "google-chrome"
    user_data.mkdir(parents=True)
    (user_data / "Local State").write_text("{}", encoding="utf-8")

    peanuts = derive_cbc_key("peanuts", 1)
    chromium_db_factory(
        [
            {
                "host_key": ".chatgpt.com",
                "name": "__Secure-next-auth.session-token",
                "encrypted_value": cbc_encrypt(os.urandom(HASH_PREFIX_LENGTH) + b"chrome-session", peanuts),
                "secure": 1,
                "httponly": 1,
            },
            {"host_key": "chatgpt.com", "name": "_puid", "value": "chrome-puid"},
            {"host_key": "example.com", "name": "other", "value": "nope"},
        ],
        db_path=user_data / "Default" / "Network" / "Cookies",
    )

    firefox_db_factory(
        [
            {"name": "__Secure-next-auth.session-token", "value": "firefox-session", "host": ".chatgpt.com"},
            {"name": "cf_clearance", "value": "firefox-cf", "host": ".chatgpt.com"},
        ],
        db_path=home / ".mozilla" / "firefox" / "p1.default-release" / "cookies.sqlite",
    )

    jar = tmp_path / "export" / "Cookies.binarycookies"
    jar.parent.mkdir()
    record = jar_builder.record(
        name="safari_only", value="s", url=".chatgpt.com", expiry_mac=jar_builder.mac_time(far_future_unix)
    )
    jar.write_bytes(jar_builder.file([jar_builder.page([record])]))

    return {"home": home, "environ": {"XDG_CONFIG_HOME": str(config_home)}, "jar": jar}


def _orchestrator(linux_home, **config) -> CookieOrchestrator:
    return CookieOrchestrator(
        config=ExtractorConfig(linux_keyring_backend="basic", **config),
        platform="linux",
        environ=linux_home["environ"],
        home=linux_home["home"],
    )


class TestGetCookiesWorkflow:
    """Full orchestrator runs across browsers."""

    def test_merge_across_browsers(self, linux_home) -> None:
        """Merge across browsers."""
        orchestrator = _orchestrator(linux_home, browsers=("chrome", "firefox", "safari"))

        result = orchestrator.get_cookies(CookieRequest(
            url="https://chatgpt.com/",
            safari_cookies_file=str(linux_home["jar"]),
        ))

        values = {c.name: c.value for c in result.cookies}
        assert values == {
            "__Secure-next-auth.session-token": "chrome-session",
            "_puid": "chrome-puid",
            "cf_clearance": "firefox-cf",
            "safari_only": "s",
        }
        assert result.warnings == []

    def test_first_mode_stops_at_chrome(self, linux_home) -> None:
        """First mode stops at Chrome."""
        orchestrator = _orchestrator(linux_home, browsers=("chrome", "firefox"), mode="first")

        result = orchestrator.get_cookies(CookieRequest(url="https://chatgpt.com/"))

        assert {c.source.browser for c in result.cookies} == {"chrome"}

    def test_firefox_first_order(self, linux_home) -> None:
        """Firefox first order."""
        orchestrator = _orchestrator(linux_home)

        result = orchestrator.get_cookies(CookieRequest(url="https://chatgpt.com/", browsers=["firefox", "chrome"]))

        session = next(c for c in result.cookies if c.name == "__Secure-next-auth.session-token")
        assert session.value == "firefox-session"

    def test_name_filter_and_header(self, linux_home) -> None:
        """Name filter and header."""
        orchestrator = _orchestrator(linux_home, browsers=("chrome", "firefox"))

        result = orchestrator.get_cookies(CookieRequest(
            url="https://chatgpt.com/backend-api",
            names=["_puid", "cf_clearance"],
        ))

        assert to_cookie_header(result.cookies) == "_puid=chrome-puid; cf_clearance=firefox-cf"

    def test_safari_off_mac_without_file_is_silent(self, linux_home) -> None:
        """Safari off macOS without file is silent."""
        orchestrator = _orchestrator(linux_home, browsers=("safari",))

        result = orchestrator.get_cookies(CookieRequest(url="https://chatgpt.com/"))

        assert result.cookies == []
        assert result.warnings == []

    def test_missing_browsers_warn(self, tmp_path: Path) -> None:
        """Missing browsers warn."""
        orchestrator = CookieOrchestrator(
            config=ExtractorConfig(browsers=("chrome", "firefox"), linux_keyring_backend="basic"),
            platform="linux",
            environ={"XDG_CONFIG_HOME": str(tmp_path / "cfg")},
            home=tmp_path,
        )

        result = orchestrator.get_cookies(CookieRequest(url="https://chatgpt.com/"))

        assert result.cookies == []
        assert result.warnings == [
            "Chrome cookies database not found.",
            "Firefox cookie database not found.",
        ]

    def test_inline_payload_wins(self, linux_home, tmp_path: Path) -> None:
        """Inline payload wins."""
        export = tmp_path / "cookies.json"
        export.write_text(
            json.dumps({"cookies": [{"name": "__Secure-next-auth.session-token", "value": "inline", "domain": ".chatgpt.com"}]}),
            encoding="utf-8",
        )
        orchestrator = _orchestrator(linux_home, browsers=("chrome", "firefox"))

        result = orchestrator.get_cookies(CookieRequest(url="https://chatgpt.com/", inline_cookies_file=str(export)))

        assert [(c.value, c.source.browser) for c in result.cookies] == [("inline", "inline")]

    def test_top_level_get_cookies(self, linux_home) -> None:
        """Top level get cookies."""
        result = cookiebridge.get_cookies(
            "https://chatgpt.com/",
            config=ExtractorConfig(browsers=("safari",)),
            safari_cookies_file=str(linux_home["jar"]),
        )

        assert [c.name for c in result.cookies] == ["safari_only"]

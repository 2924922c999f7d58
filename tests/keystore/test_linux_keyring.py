"""Tests for the Linux keyring secret provider."""

import pytest

from cookiebridge.keystore.linux import (
    BACKEND_BASIC,
    BACKEND_GNOME,
    BACKEND_KWALLET,
    LinuxKeyringSecretProvider,
    detect_linux_keyring_backend,
    kwallet_dbus_target,
)
from cookiebridge.keystore.process import NOT_FOUND_EXIT_CODE, CommandResult


class TestBackendDetection:
    """Tests for desktop-session backend detection."""

    @pytest.mark.parametrize("environ,expected", [
        ({"XDG_CURRENT_DESKTOP": "KDE"}, BACKEND_KWALLET),
        ({"XDG_CURRENT_DESKTOP": "ubuntu:GNOME"}, BACKEND_GNOME),
        ({"XDG_CURRENT_DESKTOP": "X-Generic:kde"}, BACKEND_KWALLET),
        ({"KDE_FULL_SESSION": "true"}, BACKEND_KWALLET),
        ({}, BACKEND_GNOME),
    ])
    def test_detect(self, environ, expected) -> None:
        """Desktop variables choose KWallet or GNOME."""
        assert detect_linux_keyring_backend(environ) == expected

    @pytest.mark.parametrize("version,service", [
        ("6", "org.kde.kwalletd6"),
        ("5", "org.kde.kwalletd5"),
        ("", "org.kde.kwalletd"),
    ])
    def test_kwallet_target(self, version, service) -> None:
        """KDE_SESSION_VERSION picks the kwalletd D-Bus service."""
        assert kwallet_dbus_target({"KDE_SESSION_VERSION": version})[0] == service


class TestLinuxKeyringSecretProvider:
    """Tests for LinuxKeyringSecretProvider."""

    def test_password_override_skips_keyring(self, fake_runner) -> None:
        """Password override skips keyring."""
        runner = fake_runner()
        provider = LinuxKeyringSecretProvider(password_override="pw", environ={}, runner=runner)

        assert provider.obtain().value == b"pw"
        assert runner.calls == []

    def test_basic_backend_is_empty_without_warning(self, fake_runner) -> None:
        """Basic backend is empty without warning."""
        runner = fake_runner()
        provider = LinuxKeyringSecretProvider(backend=BACKEND_BASIC, environ={}, runner=runner)

        result = provider.obtain()

        assert result.value == b""
        assert result.warnings == []
        assert runner.calls == []

    def test_backend_hint_wins(self, fake_runner) -> None:
        """Backend hint wins."""
        provider = LinuxKeyringSecretProvider(backend=BACKEND_KWALLET, environ={}, runner=fake_runner())

        assert provider.select_backend("GNOME") == BACKEND_GNOME
        assert provider.select_backend("bogus") == BACKEND_KWALLET

    def test_secret_tool(self, fake_runner) -> None:
        """GNOME backend looks the password up with secret-tool."""
        runner = fake_runner([CommandResult(0, "keyring-pw\n", "")])
        provider = LinuxKeyringSecretProvider("Chrome", backend=BACKEND_GNOME, environ={}, timeout=2, runner=runner)

        result = provider.obtain()

        assert result.value == b"keyring-pw"
        assert runner.calls == [
            (["secret-tool", "lookup", "service", "Chrome Safe Storage", "account", "Chrome"], 2)
        ]

    def test_secret_tool_missing(self, fake_runner) -> None:
        """Secret tool missing."""
        runner = fake_runner([CommandResult(NOT_FOUND_EXIT_CODE, "", "")])
        provider = LinuxKeyringSecretProvider(backend=BACKEND_GNOME, environ={}, runner=runner)

        result = provider.obtain()

        assert not result.ok
        assert result.warnings == [
            "Failed to read Linux keyring via secret-tool (command not found); v11 cookies may be unavailable."
        ]

    def test_kwallet_uses_network_wallet(self, fake_runner) -> None:
        """KWallet uses network wallet."""
        runner = fake_runner(by_program={
            "dbus-send": CommandResult(0, '   "work-wallet"\n', ""),
            "kwallet-query": CommandResult(0, "kde-pw\n", ""),
        })
        provider = LinuxKeyringSecretProvider(
            "Microsoft Edge",
            backend=BACKEND_KWALLET,
            environ={"KDE_SESSION_VERSION": "5"},
            runner=runner,
        )

        result = provider.obtain()

        assert result.value == b"kde-pw"
        dbus_args, _ = runner.calls[0]
        assert "--dest=org.kde.kwalletd5" in dbus_args
        query_args, _ = runner.calls[1]
        assert query_args == [
            "kwallet-query",
            "--read-password",
            "Microsoft Edge Safe Storage",
            "--folder",
            "Microsoft Edge Keys",
            "work-wallet",
        ]

    def test_kwallet_default_wallet(self, fake_runner) -> None:
        """KWallet default wallet."""
        runner = fake_runner(by_program={
            "dbus-send": CommandResult(1, "", "no service"),
            "kwallet-query": CommandResult(0, "pw", ""),
        })
        provider = LinuxKeyringSecretProvider(backend=BACKEND_KWALLET, environ={}, runner=runner)

        provider.obtain()

        assert runner.calls[1][0][-1] == "kdewallet"

    def test_kwallet_missing_entry(self, fake_runner) -> None:
        """KWallet missing entry."""
        runner = fake_runner(by_program={
            "dbus-send": CommandResult(0, "kdewallet", ""),
            "kwallet-query": CommandResult(0, "Failed to read entry Chrome Safe Storage\n", ""),
        })
        provider = LinuxKeyringSecretProvider(backend=BACKEND_KWALLET, environ={}, runner=runner)

        result = provider.obtain()

        assert result.value == b""
        assert result.warnings == []

    def test_kwallet_failure(self, fake_runner) -> None:
        """KWallet failure."""
        runner = fake_runner(by_program={
            "dbus-send": CommandResult(0, "kdewallet", ""),
            "kwallet-query": CommandResult(1, "", "wallet closed"),
        })
        provider = LinuxKeyringSecretProvider(backend=BACKEND_KWALLET, environ={}, runner=runner)

        result = provider.obtain()

        assert result.warnings == [
            "Failed to read Linux keyring via kwallet-query (wallet closed); v11 cookies may be unavailable."
        ]

    def test_detects_backend_from_environment(self, fake_runner) -> None:
        """Detects backend from environment."""
        runner = fake_runner(by_program={
            "dbus-send": CommandResult(0, "kdewallet", ""),
            "kwallet-query": CommandResult(0, "pw", ""),
        })
        provider = LinuxKeyringSecretProvider(environ={"XDG_CURRENT_DESKTOP": "KDE"}, runner=runner)

        assert provider.obtain().value == b"pw"
        assert runner.calls[-1][0][0] == "kwallet-query"

    def test_omitted_environ_ignores_process_environment(self, monkeypatch) -> None:
        """Without a mapping, desktop detection does not look at os.environ."""
        monkeypatch.setenv("XDG_CURRENT_DESKTOP", "KDE")

        assert LinuxKeyringSecretProvider().select_backend() == BACKEND_GNOME

"""Fixtures for provider tests."""

from pathlib import Path

import pytest

from cookiebridge.keystore.base import SecretProvider, SecretResult


class StaticSecretProvider(SecretProvider):
    """Returns a fixed secret and records backend hints."""

    def __init__(self, value: bytes = b"", warnings=None) -> None:
        self.value = value
        self.warnings = list(warnings or [])
        self.hints = []

    def obtain(self, backend_hint=None) -> SecretResult:
        self.hints.append(backend_hint)
        return SecretResult(value=self.value, warnings=list(self.warnings))


@pytest.fixture
def static_secret():
    """Factory for StaticSecretProvider."""
    return StaticSecretProvider


@pytest.fixture
def linux_chrome_db(tmp_path: Path, chromium_db_factory):
    """Build a Chrome Default profile under a Linux XDG config home."""
    user_data = tmp_path / "config" / "google-chrome"

    def _build(rows, **kwargs) -> Path:
        user_data.mkdir(parents=True, exist_ok=True)
        (user_data / "Local State").write_text("{}", encoding="utf-8")
        return chromium_db_factory(rows, db_path=user_data / "Default" / "Network" / "Cookies", **kwargs)

    return _build


@pytest.fixture
def linux_environ(tmp_path: Path) -> dict:
    return {"XDG_CONFIG_HOME": str(tmp_path / "config")}

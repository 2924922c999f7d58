"""Linux desktop keyring secret provider (libsecret / KWallet)."""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional

from cookiebridge.core.constants import DEFAULT_SECRET_TIMEOUT_SECONDS, LINUX_KEYRING_BACKENDS
from cookiebridge.keystore.base import SecretProvider, SecretResult
from cookiebridge.keystore.process import CommandResult, run_capture

logger = logging.getLogger(__name__)

Runner = Callable[..., CommandResult]

BACKEND_GNOME = "gnome"
BACKEND_KWALLET = "kwallet"
BACKEND_BASIC = "basic"

DEFAULT_KWALLET = "kdewallet"

# KDE_SESSION_VERSION -> (D-Bus service, object path)
_KWALLET_DBUS_TARGETS = {
    "6": ("org.kde.kwalletd6", "/modules/kwalletd6"),
    "5": ("org.kde.kwalletd5", "/modules/kwalletd5"),
}
_KWALLET_DBUS_DEFAULT = ("org.kde.kwalletd", "/modules/kwalletd")


def detect_linux_keyring_backend(environ: Mapping[str, str]) -> str:
    """Pick "kwallet" on KDE sessions, "gnome" (secret-service) otherwise."""
    desktop = environ.get("XDG_CURRENT_DESKTOP") or ""
    is_kde = any(part.strip().lower() == "kde" for part in desktop.split(":"))
    if is_kde or (environ.get("KDE_FULL_SESSION") or "").strip():
        return BACKEND_KWALLET
    return BACKEND_GNOME


def kwallet_dbus_target(environ: Mapping[str, str]) -> tuple[str, str]:
    """Return the kwalletd D-Bus service name and object path for this KDE version."""
    version = (environ.get("KDE_SESSION_VERSION") or "").strip()
    return _KWALLET_DBUS_TARGETS.get(version, _KWALLET_DBUS_DEFAULT)


class LinuxKeyringSecretProvider(SecretProvider):
    """
    Reads "<Application> Safe Storage" from the desktop keyring.

    Backend selection order: ``backend_hint``, the configured backend, then
    desktop-session detection. A configured password override skips all
    keyring probing.
    """

    def __init__(
        self,
        application: str = "Chrome",
        backend: Optional[str] = None,
        password_override: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        timeout: float = DEFAULT_SECRET_TIMEOUT_SECONDS,
        runner: Runner = run_capture,
    ) -> None:
        self.application = application
        self.backend = backend
        self._password_override = password_override
        self._environ: Mapping[str, str] = {} if environ is None else environ
        self.timeout = timeout
        self._run = runner

    @property
    def service(self) -> str:
        return f"{self.application} Safe Storage"

    @property
    def kwallet_folder(self) -> str:
        return f"{self.application} Keys"

    def select_backend(self, backend_hint: Optional[str] = None) -> str:
        for candidate in (backend_hint, self.backend):
            if candidate and candidate.lower() in LINUX_KEYRING_BACKENDS:
                return candidate.lower()
        return detect_linux_keyring_backend(self._environ)

    def obtain(self, backend_hint: Optional[str] = None) -> SecretResult:
        if self._password_override is not None:
            logger.debug("Using configured safe-storage password; keyring not queried")
            return SecretResult(value=self._password_override.encode("utf-8"))

        backend = self.select_backend(backend_hint)
        logger.debug("Linux keyring backend: %s", backend)

        if backend == BACKEND_BASIC:
            return SecretResult()
        if backend == BACKEND_GNOME:
            return self._obtain_secret_service()
        return self._obtain_kwallet()

    def _obtain_secret_service(self) -> SecretResult:
        result = self._run(
            ["secret-tool", "lookup", "service", self.service, "account", self.application],
            timeout=self.timeout,
        )
        if result.ok:
            return SecretResult(value=result.stdout.strip().encode("utf-8"))
        logger.debug("secret-tool failed: %s", result.describe_failure())
        return SecretResult.unavailable(
            f"Failed to read Linux keyring via secret-tool ({result.describe_failure()}); "
            "v11 cookies may be unavailable."
        )

    def _obtain_kwallet(self) -> SecretResult:
        wallet = self._network_wallet()
        result = self._run(
            ["kwallet-query", "--read-password", self.service, "--folder", self.kwallet_folder, wallet],
            timeout=self.timeout,
        )
        if not result.ok:
            logger.debug("kwallet-query failed: %s", result.describe_failure())
            return SecretResult.unavailable(
                f"Failed to read Linux keyring via kwallet-query ({result.describe_failure()}); "
                "v11 cookies may be unavailable."
            )
        # kwallet-query exits 0 and prints this when the entry is missing
        if result.stdout.lower().startswith("failed to read"):
            return SecretResult()
        return SecretResult(value=result.stdout.strip().encode("utf-8"))

    def _network_wallet(self) -> str:
        service_name, wallet_path = kwallet_dbus_target(self._environ)
        result = self._run(
            [
                "dbus-send",
                "--session",
                "--print-reply=literal",
                f"--dest={service_name}",
                wallet_path,
                "org.kde.KWallet.networkWallet",
            ],
            timeout=self.timeout,
        )
        if not result.ok:
            return DEFAULT_KWALLET
        wallet = result.stdout.strip().replace('"', "").strip()
        return wallet or DEFAULT_KWALLET

"""macOS keychain secret provider."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from cookiebridge.core.constants import DEFAULT_SECRET_TIMEOUT_SECONDS
from cookiebridge.keystore.base import SecretProvider, SecretResult
from cookiebridge.keystore.process import CommandResult, run_capture

logger = logging.getLogger(__name__)

Runner = Callable[..., CommandResult]


class MacKeychainSecretProvider(SecretProvider):
    """
    Reads a "<Browser> Safe Storage" password with the ``security`` tool.

    Label pairs are tried in order; the first non-empty password wins.
    """

    def __init__(
        self,
        labels: Sequence[tuple[str, str]],
        timeout: float = DEFAULT_SECRET_TIMEOUT_SECONDS,
        runner: Runner = run_capture,
    ) -> None:
        """
        Args:
            labels: (account, service) pairs, e.g. ("Chrome", "Chrome Safe Storage").
            timeout: Seconds allowed per keychain lookup.
            runner: Command runner (injectable for tests).
        """
        self.labels = tuple(labels)
        self.timeout = timeout
        self._run = runner

    def obtain(self, backend_hint: Optional[str] = None) -> SecretResult:
        if not self.labels:
            return SecretResult.unavailable("No macOS Keychain label configured.")

        first_failure: Optional[str] = None
        for account, service in self.labels:
            result = self._run(
                ["security", "find-generic-password", "-w", "-a", account, "-s", service],
                timeout=self.timeout,
            )
            if not result.ok:
                logger.debug("Keychain lookup for %s failed: %s", service, result.describe_failure())
                if first_failure is None:
                    first_failure = f"Failed to read macOS Keychain ({service}): {result.describe_failure()}"
                continue

            password = result.stdout.strip()
            if password:
                return SecretResult(value=password.encode("utf-8"))
            if first_failure is None:
                first_failure = f"macOS Keychain returned an empty {service} password."

        return SecretResult.unavailable(first_failure)

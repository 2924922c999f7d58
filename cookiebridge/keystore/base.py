"""Secret provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class SecretResult:
    """Key material obtained from an OS secret store, plus non-fatal warnings."""

    value: bytes = b""
    warnings: list[str] = field(default_factory=list)

    def __repr__(self) -> str:
        # Never render key material
        return f"SecretResult(value=<{len(self.value)} bytes>, warnings={self.warnings!r})"

    @property
    def ok(self) -> bool:
        return bool(self.value)

    @classmethod
    def unavailable(cls, warning: Optional[str] = None) -> SecretResult:
        """Empty key, optionally with one warning."""
        return cls(value=b"", warnings=[warning] if warning else [])


class SecretProvider(ABC):
    """
    Obtains a browser's cookie-encryption password or key from the OS.

    Implementations never raise for secret-store problems: a failure is an
    empty value and a warning that does not include any secret.
    """

    @abstractmethod
    def obtain(self, backend_hint: Optional[str] = None) -> SecretResult:
        """
        Fetch the secret.

        Args:
            backend_hint: Optional backend selector (only meaningful on Linux).
        """

"""Windows DPAPI secret provider for Chromium's Local State master key."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from pathlib import Path
from typing import Callable, Optional

from cookiebridge.keystore.base import SecretProvider, SecretResult

logger = logging.getLogger(__name__)

DPAPI_PREFIX = b"DPAPI"

Unprotect = Callable[[bytes], Optional[bytes]]


def _load_win32crypt():
    try:
        import win32crypt
    except ImportError:
        logger.debug("win32crypt not available (not Windows)")
        return None
    return win32crypt


def dpapi_available() -> bool:
    """Return True if pywin32's win32crypt can be imported."""
    return _load_win32crypt() is not None


def dpapi_unprotect(data: bytes) -> Optional[bytes]:
    """
    Decrypt data using Windows DPAPI.

    Args:
        data: DPAPI-encrypted blob.

    Returns:
        Decrypted bytes, or None on failure.
    """
    win32crypt = _load_win32crypt()
    if win32crypt is None:
        return None

    try:
        _, decrypted = win32crypt.CryptUnprotectData(data, None, None, None, 0)
        return decrypted
    except Exception as e:
        # pywintypes.error for wrong user context, corrupt blob, etc.
        logger.debug("DPAPI decryption failed: %s", e)
        return None


class WindowsDpapiSecretProvider(SecretProvider):
    """
    Loads the AES-GCM master key from a Chromium ``Local State`` file.

    The key is stored base64-encoded under ``os_crypt.encrypted_key`` with a
    5-byte "DPAPI" prefix in front of the DPAPI-protected blob.
    """

    def __init__(
        self,
        local_state_path: Optional[Path],
        display_name: str = "Chrome",
        unprotect: Optional[Unprotect] = None,
    ) -> None:
        self.local_state_path = local_state_path
        self.display_name = display_name
        self._unprotect = unprotect

    def obtain(self, backend_hint: Optional[str] = None) -> SecretResult:
        name = self.display_name
        if self.local_state_path is None or not self.local_state_path.is_file():
            return SecretResult.unavailable(f"{name} Local State file not found.")

        try:
            with open(self.local_state_path, "r", encoding="utf-8") as f:
                local_state = json.load(f)
        except (OSError, ValueError) as e:
            logger.debug("Failed to read Local State: %s", e)
            return SecretResult.unavailable(f"Failed to parse {name} Local State: {e}")

        try:
            encrypted_key_b64 = local_state["os_crypt"]["encrypted_key"]
        except (KeyError, TypeError):
            return SecretResult.unavailable(f"{name} Local State has no os_crypt.encrypted_key.")
        if not isinstance(encrypted_key_b64, str) or not encrypted_key_b64:
            return SecretResult.unavailable(f"{name} Local State has no os_crypt.encrypted_key.")

        try:
            encrypted_key = base64.b64decode(encrypted_key_b64, validate=True)
        except (binascii.Error, ValueError):
            return SecretResult.unavailable(f"{name} os_crypt.encrypted_key is not valid base64.")

        if not encrypted_key.startswith(DPAPI_PREFIX):
            return SecretResult.unavailable(f"{name} os_crypt.encrypted_key is missing the DPAPI prefix.")

        unprotect = self._unprotect
        if unprotect is None:
            if not dpapi_available():
                return SecretResult.unavailable(
                    f"pywin32 (win32crypt) is not available; cannot unwrap the {name} key."
                )
            unprotect = dpapi_unprotect

        master_key = unprotect(encrypted_key[len(DPAPI_PREFIX):])
        if not master_key:
            return SecretResult.unavailable(f"DPAPI failed to unwrap the {name} key.")

        logger.debug("%s master key loaded", name)
        return SecretResult(value=bytes(master_key))

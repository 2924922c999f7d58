"""OS secret-store access for cookie decryption keys."""

from cookiebridge.keystore.base import SecretProvider, SecretResult
from cookiebridge.keystore.linux import LinuxKeyringSecretProvider
from cookiebridge.keystore.macos import MacKeychainSecretProvider
from cookiebridge.keystore.windows import WindowsDpapiSecretProvider

__all__ = [
    "SecretProvider",
    "SecretResult",
    "LinuxKeyringSecretProvider",
    "MacKeychainSecretProvider",
    "WindowsDpapiSecretProvider",
]

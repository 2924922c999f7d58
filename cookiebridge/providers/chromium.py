"""Chromium-family providers (Chrome, Edge) with per-platform decryption."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Optional

from cookiebridge.core.config import ExtractorConfig
from cookiebridge.core.models import BrowserStore, ProviderResult
from cookiebridge.keystore.base import SecretProvider
from cookiebridge.keystore.linux import LinuxKeyringSecretProvider
from cookiebridge.keystore.macos import MacKeychainSecretProvider
from cookiebridge.keystore.windows import Unprotect, WindowsDpapiSecretProvider, dpapi_unprotect
from cookiebridge.providers.base import BrowserProvider, ProviderOptions
from cookiebridge.providers.external_reader import ExternalChromeReader
from cookiebridge.scanner.browser_paths import (
    CHROME_CONFIG,
    CHROMIUM_LOCAL_STATE_FILE,
    EDGE_CONFIG,
    PLATFORM_LINUX,
    PLATFORM_MAC,
    PLATFORM_WINDOWS,
    BrowserConfig,
)
from cookiebridge.scanner.chromium_cookie_reader import ChromiumCookieReader, ValueDecryptor
from cookiebridge.scanner.chromium_resolver import ChromiumProfileResolver
from cookiebridge.scanner.decryptor import (
    LINUX_ITERATIONS,
    LINUX_V10_PASSWORD,
    MAC_KEYCHAIN_ITERATIONS,
    V10_PREFIX,
    V11_PREFIX,
    decrypt_cbc,
    decrypt_gcm,
    decrypt_legacy_dpapi,
    derive_cbc_key,
    version_tag,
)

logger = logging.getLogger(__name__)

SecretProviderFactory = Callable[[BrowserConfig, BrowserStore], SecretProvider]

_LINUX_TAGS = frozenset({V10_PREFIX.decode("ascii"), V11_PREFIX.decode("ascii")})


@dataclass
class DecryptionSetup:
    """A ready value decryptor, or None when no key could be obtained."""

    decrypt: Optional[ValueDecryptor]
    warnings: list[str] = field(default_factory=list)


class ChromiumDecryptionStrategy(ABC):
    """Turns OS key material into a value decryptor for one platform."""

    def __init__(self, secret_provider: SecretProvider) -> None:
        self.secret_provider = secret_provider

    @abstractmethod
    def prepare(self) -> DecryptionSetup:
        """Obtain key material and build the decryptor."""


class MacKeychainDecryption(ChromiumDecryptionStrategy):
    """Keychain password, PBKDF2 with 1003 iterations, AES-128-CBC."""

    def prepare(self) -> DecryptionSetup:
        secret = self.secret_provider.obtain()
        if not secret.ok:
            return DecryptionSetup(decrypt=None, warnings=list(secret.warnings))

        key = derive_cbc_key(secret.value, MAC_KEYCHAIN_ITERATIONS)

        def decrypt(encrypted: bytes, strip_hash_prefix: bool) -> Optional[str]:
            return decrypt_cbc(
                encrypted, [key], strip_hash_prefix=strip_hash_prefix, allow_plaintext_fallback=True
            )

        return DecryptionSetup(decrypt=decrypt, warnings=list(secret.warnings))


class LinuxKeyringDecryption(ChromiumDecryptionStrategy):
    """
    AES-128-CBC with one PBKDF2 iteration.

    Candidate passwords are tried in the order "peanuts", empty, then the
    keyring password. Only v10/v11 values are decrypted.
    """

    def __init__(self, secret_provider: SecretProvider, backend_hint: Optional[str] = None) -> None:
        super().__init__(secret_provider)
        self.backend_hint = backend_hint

    def prepare(self) -> DecryptionSetup:
        secret = self.secret_provider.obtain(self.backend_hint)
        candidates = linux_key_candidates(secret.value)

        def decrypt(encrypted: bytes, strip_hash_prefix: bool) -> Optional[str]:
            if version_tag(encrypted) not in _LINUX_TAGS:
                return None
            return decrypt_cbc(
                encrypted, candidates, strip_hash_prefix=strip_hash_prefix, allow_plaintext_fallback=False
            )

        # v10 values decrypt without the keyring, so a missing secret is not fatal
        return DecryptionSetup(decrypt=decrypt, warnings=list(secret.warnings))


class WindowsDpapiDecryption(ChromiumDecryptionStrategy):
    """DPAPI-unwrapped master key with AES-256-GCM; untagged values are legacy DPAPI blobs."""

    def __init__(self, secret_provider: SecretProvider, unprotect: Unprotect = dpapi_unprotect) -> None:
        super().__init__(secret_provider)
        self._unprotect = unprotect

    def prepare(self) -> DecryptionSetup:
        secret = self.secret_provider.obtain()
        master_key = secret.value or None

        def decrypt(encrypted: bytes, strip_hash_prefix: bool) -> Optional[str]:
            if version_tag(encrypted) is None:
                return decrypt_legacy_dpapi(encrypted, self._unprotect)
            if master_key is None:
                return None
            return decrypt_gcm(encrypted, master_key, strip_hash_prefix=strip_hash_prefix)

        return DecryptionSetup(decrypt=decrypt, warnings=list(secret.warnings))


def linux_key_candidates(keyring_password: bytes) -> list[bytes]:
    """Derive the Linux candidate keys in trial order, without duplicates."""
    passwords: list[bytes] = [LINUX_V10_PASSWORD.encode("ascii"), b""]
    if keyring_password and keyring_password not in passwords:
        passwords.append(keyring_password)
    return [derive_cbc_key(password, LINUX_ITERATIONS) for password in passwords]


class ChromiumProvider(BrowserProvider):
    """
    Reads one Chromium-family browser's SQLite cookie store.

    Locates the profile, prepares the platform's decryption strategy, then
    reads a snapshot of the store.
    """

    def __init__(
        self,
        browser: BrowserConfig,
        config: Optional[ExtractorConfig] = None,
        platform: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None,
        secret_provider_factory: Optional[SecretProviderFactory] = None,
    ) -> None:
        super().__init__(config, platform, environ, home)
        self.browser = browser
        self.name = browser.name
        self._secret_provider_factory = secret_provider_factory

    def default_profile(self) -> Optional[str]:
        return None

    def get_cookies(self, options: ProviderOptions) -> ProviderResult:
        display = self.browser.display_name
        if self.platform not in (PLATFORM_MAC, PLATFORM_LINUX, PLATFORM_WINDOWS):
            return ProviderResult.failure(f"{display} is not supported on {self.platform}.")

        resolver = ChromiumProfileResolver(self.browser, self.platform, self.environ, self.home)
        store = resolver.resolve(options.profile or self.default_profile())
        if store is None:
            return ProviderResult.failure(f"{display} cookies database not found.")

        logger.debug("Reading %s cookies from %s", display, store.db_path)
        return self.read_store(store, options)

    def read_store(self, store: BrowserStore, options: ProviderOptions) -> ProviderResult:
        setup = self.decryption_strategy(store).prepare()
        if setup.decrypt is None:
            return ProviderResult(cookies=[], warnings=setup.warnings)

        reader = ChromiumCookieReader(
            store,
            setup.decrypt,
            display_name=self.browser.display_name,
            hash_prefix_meta_version=self.config.hash_prefix_meta_version,
        )
        result = reader.read_cookies(options.hosts, options.names, options.include_expired)
        result.warnings[:0] = setup.warnings
        return result

    def decryption_strategy(self, store: BrowserStore) -> ChromiumDecryptionStrategy:
        secret_provider = self._secret_provider(store)
        if self.platform == PLATFORM_MAC:
            return MacKeychainDecryption(secret_provider)
        if self.platform == PLATFORM_LINUX:
            return LinuxKeyringDecryption(secret_provider, self.config.linux_keyring_backend)
        return WindowsDpapiDecryption(secret_provider)

    def _secret_provider(self, store: BrowserStore) -> SecretProvider:
        if self._secret_provider_factory is not None:
            return self._secret_provider_factory(self.browser, store)

        timeout = self.config.secret_timeout_seconds
        if self.platform == PLATFORM_MAC:
            return MacKeychainSecretProvider(self.browser.keychain_labels, timeout=timeout)
        if self.platform == PLATFORM_LINUX:
            return LinuxKeyringSecretProvider(
                application=self.browser.linux_application or self.browser.display_name,
                backend=self.config.linux_keyring_backend,
                password_override=self.config.safe_storage_password,
                environ=self.environ,
                timeout=timeout,
            )
        local_state = store.user_data_dir / CHROMIUM_LOCAL_STATE_FILE if store.user_data_dir else None
        return WindowsDpapiSecretProvider(local_state, display_name=self.browser.display_name)


class ChromeProvider(ChromiumProvider):
    """
    Google Chrome.

    On macOS the external reader runs first; the direct store read is the
    fallback when it yields nothing.
    """

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        platform: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None,
        secret_provider_factory: Optional[SecretProviderFactory] = None,
        external_reader: Optional[ExternalChromeReader] = None,
    ) -> None:
        super().__init__(CHROME_CONFIG, config, platform, environ, home, secret_provider_factory)
        self.external_reader = external_reader

    def default_profile(self) -> Optional[str]:
        return self.config.chrome_profile

    def read_store(self, store: BrowserStore, options: ProviderOptions) -> ProviderResult:
        if self.platform != PLATFORM_MAC or not self.config.use_external_chrome_reader:
            return super().read_store(store, options)

        reader = self.external_reader or ExternalChromeReader()
        external = reader.read(store, options)
        if external.cookies:
            return external

        logger.debug("External Chrome reader found nothing; reading the store directly")
        direct = super().read_store(store, options)
        direct.warnings[:0] = external.warnings
        return direct


class EdgeProvider(ChromiumProvider):
    """Microsoft Edge."""

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        platform: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None,
        secret_provider_factory: Optional[SecretProviderFactory] = None,
    ) -> None:
        super().__init__(EDGE_CONFIG, config, platform, environ, home, secret_provider_factory)

    def default_profile(self) -> Optional[str]:
        return self.config.edge_profile

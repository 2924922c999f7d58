"""Cookie store location, snapshotting, reading and decryption."""

from cookiebridge.scanner.browser_paths import (
    ALL_BROWSERS,
    BROWSERS_BY_NAME,
    CHROME_CONFIG,
    CHROMIUM_BROWSERS,
    EDGE_CONFIG,
    FIREFOX_CONFIG,
    SAFARI_CONFIG,
    BrowserConfig,
)
from cookiebridge.scanner.binary_cookies import (
    BinaryCookieRecord,
    BinaryCookiesError,
    SafariCookieReader,
    parse_binary_cookies,
)
from cookiebridge.scanner.chromium_cookie_reader import ChromiumCookieReader
from cookiebridge.scanner.chromium_resolver import ChromiumProfileResolver
from cookiebridge.scanner.cookie_reader import BaseCookieReader
from cookiebridge.scanner.db_copy import SnapshotError, cleanup_temp_db, copy_db_to_temp, snapshot_db
from cookiebridge.scanner.decryptor import DecryptionError, decrypt_cbc, decrypt_gcm, derive_cbc_key
from cookiebridge.scanner.firefox_cookie_reader import FirefoxCookieReader
from cookiebridge.scanner.firefox_resolver import FirefoxProfileResolver

__all__ = [
    # Profile resolvers
    "ChromiumProfileResolver",
    "FirefoxProfileResolver",
    # Browser configs
    "BrowserConfig",
    "ALL_BROWSERS",
    "BROWSERS_BY_NAME",
    "CHROMIUM_BROWSERS",
    "CHROME_CONFIG",
    "EDGE_CONFIG",
    "FIREFOX_CONFIG",
    "SAFARI_CONFIG",
    # Cookie readers
    "BaseCookieReader",
    "ChromiumCookieReader",
    "FirefoxCookieReader",
    "SafariCookieReader",
    "BinaryCookieRecord",
    "BinaryCookiesError",
    "parse_binary_cookies",
    # Decryption
    "DecryptionError",
    "decrypt_cbc",
    "decrypt_gcm",
    "derive_cbc_key",
    # Utilities
    "SnapshotError",
    "copy_db_to_temp",
    "cleanup_temp_db",
    "snapshot_db",
]

"""Application constants and paths for cookiebridge."""

from pathlib import Path

# Application metadata
APP_NAME = "cookiebridge"
APP_VERSION = "0.3.0"
CONFIG_VERSION = 1

# Base paths
APP_ROOT = Path.home() / ".cookiebridge"
CONFIG_DIR = APP_ROOT
LOGS_DIR = APP_ROOT / "logs"

# File paths
CONFIG_FILE = CONFIG_DIR / "config.json"
DEBUG_LOG_FILE = LOGS_DIR / "debug.log"
AUDIT_LOG_FILE = LOGS_DIR / "audit.log"

# Logging settings
DEBUG_LOG_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
DEBUG_LOG_BACKUP_COUNT = 3

# Supported browsers, in default provider order
SUPPORTED_BROWSERS = ("chrome", "edge", "firefox", "safari")
DEFAULT_BROWSERS = ("chrome", "safari", "firefox")

# Result modes
MODE_MERGE = "merge"
MODE_FIRST = "first"
VALID_MODES = frozenset({MODE_MERGE, MODE_FIRST})

# Linux keyring backends
LINUX_KEYRING_BACKENDS = frozenset({"gnome", "kwallet", "basic"})

# Environment variables, read once at the edge by load_config_from_env()
ENV_BROWSERS = "COOKIEBRIDGE_BROWSERS"
ENV_SOURCES = "COOKIEBRIDGE_SOURCES"
ENV_MODE = "COOKIEBRIDGE_MODE"
ENV_CHROME_PROFILE = "COOKIEBRIDGE_CHROME_PROFILE"
ENV_EDGE_PROFILE = "COOKIEBRIDGE_EDGE_PROFILE"
ENV_FIREFOX_PROFILE = "COOKIEBRIDGE_FIREFOX_PROFILE"
ENV_LINUX_KEYRING = "COOKIEBRIDGE_LINUX_KEYRING"
ENV_SAFE_STORAGE_PASSWORD = "COOKIEBRIDGE_CHROME_SAFE_STORAGE_PASSWORD"
ENV_CONFIG_FILE = "COOKIEBRIDGE_CONFIG"

# Chromium meta.version from which decrypted values carry a 32-byte hash prefix.
# Drifts with browser releases; revalidate against current builds.
DEFAULT_HASH_PREFIX_META_VERSION = 24

# Seconds allowed for each external secret-store call
DEFAULT_SECRET_TIMEOUT_SECONDS = 3.0

# Default settings
DEFAULT_SETTINGS = {
    "browsers": list(DEFAULT_BROWSERS),
    "mode": MODE_MERGE,
    "hash_prefix_meta_version": DEFAULT_HASH_PREFIX_META_VERSION,
    "secret_timeout_seconds": DEFAULT_SECRET_TIMEOUT_SECONDS,
    "use_external_chrome_reader": True,
}

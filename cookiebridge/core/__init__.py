"""Core module for cookiebridge."""

from .config import ConfigManager, ConfigError, ExtractorConfig, load_config, load_config_from_env
from .cookie_header import to_cookie_header
from .expiry import normalize_expiration
from .hosts import host_matches_cookie_domain, normalize_origins
from .logging_config import setup_logging, get_audit_logger, log_extraction
from .models import (
    BrowserStore,
    Cookie,
    CookieRequest,
    CookieSource,
    ProviderResult,
    SameSite,
)

__all__ = [
    # Config
    "ConfigManager",
    "ConfigError",
    "ExtractorConfig",
    "load_config",
    "load_config_from_env",
    # Logging
    "setup_logging",
    "get_audit_logger",
    "log_extraction",
    # Models
    "BrowserStore",
    "Cookie",
    "CookieRequest",
    "CookieSource",
    "ProviderResult",
    "SameSite",
    # Helpers
    "to_cookie_header",
    "normalize_expiration",
    "host_matches_cookie_domain",
    "normalize_origins",
]

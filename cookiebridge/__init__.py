"""Read authentication cookies from local browser stores and inline payloads."""

from cookiebridge.core.constants import APP_VERSION as __version__
from cookiebridge.core.config import ExtractorConfig, load_config
from cookiebridge.core.cookie_header import to_cookie_header
from cookiebridge.core.models import Cookie, CookieRequest, CookieSource, ProviderResult, SameSite
from cookiebridge.core.orchestrator import CookieOrchestrator, get_cookies

__all__ = [
    "__version__",
    "Cookie",
    "CookieOrchestrator",
    "CookieRequest",
    "CookieSource",
    "ExtractorConfig",
    "ProviderResult",
    "SameSite",
    "get_cookies",
    "load_config",
    "to_cookie_header",
]

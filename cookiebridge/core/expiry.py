"""Expiry timestamp normalization across store encodings."""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Chromium timestamp epoch offset
# Windows FILETIME epoch: 1601-01-01
# Unix epoch: 1970-01-01
# Difference: 11644473600 seconds
CHROMIUM_EPOCH_OFFSET = 11644473600

# Apple CFAbsoluteTime epoch (2001-01-01T00:00Z) relative to Unix epoch
MAC_EPOCH_OFFSET = 978307200

# Raw values above these are microseconds-since-1601 and milliseconds-since-1970.
# Unix seconds are ~1.7e9, so the millisecond cutoff sits well above that.
_MICROSECONDS_1601_THRESHOLD = 10_000_000_000_000
_MILLISECONDS_THRESHOLD = 10_000_000_000


def normalize_expiration(raw: Any) -> Optional[int]:
    """
    Normalize a raw expiry value to Unix seconds.

    Accepts Unix seconds, Unix milliseconds and Chromium microseconds since
    1601-01-01. Numeric strings are parsed.

    Args:
        raw: Raw expiry value from a store row or payload.

    Returns:
        Unix seconds, or None for session cookies (zero, negative or unparseable).
    """
    value = _coerce_number(raw)
    if value is None or value <= 0:
        return None

    if value > _MICROSECONDS_1601_THRESHOLD:
        return round(value / 1_000_000 - CHROMIUM_EPOCH_OFFSET)

    if value > _MILLISECONDS_THRESHOLD:
        return round(value / 1000)

    return round(value)


def mac_time_to_unix(mac_seconds: float) -> Optional[int]:
    """
    Convert seconds since the Mac reference epoch to Unix seconds.

    Returns:
        Unix seconds, or None for zero/invalid values.
    """
    if not math.isfinite(mac_seconds) or mac_seconds <= 0:
        return None
    return round(mac_seconds + MAC_EPOCH_OFFSET)


def is_expired(expires: Optional[int], now: Optional[int] = None) -> bool:
    """Return True if a non-session cookie expired before ``now``."""
    if not expires:
        return False
    current = int(time.time()) if now is None else now
    return 0 < expires < current


def _coerce_number(raw: Any) -> Optional[float]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            logger.debug("Unparseable expiry value")
            return None
    else:
        return None
    if not math.isfinite(value):
        return None
    return value

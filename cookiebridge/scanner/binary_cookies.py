"""
Safari Cookies.binarycookies parser.

File layout (numbers big-endian unless noted):
    "cook" magic, page count, one size per page, then the pages.
Page layout:
    0x00000100 magic, record count (LE), record offsets (LE), records.
Record layout (all little-endian):
    size, unknown, flags, unknown, url/name/path/value offsets,
    8 reserved bytes, expiry (f64, Mac epoch), creation (f64, Mac epoch),
    then NUL-terminated strings addressed by the offsets.
"""

from __future__ import annotations

import logging
import struct
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from cookiebridge.core.expiry import mac_time_to_unix
from cookiebridge.core.hosts import host_matches_any, hostname_from_url, normalize_domain
from cookiebridge.core.models import Cookie, CookieSource, ProviderResult
from cookiebridge.scanner.cookie_reader import BaseCookieReader, dedupe_cookies

logger = logging.getLogger(__name__)

FILE_MAGIC = b"cook"
PAGE_MAGIC = 0x00000100
RECORD_HEADER_SIZE = 56

FLAG_SECURE = 0x1
FLAG_HTTP_ONLY = 0x4

_FILE_HEADER = struct.Struct(">4sI")
_PAGE_SIZE = struct.Struct(">I")
_PAGE_HEADER = struct.Struct(">I")
_U32_LE = struct.Struct("<I")
# size, unknown, flags, unknown, url, name, path, value, reserved, expiry, creation
_RECORD_HEADER = struct.Struct("<IIIIIIII8sdd")


class BinaryCookiesError(ValueError):
    """Raised when a binarycookies buffer has no usable file header."""


@dataclass(frozen=True)
class BinaryCookieRecord:
    """One decoded cookie record from a binarycookies page."""

    url: Optional[str]
    name: str
    path: str
    value: str
    flags: int
    expires: Optional[int]  # Unix seconds
    created: Optional[int]  # Unix seconds

    @property
    def secure(self) -> bool:
        return bool(self.flags & FLAG_SECURE)

    @property
    def http_only(self) -> bool:
        return bool(self.flags & FLAG_HTTP_ONLY)

    @property
    def domain(self) -> Optional[str]:
        """Host the cookie applies to, from either a URL or a bare domain field."""
        if not self.url:
            return None
        if "://" in self.url:
            hostname = hostname_from_url(self.url)
            return hostname.lower() if hostname else None
        domain = normalize_domain(self.url.strip()).lower()
        return domain or None


def parse_binary_cookies(data: bytes) -> list[BinaryCookieRecord]:
    """
    Parse a binarycookies buffer.

    Malformed pages and records are skipped; only a missing or bad file header
    is an error.

    Raises:
        BinaryCookiesError: If the buffer does not start with a valid header.
    """
    if len(data) < _FILE_HEADER.size:
        raise BinaryCookiesError("file too short for header")

    magic, page_count = _FILE_HEADER.unpack_from(data, 0)
    if magic != FILE_MAGIC:
        raise BinaryCookiesError("bad file magic")

    sizes_end = _FILE_HEADER.size + page_count * _PAGE_SIZE.size
    if sizes_end > len(data):
        raise BinaryCookiesError(f"truncated page table ({page_count} pages declared)")

    page_sizes = [
        _PAGE_SIZE.unpack_from(data, _FILE_HEADER.size + i * _PAGE_SIZE.size)[0]
        for i in range(page_count)
    ]

    records: list[BinaryCookieRecord] = []
    cursor = sizes_end
    for index, page_size in enumerate(page_sizes):
        if cursor + page_size > len(data):
            logger.debug("Page %d truncated (%d bytes declared)", index, page_size)
            break
        records.extend(_parse_page(data[cursor:cursor + page_size], index))
        cursor += page_size

    return records


def _parse_page(page: bytes, index: int) -> list[BinaryCookieRecord]:
    if len(page) < 8:
        logger.debug("Page %d too short", index)
        return []

    (magic,) = _PAGE_HEADER.unpack_from(page, 0)
    if magic != PAGE_MAGIC:
        logger.debug("Page %d has bad magic 0x%08x", index, magic)
        return []

    (record_count,) = _U32_LE.unpack_from(page, 4)
    offsets_end = 8 + record_count * _U32_LE.size
    if offsets_end > len(page):
        logger.debug("Page %d offset table truncated", index)
        return []

    records = []
    for i in range(record_count):
        (offset,) = _U32_LE.unpack_from(page, 8 + i * _U32_LE.size)
        record = _parse_record(page, offset)
        if record is not None:
            records.append(record)
    return records


def _parse_record(page: bytes, offset: int) -> Optional[BinaryCookieRecord]:
    if offset + RECORD_HEADER_SIZE > len(page):
        return None

    (
        size,
        _unknown1,
        flags,
        _unknown2,
        url_offset,
        name_offset,
        path_offset,
        value_offset,
        _reserved,
        expiry,
        creation,
    ) = _RECORD_HEADER.unpack_from(page, offset)

    if size < RECORD_HEADER_SIZE or offset + size > len(page):
        return None

    record = page[offset:offset + size]
    name = _read_cstring(record, name_offset)
    if not name:
        return None

    url = _read_cstring(record, url_offset) if url_offset else None
    path = _read_cstring(record, path_offset) if path_offset else None
    value = _read_cstring(record, value_offset) if value_offset else None
    # A non-zero offset that cannot be read means the record is corrupt
    if (url_offset and url is None) or (path_offset and path is None) or (value_offset and value is None):
        return None

    return BinaryCookieRecord(
        url=url or None,
        name=name,
        path=path or "/",
        value=value or "",
        flags=flags,
        expires=mac_time_to_unix(expiry),
        created=mac_time_to_unix(creation),
    )


def _read_cstring(record: bytes, start: int) -> Optional[str]:
    if start < RECORD_HEADER_SIZE or start >= len(record):
        return None
    end = record.find(b"\x00", start)
    if end == -1:
        return None
    return record[start:end].decode("utf-8", errors="replace")


class SafariCookieReader(BaseCookieReader):
    """Cookie reader for Safari's binarycookies jar. Values are stored in plaintext."""

    def read_cookies(
        self,
        hosts: Sequence[str],
        names: Optional[frozenset[str]] = None,
        include_expired: bool = False,
    ) -> ProviderResult:
        try:
            data = Path(self.store.db_path).read_bytes()
        except OSError as e:
            logger.warning("Cannot read Safari cookie jar %s: %s", self.store.db_path, e)
            return ProviderResult.failure(f"Failed to read Safari cookies: {e}")

        try:
            records = parse_binary_cookies(data)
        except BinaryCookiesError as e:
            logger.warning("Malformed Safari cookie jar %s: %s", self.store.db_path, e)
            return ProviderResult.failure(f"Failed to parse Safari cookies: {e}")

        now = int(time.time())
        cookies: list[Cookie] = []
        for record in records:
            domain = record.domain
            if not domain or not host_matches_any(hosts, domain):
                continue
            if names and record.name not in names:
                continue
            if not include_expired and record.expires is not None and record.expires < now:
                continue
            cookies.append(
                Cookie(
                    name=record.name,
                    value=record.value,
                    domain=domain,
                    path=record.path,
                    expires=record.expires,
                    secure=record.secure,
                    http_only=record.http_only,
                    source=CookieSource(browser=self.store.browser_name, profile=self.store.profile_id),
                )
            )

        logger.debug("Safari: %d of %d records matched", len(cookies), len(records))
        return ProviderResult(cookies=dedupe_cookies(cookies))

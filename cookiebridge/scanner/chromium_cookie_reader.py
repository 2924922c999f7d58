"""Chromium-based browser cookie reader."""

from __future__ import annotations

import logging
import sqlite3
import time
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from cookiebridge.core.constants import DEFAULT_HASH_PREFIX_META_VERSION
from cookiebridge.core.expiry import normalize_expiration
from cookiebridge.core.hosts import host_matches_any, normalize_domain
from cookiebridge.core.models import BrowserStore, Cookie, CookieSource, ProviderResult, SameSite
from cookiebridge.scanner.cookie_reader import (
    BaseCookieReader,
    build_host_where_clause,
    dedupe_cookies,
    is_missing_column_error,
)
from cookiebridge.scanner.db_copy import SnapshotError, snapshot_db
from cookiebridge.scanner.decryptor import V20_PREFIX, version_tag
from cookiebridge.scanner.lock_check import describe_snapshot_failure

logger = logging.getLogger(__name__)

# decrypt(encrypted_value, strip_hash_prefix) -> plaintext or None
ValueDecryptor = Callable[[bytes, bool], Optional[str]]

# Column names for the secure/httpOnly flags, newest schema first
FLAG_COLUMN_VARIANTS = (
    ("is_secure", "is_httponly"),
    ("secure", "httponly"),
)

_SELECT_TEMPLATE = (
    "SELECT name, value, host_key, path, expires_utc, samesite, encrypted_value, "
    "{secure} AS is_secure, {httponly} AS is_httponly "
    "FROM cookies WHERE ({where}) ORDER BY expires_utc DESC"
)


@dataclass
class ChromiumRow:
    """One raw row of the Chromium cookies table, decoded field by field."""

    name: Optional[str]
    value: Optional[str]
    host_key: Optional[str]
    path: str
    expires_utc: Any
    samesite: Any
    encrypted_value: Any
    is_secure: bool
    is_httponly: bool

    @classmethod
    def from_sqlite(cls, row: sqlite3.Row) -> ChromiumRow:
        keys = set(row.keys())

        def get(column: str) -> Any:
            return row[column] if column in keys else None

        name = get("name")
        value = get("value")
        host_key = get("host_key")
        path = get("path")
        return cls(
            name=name if isinstance(name, str) and name else None,
            value=value if isinstance(value, str) else None,
            host_key=host_key if isinstance(host_key, str) and host_key else None,
            path=path if isinstance(path, str) else "",
            expires_utc=get("expires_utc"),
            samesite=get("samesite"),
            encrypted_value=get("encrypted_value"),
            is_secure=_is_truthy_flag(get("is_secure")),
            is_httponly=_is_truthy_flag(get("is_httponly")),
        )

    @property
    def encrypted_bytes(self) -> Optional[bytes]:
        if isinstance(self.encrypted_value, (bytes, bytearray, memoryview)):
            return bytes(self.encrypted_value)
        return None


class ChromiumCookieReader(BaseCookieReader):
    """Cookie reader for Chromium-based browsers (Chrome, Edge)."""

    def __init__(
        self,
        store: BrowserStore,
        decrypt: ValueDecryptor,
        display_name: str = "Chrome",
        hash_prefix_meta_version: int = DEFAULT_HASH_PREFIX_META_VERSION,
    ) -> None:
        super().__init__(store)
        self._decrypt = decrypt
        self.display_name = display_name
        self.hash_prefix_meta_version = hash_prefix_meta_version

    def read_cookies(
        self,
        hosts: Sequence[str],
        names: Optional[frozenset[str]] = None,
        include_expired: bool = False,
    ) -> ProviderResult:
        """Read cookies for ``hosts`` from a snapshot of the Chromium database."""
        warnings: list[str] = []
        try:
            with snapshot_db(self.store.db_path) as temp_db:
                cookies = self._read_snapshot(temp_db, hosts, names, include_expired, warnings)
        except SnapshotError as e:
            logger.warning("Snapshot of %s failed: %s", self.store.db_path, e)
            warnings.append(describe_snapshot_failure(self.store.browser_name, self.display_name, e))
            return ProviderResult(cookies=[], warnings=warnings)

        return ProviderResult(cookies=cookies, warnings=warnings)

    def _read_snapshot(
        self,
        temp_db: Path,
        hosts: Sequence[str],
        names: Optional[frozenset[str]],
        include_expired: bool,
        warnings: list[str],
    ) -> list[Cookie]:
        try:
            conn = sqlite3.connect(f"file:{temp_db}?mode=ro", uri=True)
        except sqlite3.Error as e:
            warnings.append(f"Failed to open {self.display_name} cookie DB: {e}")
            return []

        conn.row_factory = sqlite3.Row
        try:
            meta_version = read_meta_version(conn)
            strip_hash_prefix = meta_version >= self.hash_prefix_meta_version
            logger.debug(
                "%s (%s) meta version %d, strip_hash_prefix=%s",
                self.display_name,
                self.store.profile_id,
                meta_version,
                strip_hash_prefix,
            )

            rows = self._query_rows(conn, hosts, warnings)
            if rows is None:
                return []
        finally:
            conn.close()

        cookies = self._collect(rows, hosts, names, include_expired, strip_hash_prefix, warnings)
        return dedupe_cookies(cookies)

    def _query_rows(
        self,
        conn: sqlite3.Connection,
        hosts: Sequence[str],
        warnings: list[str],
    ) -> Optional[list[ChromiumRow]]:
        """
        Query the cookies table, trying each historical flag-column variant.

        Returns:
            Decoded rows, or None after recording a warning.
        """
        where, params = build_host_where_clause(hosts, "host_key")
        for secure_column, httponly_column in FLAG_COLUMN_VARIANTS:
            sql = _SELECT_TEMPLATE.format(secure=secure_column, httponly=httponly_column, where=where)
            try:
                cursor = conn.execute(sql, params)
                return [ChromiumRow.from_sqlite(row) for row in cursor]
            except sqlite3.Error as e:
                if is_missing_column_error(e):
                    logger.debug(
                        "Column variant (%s, %s) missing: %s", secure_column, httponly_column, e
                    )
                    continue
                logger.error(
                    "Failed to read cookies from %s (%s): %s",
                    self.display_name,
                    self.store.profile_id,
                    e,
                )
                warnings.append(f"sqlite3 failed reading {self.display_name} cookies: {e}")
                return None

        warnings.append(f"Failed reading {self.display_name} cookies: unsupported cookies schema.")
        return None

    def _collect(
        self,
        rows: list[ChromiumRow],
        hosts: Sequence[str],
        names: Optional[frozenset[str]],
        include_expired: bool,
        strip_hash_prefix: bool,
        warnings: list[str],
    ) -> list[Cookie]:
        cookies: list[Cookie] = []
        now = int(time.time())
        failed_tags: Counter[str] = Counter()
        warned_encrypted_type = False

        for row in rows:
            if row.name is None:
                continue
            if names and row.name not in names:
                continue
            if row.host_key is None or not host_matches_any(hosts, row.host_key):
                continue

            value = row.value
            if not value:
                encrypted = row.encrypted_bytes
                if encrypted is None:
                    if not warned_encrypted_type and row.encrypted_value is not None:
                        warnings.append(
                            f"{self.display_name} cookie encrypted_value is in an unsupported type."
                        )
                        warned_encrypted_type = True
                    continue
                value = self._decrypt(encrypted, strip_hash_prefix) if encrypted else ""
                if value is None:
                    failed_tags[version_tag(encrypted) or "untagged"] += 1
                    continue

            expires = normalize_expiration(row.expires_utc)
            if not include_expired and expires is not None and expires < now:
                continue

            cookies.append(
                Cookie(
                    name=row.name,
                    value=value,
                    domain=normalize_domain(row.host_key),
                    path=row.path or "/",
                    expires=expires,
                    secure=row.is_secure,
                    http_only=row.is_httponly,
                    same_site=SameSite.parse(row.samesite),
                    source=CookieSource(browser=self.store.browser_name, profile=self.store.profile_id),
                )
            )

        if failed_tags:
            warnings.append(self._describe_failures(failed_tags))

        return cookies

    def _describe_failures(self, failed_tags: Counter[str]) -> str:
        total = sum(failed_tags.values())
        message = f"Could not decrypt {total} {self.display_name} cookie value(s)"
        v20 = V20_PREFIX.decode("ascii")
        if failed_tags.get(v20):
            message += f"; {failed_tags[v20]} use app-bound {v20} encryption, which is not supported"
        return message + "."


def read_meta_version(conn: sqlite3.Connection) -> int:
    """
    Read the Chromium cookie schema version from the meta table.

    Returns:
        The integer version, or 0 if absent/unreadable.
    """
    try:
        row = conn.execute("SELECT value FROM meta WHERE key = 'version'").fetchone()
    except sqlite3.Error as e:
        logger.debug("No readable meta table: %s", e)
        return 0
    if row is None:
        return 0
    value = row[0]
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            return 0
    return 0


def _is_truthy_flag(value: Any) -> bool:
    return value is True or value == 1 or value == "1"

"""Firefox browser cookie reader."""

from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path
from typing import Optional, Sequence

from cookiebridge.core.expiry import normalize_expiration
from cookiebridge.core.hosts import host_matches_any, normalize_domain
from cookiebridge.core.models import Cookie, CookieSource, ProviderResult, SameSite
from cookiebridge.scanner.cookie_reader import (
    BaseCookieReader,
    build_host_where_clause,
    dedupe_cookies,
    is_missing_column_error,
)
from cookiebridge.scanner.db_copy import SnapshotError, snapshot_db
from cookiebridge.scanner.lock_check import describe_snapshot_failure

logger = logging.getLogger(__name__)

# Older profiles predate the sameSite column
_SELECT_WITH_SAMESITE = (
    "SELECT name, value, host, path, expiry, isSecure, isHttpOnly, sameSite "
    "FROM moz_cookies WHERE ({where})"
)
_SELECT_WITHOUT_SAMESITE = (
    "SELECT name, value, host, path, expiry, isSecure, isHttpOnly, NULL AS sameSite "
    "FROM moz_cookies WHERE ({where})"
)


class FirefoxCookieReader(BaseCookieReader):
    """Cookie reader for Firefox browser. Values are stored in plaintext."""

    def read_cookies(
        self,
        hosts: Sequence[str],
        names: Optional[frozenset[str]] = None,
        include_expired: bool = False,
    ) -> ProviderResult:
        warnings: list[str] = []
        try:
            with snapshot_db(self.store.db_path) as temp_db:
                cookies = self._read_snapshot(temp_db, hosts, names, include_expired, warnings)
        except SnapshotError as e:
            logger.warning("Snapshot of %s failed: %s", self.store.db_path, e)
            warnings.append(describe_snapshot_failure(self.store.browser_name, "Firefox", e))
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
        where, params = build_host_where_clause(hosts, "host")
        try:
            conn = sqlite3.connect(f"file:{temp_db}?mode=ro", uri=True)
        except sqlite3.Error as e:
            warnings.append(f"Failed to open Firefox cookie DB: {e}")
            return []

        conn.row_factory = sqlite3.Row
        try:
            rows = self._query(conn, where, params)
        except sqlite3.Error as e:
            logger.error(
                "Failed to read cookies from %s (%s): %s",
                self.store.browser_name,
                self.store.profile_id,
                e,
            )
            warnings.append(f"sqlite3 failed reading Firefox cookies: {e}")
            return []
        finally:
            conn.close()

        now = int(time.time())
        cookies: list[Cookie] = []
        for row in rows:
            name = row["name"]
            host = row["host"]
            if not isinstance(name, str) or not name:
                continue
            if names and name not in names:
                continue
            if not isinstance(host, str) or not host or not host_matches_any(hosts, host):
                continue

            expires = normalize_expiration(row["expiry"])
            if not include_expired and expires is not None and expires < now:
                continue

            value = row["value"]
            path = row["path"]
            cookies.append(
                Cookie(
                    name=name,
                    value=value if isinstance(value, str) else "",
                    domain=normalize_domain(host),
                    path=path if isinstance(path, str) and path else "/",
                    expires=expires,
                    secure=bool(row["isSecure"]),
                    http_only=bool(row["isHttpOnly"]),
                    same_site=SameSite.parse(row["sameSite"]),
                    source=CookieSource(browser=self.store.browser_name, profile=self.store.profile_id),
                )
            )

        logger.debug(
            "Firefox (%s): %d matching cookies", self.store.profile_id, len(cookies)
        )
        return dedupe_cookies(cookies)

    def _query(self, conn: sqlite3.Connection, where: str, params: list[str]) -> list[sqlite3.Row]:
        try:
            return conn.execute(_SELECT_WITH_SAMESITE.format(where=where), params).fetchall()
        except sqlite3.Error as e:
            if not is_missing_column_error(e):
                raise
            logger.debug("moz_cookies has no sameSite column: %s", e)
        return conn.execute(_SELECT_WITHOUT_SAMESITE.format(where=where), params).fetchall()

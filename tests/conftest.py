"""Shared pytest fixtures for cookiebridge tests."""

import json
import shutil
import sqlite3
import struct
import tempfile
from pathlib import Path
from types import SimpleNamespace

import pytest
from Crypto.Cipher import AES
from Crypto.Util.Padding import pad

# Chromium epoch offset: microseconds since 1601-01-01
CHROMIUM_EPOCH_OFFSET = 11644473600
MAC_EPOCH_OFFSET = 978307200

# A far-future expiry (2100-01-01) so fixtures never expire
FAR_FUTURE_UNIX = 4102444800


def unix_to_chromium_time(unix_seconds: int) -> int:
    """Convert Unix timestamp to Chromium microseconds since 1601."""
    return (unix_seconds + CHROMIUM_EPOCH_OFFSET) * 1_000_000


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def temp_config_file(temp_dir):
    """Create a temporary config file path."""
    return temp_dir / "config.json"


@pytest.fixture
def valid_config_data():
    """Return valid configuration data."""
    return {
        "version": 1,
        "settings": {
            "browsers": ["firefox", "chrome"],
            "mode": "first",
            "firefox_profile": "abc123.default-release",
            "hash_prefix_meta_version": 23,
            "secret_timeout_seconds": 5,
        },
    }


@pytest.fixture
def temp_config_with_data(temp_config_file, valid_config_data):
    """Create a temporary config file with valid data."""
    temp_config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(temp_config_file, "w", encoding="utf-8") as f:
        json.dump(valid_config_data, f)
    return temp_config_file


@pytest.fixture
def cbc_encrypt():
    """Encrypt like Chromium on macOS/Linux: tag + AES-128-CBC(IV = 16 spaces)."""

    def _encrypt(plaintext: bytes, key: bytes, tag: bytes = b"v10") -> bytes:
        cipher = AES.new(key, AES.MODE_CBC, iv=b" " * 16)
        return tag + cipher.encrypt(pad(plaintext, AES.block_size))

    return _encrypt


@pytest.fixture
def gcm_encrypt():
    """Encrypt like Chromium on Windows: tag + nonce + AES-256-GCM ciphertext + tag."""

    def _encrypt(plaintext: bytes, key: bytes, tag: bytes = b"v10", nonce: bytes = b"\x01" * 12) -> bytes:
        cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
        ciphertext, auth_tag = cipher.encrypt_and_digest(plaintext)
        return tag + nonce + ciphertext + auth_tag

    return _encrypt


@pytest.fixture
def chromium_db_factory(tmp_path: Path):
    """
    Build Chromium-style cookie databases.

    Each row is a dict with host_key, name and optionally value,
    encrypted_value, path, expires_utc, secure, httponly, samesite.
    """

    def _build(
        rows,
        meta_version=24,
        flag_columns=("is_secure", "is_httponly"),
        db_path=None,
    ) -> Path:
        path = db_path or tmp_path / "Cookies"
        path.parent.mkdir(parents=True, exist_ok=True)
        secure_col, httponly_col = flag_columns

        conn = sqlite3.connect(path)
        conn.execute(f"""
            CREATE TABLE cookies (
                creation_utc INTEGER NOT NULL DEFAULT 0,
                host_key TEXT NOT NULL,
                name TEXT NOT NULL,
                value TEXT NOT NULL DEFAULT '',
                encrypted_value BLOB NOT NULL DEFAULT X'',
                path TEXT NOT NULL DEFAULT '/',
                expires_utc INTEGER NOT NULL DEFAULT 0,
                {secure_col} INTEGER NOT NULL DEFAULT 0,
                {httponly_col} INTEGER NOT NULL DEFAULT 0,
                samesite INTEGER NOT NULL DEFAULT -1
            )
        """)
        if meta_version is not None:
            conn.execute("CREATE TABLE meta (key LONGVARCHAR NOT NULL UNIQUE PRIMARY KEY, value LONGVARCHAR)")
            conn.execute("INSERT INTO meta (key, value) VALUES ('version', ?)", (str(meta_version),))

        for row in rows:
            conn.execute(
                f"INSERT INTO cookies (host_key, name, value, encrypted_value, path, expires_utc, "
                f"{secure_col}, {httponly_col}, samesite) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    row["host_key"],
                    row["name"],
                    row.get("value", ""),
                    row.get("encrypted_value", b""),
                    row.get("path", "/"),
                    row.get("expires_utc", unix_to_chromium_time(FAR_FUTURE_UNIX)),
                    row.get("secure", 0),
                    row.get("httponly", 0),
                    row.get("samesite", -1),
                ),
            )
        conn.commit()
        conn.close()
        return path

    return _build


@pytest.fixture
def firefox_db_factory(tmp_path: Path):
    """Build Firefox-style moz_cookies databases."""

    def _build(rows, with_samesite=True, db_path=None) -> Path:
        path = db_path or tmp_path / "cookies.sqlite"
        path.parent.mkdir(parents=True, exist_ok=True)
        samesite_col = ", sameSite INTEGER DEFAULT 0" if with_samesite else ""

        conn = sqlite3.connect(path)
        conn.execute(f"""
            CREATE TABLE moz_cookies (
                id INTEGER PRIMARY KEY,
                originAttributes TEXT NOT NULL DEFAULT '',
                name TEXT,
                value TEXT,
                host TEXT,
                path TEXT,
                expiry INTEGER,
                lastAccessed INTEGER,
                creationTime INTEGER,
                isSecure INTEGER,
                isHttpOnly INTEGER
                {samesite_col}
            )
        """)
        for row in rows:
            columns = ["name", "value", "host", "path", "expiry", "isSecure", "isHttpOnly"]
            values = [
                row["name"],
                row.get("value", ""),
                row["host"],
                row.get("path", "/"),
                row.get("expiry", FAR_FUTURE_UNIX),
                row.get("isSecure", 0),
                row.get("isHttpOnly", 0),
            ]
            if with_samesite:
                columns.append("sameSite")
                values.append(row.get("sameSite", 0))
            placeholders = ", ".join("?" for _ in values)
            conn.execute(
                f"INSERT INTO moz_cookies ({', '.join(columns)}) VALUES ({placeholders})", values
            )
        conn.commit()
        conn.close()
        return path

    return _build


def _build_jar_record(
    name="sid",
    value="value",
    url="https://chatgpt.com/",
    path="/",
    flags=0x5,
    expiry_mac=100.0,
    creation_mac=50.0,
) -> bytes:
    header_size = 56
    strings = b""
    offsets = {}
    for key, text in (("url", url), ("name", name), ("path", path), ("value", value)):
        if text is None:
            offsets[key] = 0
            continue
        offsets[key] = header_size + len(strings)
        strings += text.encode("utf-8") + b"\x00"

    size = header_size + len(strings)
    header = struct.pack(
        "<IIIIIIII8sdd",
        size,
        0,
        flags,
        0,
        offsets["url"],
        offsets["name"],
        offsets["path"],
        offsets["value"],
        b"\x00" * 8,
        expiry_mac,
        creation_mac,
    )
    return header + strings


def _build_jar_page(records, magic=0x00000100) -> bytes:
    offset_table_size = 8 + 4 * len(records) + 4
    offsets = []
    cursor = offset_table_size
    for record in records:
        offsets.append(cursor)
        cursor += len(record)
    head = struct.pack(">I", magic) + struct.pack("<I", len(records))
    head += b"".join(struct.pack("<I", offset) for offset in offsets)
    head += b"\x00\x00\x00\x00"
    return head + b"".join(records)


def _build_jar_file(pages) -> bytes:
    data = b"cook" + struct.pack(">I", len(pages))
    data += b"".join(struct.pack(">I", len(page)) for page in pages)
    return data + b"".join(pages)


@pytest.fixture
def jar_builder():
    """Helpers for hand-building Safari Cookies.binarycookies buffers."""
    return SimpleNamespace(
        record=_build_jar_record,
        page=_build_jar_page,
        file=_build_jar_file,
        mac_time=lambda unix_seconds: float(unix_seconds - MAC_EPOCH_OFFSET),
    )


@pytest.fixture
def far_future_unix() -> int:
    return FAR_FUTURE_UNIX


@pytest.fixture
def chromium_time():
    """Convert Unix seconds to Chromium microseconds since 1601."""
    return unix_to_chromium_time

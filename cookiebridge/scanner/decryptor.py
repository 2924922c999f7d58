"""Chromium cookie value decryption (AES-128-CBC, AES-256-GCM, legacy DPAPI)."""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from Crypto.Cipher import AES
from Crypto.Hash import SHA1
from Crypto.Protocol.KDF import PBKDF2
from Crypto.Util.Padding import unpad

logger = logging.getLogger(__name__)

# Version prefixes for encrypted cookie values
V10_PREFIX = b"v10"
V11_PREFIX = b"v11"
V20_PREFIX = b"v20"
VERSION_TAG_LENGTH = 3
_VERSION_TAG = re.compile(rb"^v\d\d$")

# PBKDF2 parameters used by Chromium's os_crypt on macOS and Linux
CBC_SALT = b"saltysalt"
CBC_KEY_LENGTH = 16
CBC_IV = b" " * 16
MAC_KEYCHAIN_ITERATIONS = 1003
LINUX_ITERATIONS = 1

# Hardcoded password used by Linux builds without a keyring
LINUX_V10_PASSWORD = "peanuts"

# AES-GCM layout: nonce (12 bytes) + ciphertext + tag (16 bytes)
GCM_NONCE_LENGTH = 12
GCM_TAG_LENGTH = 16

# Integrity hash prepended to plaintext from meta.version 24 onwards
HASH_PREFIX_LENGTH = 32


class DecryptionError(Exception):
    """Raised when decryption fails."""


def version_tag(encrypted_value: bytes) -> Optional[str]:
    """
    Return the 3-byte version tag ("v10", "v11", "v20", ...) of a value.

    Returns:
        The tag, or None for untagged (legacy/plaintext) values.
    """
    head = bytes(encrypted_value[:VERSION_TAG_LENGTH])
    if _VERSION_TAG.match(head):
        return head.decode("ascii")
    return None


def derive_cbc_key(password: str | bytes, iterations: int) -> bytes:
    """
    Derive the AES-128-CBC key Chromium uses on macOS and Linux.

    PBKDF2-HMAC-SHA1 over the fixed salt "saltysalt", 16-byte output.

    Args:
        password: Safe Storage password (str or bytes).
        iterations: 1003 for keychain-backed macOS, 1 for Linux.

    Returns:
        16-byte key.
    """
    secret = password.encode("utf-8") if isinstance(password, str) else password
    return PBKDF2(secret, CBC_SALT, dkLen=CBC_KEY_LENGTH, count=iterations, hmac_hash_module=SHA1)


def decrypt_cbc(
    encrypted_value: bytes,
    key_candidates: Sequence[bytes],
    strip_hash_prefix: bool = False,
    allow_plaintext_fallback: bool = True,
) -> Optional[str]:
    """
    Decrypt a v10/v11 AES-128-CBC cookie value.

    Format: version tag (3 bytes) + AES-128-CBC ciphertext (IV = 16 spaces).

    Each candidate key is tried in order; the first one that yields valid
    PKCS#7 padding and valid UTF-8 wins.

    Args:
        encrypted_value: The raw encrypted_value blob from the database.
        key_candidates: Keys to try, in order.
        strip_hash_prefix: Drop the 32-byte integrity hash before decoding.
        allow_plaintext_fallback: Decode untagged values as plain UTF-8.

    Returns:
        Decrypted string, or None if no candidate produced valid text.
    """
    data = bytes(encrypted_value)
    if len(data) < VERSION_TAG_LENGTH:
        return None

    if version_tag(data) is None:
        if not allow_plaintext_fallback:
            return None
        return _decode_plaintext(data, strip_hash_prefix=False)

    ciphertext = data[VERSION_TAG_LENGTH:]
    if not ciphertext:
        return ""

    for index, key in enumerate(key_candidates):
        try:
            plaintext = _decrypt_aes_cbc(ciphertext, key)
        except DecryptionError as e:
            logger.debug("CBC candidate %d rejected: %s", index, e)
            continue
        decoded = _decode_plaintext(plaintext, strip_hash_prefix)
        if decoded is not None:
            return decoded

    return None


def decrypt_gcm(
    encrypted_value: bytes,
    key: bytes,
    strip_hash_prefix: bool = False,
) -> Optional[str]:
    """
    Decrypt a v10/v11/v20 AES-256-GCM cookie value.

    Format: version tag (3 bytes) + nonce (12 bytes) + ciphertext + tag (16 bytes)

    Args:
        encrypted_value: The encrypted blob with a version tag.
        key: 32-byte master key unwrapped from Local State.
        strip_hash_prefix: Drop the 32-byte integrity hash before decoding.

    Returns:
        Decrypted string, or None on failure.
    """
    data = bytes(encrypted_value)
    if version_tag(data) is None:
        return None

    payload = data[VERSION_TAG_LENGTH:]
    if len(payload) < GCM_NONCE_LENGTH + GCM_TAG_LENGTH:
        logger.debug("Encrypted value too short for AES-GCM")
        return None

    nonce = payload[:GCM_NONCE_LENGTH]
    ciphertext = payload[GCM_NONCE_LENGTH:-GCM_TAG_LENGTH]
    tag = payload[-GCM_TAG_LENGTH:]

    try:
        cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
        plaintext = cipher.decrypt_and_verify(ciphertext, tag)
    except (ValueError, TypeError) as e:
        # ValueError: tag verification failed or bad key length
        logger.debug("AES-GCM decryption failed: %s", e)
        return None

    return _decode_plaintext(plaintext, strip_hash_prefix)


def decrypt_legacy_dpapi(encrypted_value: bytes, unprotect) -> Optional[str]:
    """
    Decrypt a legacy DPAPI-only encrypted value (pre-v80 Windows).

    Args:
        encrypted_value: The encrypted blob without a version tag.
        unprotect: Callable unwrapping a DPAPI blob, returning bytes or None.

    Returns:
        Decrypted string, or None on failure.
    """
    decrypted = unprotect(bytes(encrypted_value))
    if decrypted is None:
        return None
    return _decode_plaintext(decrypted, strip_hash_prefix=False)


def _decrypt_aes_cbc(ciphertext: bytes, key: bytes) -> bytes:
    try:
        cipher = AES.new(key, AES.MODE_CBC, iv=CBC_IV)
        return unpad(cipher.decrypt(ciphertext), AES.block_size)
    except (ValueError, TypeError) as e:
        # ValueError: bad padding, bad key length or unaligned ciphertext
        raise DecryptionError(str(e)) from e


def _decode_plaintext(value: bytes, strip_hash_prefix: bool) -> Optional[str]:
    data = value[HASH_PREFIX_LENGTH:] if strip_hash_prefix and len(value) >= HASH_PREFIX_LENGTH else value
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return None
    return _strip_leading_control_chars(text)


def _strip_leading_control_chars(value: str) -> str:
    index = 0
    while index < len(value) and ord(value[index]) < 0x20:
        index += 1
    return value[index:]

"""
Chromium secret decryption.

Chromium protects cookie values and saved passwords with AES-256-GCM. The
symmetric key lives base64-encoded in the installation-wide ``Local State``
file under ``os_crypt.encrypted_key``, optionally prefixed with ``DPAPI``.
Encrypted values look like::

    b"v10" | nonce (12 bytes) | ciphertext | GCM tag (16 bytes)

Nothing here raises for bad input: an unusable key or blob yields ``None``
so the caller can still import the row with an empty secret.
"""
import base64
import binascii
import json
import logging
import re
from pathlib import Path
from typing import Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)

DPAPI_PREFIX = b"DPAPI"
V10_TAG = b"v10"
NONCE_SIZE = 12
GCM_TAG_SIZE = 16

# v10 (AES-GCM), v11 (Linux keyring), v20 (app-bound)
_VERSION_TAG = re.compile(rb"^v(10|11|20)")


def unwrap_master_key(manifest_path: Union[str, Path, None]) -> Optional[bytes]:
    """
    Read the master key from a Chromium ``Local State`` file.

    The ``DPAPI`` prefix is stripped; on Windows the remaining bytes are
    still OS-protected and decryption with them will fail (gracefully).

    Returns:
        Key bytes, or None if the manifest is missing or has no usable key
    """
    if not manifest_path:
        return None

    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            state = json.load(f)
    except (OSError, ValueError) as e:
        logger.debug(f"Cannot read master key manifest {manifest_path}: {e}")
        return None

    os_crypt = state.get("os_crypt") if isinstance(state, dict) else None
    encoded = os_crypt.get("encrypted_key") if isinstance(os_crypt, dict) else None
    if not isinstance(encoded, str) or not encoded:
        logger.debug(f"No os_crypt.encrypted_key in {manifest_path}")
        return None

    try:
        key = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.debug(f"Master key in {manifest_path} is not valid base64: {e}")
        return None

    if key.startswith(DPAPI_PREFIX):
        key = key[len(DPAPI_PREFIX):]
    return key or None


def decrypt_value(encrypted: Optional[bytes], key: Optional[bytes]) -> Optional[bytes]:
    """
    Decrypt a Chromium secret.

    Args:
        encrypted: Raw column value
        key: Master key from :func:`unwrap_master_key`

    Returns:
        Plaintext bytes; the input unchanged when it carries no version tag;
        None when it is versioned but cannot be decrypted
    """
    if not encrypted:
        return b""
    encrypted = bytes(encrypted)

    if not _VERSION_TAG.match(encrypted):
        return encrypted

    if not encrypted.startswith(V10_TAG):
        # v11 (Linux keyring) and v20 (app-bound) need OS services we don't call
        logger.debug(f"Unsupported encryption version {encrypted[:3]!r}")
        return None

    if not key:
        return None

    if len(encrypted) < len(V10_TAG) + NONCE_SIZE + GCM_TAG_SIZE:
        logger.debug("Encrypted value too short for AES-GCM")
        return None

    nonce = encrypted[len(V10_TAG):len(V10_TAG) + NONCE_SIZE]
    payload = encrypted[len(V10_TAG) + NONCE_SIZE:]  # ciphertext followed by tag

    try:
        return AESGCM(key).decrypt(nonce, payload, None)
    except (InvalidTag, ValueError) as e:
        # ValueError: key is not 128/192/256 bits (e.g. still DPAPI-wrapped)
        logger.debug(f"AES-GCM decryption failed: {e!r}")
        return None


def encrypt_value(plaintext: bytes, key: bytes, nonce: bytes) -> bytes:
    """Build a ``v10`` blob. Inverse of :func:`decrypt_value`, used for fixtures."""
    return V10_TAG + nonce + AESGCM(key).encrypt(nonce, plaintext, None)

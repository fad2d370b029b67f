"""
Vault Crypto Core — Key derivation, envelope encryption/decryption and detection.

Every sensitive configuration value is stored as a self-describing envelope:

    encrypted:v1:<base64(salt 32B | nonce 12B | tag 16B | ciphertext)>

- Key: PBKDF2-HMAC-SHA256(master password, per-value salt, 100k iterations)
- Cipher: AES-256-GCM with a random 96-bit nonce

Security Note:
    Never log plaintext, ciphertext, the master password or derived keys.
    Keys are derived per value and never cached.
"""
import os
import re
import base64
import binascii
import logging
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..exceptions import (
    InvalidInput,
    NotEncrypted,
    AuthenticationFailed,
    UnsupportedFormatVersion,
)

logger = logging.getLogger("firefly_importer.vault")

KEY_LENGTH = 32  # AES-256
SALT_SIZE = 32  # 256-bit salt
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # GCM tag
PBKDF2_ITERATIONS = 100_000

FORMAT_VERSION = "v1"
ENVELOPE_MARKER = "encrypted:"
ENCRYPTED_PREFIX = f"{ENVELOPE_MARKER}{FORMAT_VERSION}:"

_ENVELOPE_PATTERN = re.compile(r"^encrypted:(v\d+):")
_HEADER_SIZE = SALT_SIZE + NONCE_SIZE + TAG_SIZE
# Stand-in salt for malformed payloads, so they still pay for key derivation.
_NULL_SALT = bytes(SALT_SIZE)


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

def is_encrypted(value: Any) -> bool:
    """Return True if value carries the current envelope prefix.

    Pure prefix check, no cryptographic work. Non-strings are never encrypted.
    """
    return isinstance(value, str) and value.startswith(ENCRYPTED_PREFIX)


def is_envelope(value: Any) -> bool:
    """Return True if value looks like an envelope of any format version."""
    return isinstance(value, str) and _ENVELOPE_PATTERN.match(value) is not None


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def _utf8(value: str, message: str) -> bytes:
    """Encode value as UTF-8, rejecting lone surrogates and the like."""
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidInput(message) from None


def derive_key(secret: str, salt: bytes) -> bytes:
    """Derive a 32-byte encryption key using PBKDF2-HMAC-SHA256.

    Args:
        secret: Master password.
        salt: Per-value random salt.

    Returns:
        32-byte derived key.

    Raises:
        InvalidInput: If secret is not valid UTF-8 text.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(_utf8(secret, "Master password must be valid UTF-8 text"))


# ---------------------------------------------------------------------------
# Envelope encryption
# ---------------------------------------------------------------------------

def encrypt(plaintext: str, secret: str) -> str:
    """Encrypt a string value into a versioned envelope.

    A fresh salt and nonce are drawn on every call, so encrypting the same
    value twice yields two unlinkable envelopes.

    Args:
        plaintext: Value to protect.
        secret: Master password.

    Returns:
        Envelope string starting with ``encrypted:v1:``.

    Raises:
        InvalidInput: If plaintext or secret is empty or not valid UTF-8.
    """
    if not isinstance(plaintext, str) or not plaintext:
        raise InvalidInput("Plaintext and master password are required")
    if not isinstance(secret, str) or not secret:
        raise InvalidInput("Plaintext and master password are required")
    data = _utf8(plaintext, "Plaintext must be valid UTF-8 text")
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    key = derive_key(secret, salt)
    sealed = AESGCM(key).encrypt(nonce, data, None)
    # AESGCM appends the tag; the envelope stores it ahead of the ciphertext.
    ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    payload = salt + nonce + tag + ciphertext
    return ENCRYPTED_PREFIX + base64.b64encode(payload).decode("ascii")


def _unpack(data: str) -> tuple[bytes, bytes, bytes] | None:
    """Split the base64 payload into (salt, nonce, ciphertext+tag).

    Returns None if the payload is not valid base64 or is too short.
    """
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return None
    if len(raw) < _HEADER_SIZE:
        return None
    salt = raw[:SALT_SIZE]
    nonce = raw[SALT_SIZE:SALT_SIZE + NONCE_SIZE]
    tag = raw[SALT_SIZE + NONCE_SIZE:_HEADER_SIZE]
    ciphertext = raw[_HEADER_SIZE:]
    return salt, nonce, ciphertext + tag


def decrypt(envelope: str, secret: str) -> str:
    """Decrypt a versioned envelope back to its plaintext.

    Args:
        envelope: Value produced by :func:`encrypt`.
        secret: Master password.

    Returns:
        Decrypted plaintext.

    Raises:
        InvalidInput: If secret is empty or not valid UTF-8.
        NotEncrypted: If envelope has no envelope prefix.
        UnsupportedFormatVersion: If the envelope version is not ``v1``.
        AuthenticationFailed: On a wrong secret or any corruption.
    """
    if not isinstance(secret, str) or not secret:
        raise InvalidInput("Encrypted text and master password are required")
    _utf8(secret, "Master password must be valid UTF-8 text")
    match = _ENVELOPE_PATTERN.match(envelope) if isinstance(envelope, str) else None
    if match is None:
        raise NotEncrypted("Text is not in encrypted format")
    if match.group(1) != FORMAT_VERSION:
        raise UnsupportedFormatVersion(match.group(1))

    parts = _unpack(envelope[len(ENCRYPTED_PREFIX):])
    salt = parts[0] if parts else _NULL_SALT
    key = derive_key(secret, salt)
    if parts is None:
        raise AuthenticationFailed()
    _, nonce, sealed = parts
    try:
        return AESGCM(key).decrypt(nonce, sealed, None).decode("utf-8")
    except (InvalidTag, UnicodeDecodeError):
        raise AuthenticationFailed() from None

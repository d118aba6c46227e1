"""
DATA ENCRYPTION
===============
AES-256-GCM helpers for sensitive strings, plus hashing and storage names.

FLOW:
- Encryptor.encrypt() turns text into an "enc::" token.
- Encryptor.decrypt() turns a token back into text.
- generate_secure_filename() builds per-user storage paths for uploads.

WHY:
- Protects data if the database is compromised.

HOW:
- AES-256-GCM with a random nonce per value, so equal inputs never
  produce equal tokens. Failures surface as generic errors; the cause only
  goes to the log.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import os
import secrets
import time

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from Security.key_management import EncryptionKey
from Security.metrics import increment_crypto_failure


NONCE_SIZE = 12
TOKEN_PREFIX = "enc::"

logger = logging.getLogger("security.encryption")


class EncryptionError(Exception):
    pass


class DecryptionError(Exception):
    pass


def hash_text(text: str | bytes) -> str:
    """One-way SHA-256 digest for equality checks without keeping plaintext."""
    if isinstance(text, str):
        text = text.encode("utf-8")
    return hashlib.sha256(text).hexdigest()


class Encryptor:
    def __init__(self, key: EncryptionKey):
        self._aesgcm = AESGCM(key.material)

    def encrypt(self, text: str) -> str:
        try:
            nonce = os.urandom(NONCE_SIZE)
            ciphertext = self._aesgcm.encrypt(nonce, text.encode("utf-8"), None)
            token = base64.urlsafe_b64encode(nonce + ciphertext).decode("ascii")
        except Exception as exc:
            logger.error("Encryption error: %s", exc.__class__.__name__)
            increment_crypto_failure("encrypt")
            raise EncryptionError("Failed to encrypt data") from None
        return f"{TOKEN_PREFIX}{token}"

    def decrypt(self, token: str) -> str:
        try:
            return self._decrypt(token)
        except (ValueError, TypeError, AttributeError, binascii.Error, InvalidTag, UnicodeDecodeError) as exc:
            logger.error("Decryption error: %s", exc.__class__.__name__)
            increment_crypto_failure("decrypt")
            raise DecryptionError("Failed to decrypt data") from None

    def _decrypt(self, token: str) -> str:
        if not token.startswith(TOKEN_PREFIX):
            raise ValueError("missing token prefix")
        raw = base64.urlsafe_b64decode(token[len(TOKEN_PREFIX):].encode("ascii"))
        if len(raw) <= NONCE_SIZE:
            raise ValueError("token too short")
        nonce, ciphertext = raw[:NONCE_SIZE], raw[NONCE_SIZE:]
        plaintext = self._aesgcm.decrypt(nonce, ciphertext, None)
        return plaintext.decode("utf-8")

    def hash(self, text: str) -> str:
        return hash_text(text)

    def encrypt_optional(self, value: str | None) -> str | None:
        if value is None:
            return None
        return self.encrypt(value)

    def decrypt_optional(self, token: str | None) -> str | None:
        if token is None:
            return None
        return self.decrypt(token)


def generate_secure_filename(original_name: str, user_id: str) -> str:
    """Build ``{user_id}/{millis}-{random hex}.{ext}``; no collision check."""
    timestamp = int(time.time() * 1000)
    random_hex = secrets.token_hex(16)
    name = f"{user_id}/{timestamp}-{random_hex}"
    _, dot, extension = (original_name or "").rpartition(".")
    if dot and extension.isalnum():
        name = f"{name}.{extension}"
    return name

"""
SECURE KEY MANAGEMENT
=====================
Load the process-wide encryption key from environment and validate it.
"""

# FLOW:
# - load_encryption_key() reads ENCRYPTION_KEY once at startup.
# - EncryptionKey validates length on construction.
# WHY:
# - A malformed key must stop the process before any request is served.
# HOW:
# - Raises KeyConfigurationError when the key is missing or not 32 chars.

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass, field


KEY_LENGTH = 32
PLACEHOLDERS = {"CHANGE_ME_TO_A_32_CHARACTER_KEY!"}


class KeyConfigurationError(RuntimeError):
    pass


@dataclass(frozen=True)
class EncryptionKey:
    value: str = field(repr=False)

    def __post_init__(self):
        if not isinstance(self.value, str) or len(self.value) != KEY_LENGTH:
            raise KeyConfigurationError(f"ENCRYPTION_KEY must be exactly {KEY_LENGTH} characters")
        if not self.value.isascii():
            raise KeyConfigurationError("ENCRYPTION_KEY must contain ASCII characters only")
        if self.value in PLACEHOLDERS:
            raise KeyConfigurationError("ENCRYPTION_KEY is still a placeholder value")

    @property
    def material(self) -> bytes:
        return self.value.encode("ascii")


def load_encryption_key(env_name: str = "ENCRYPTION_KEY") -> EncryptionKey:
    raw = os.getenv(env_name)
    if not raw:
        raise KeyConfigurationError(f"{env_name} is not set")
    return EncryptionKey(raw)


def generate_encryption_key() -> str:
    """Return a fresh 32-character key suitable for ENCRYPTION_KEY."""
    # 24 random bytes encode to exactly 32 urlsafe characters
    return secrets.token_urlsafe(24)


def main() -> None:
    print(generate_encryption_key())


if __name__ == "__main__":
    main()

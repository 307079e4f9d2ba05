"""
Password-based key derivation.

PBKDF2-HMAC-SHA256 at a fixed, deliberately slow iteration count. The count
is not stored in the envelope: writer and reader agree on it out of band,
so changing ``ITERATIONS`` makes existing vaults unreadable.
"""

from __future__ import annotations

import os

from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import KDFParameterError
from .memory import encode_password

ITERATIONS = 200_000
SALT_SIZE = 16      # 128-bit salt
KEY_LENGTH = 32     # AES-256


class Pbkdf2KDF:
    """
    PBKDF2 with HMAC-SHA256 producing 256-bit keys.

    The default iteration count is the production value; a lower count is
    only useful for tests.
    """

    name = "PBKDF2-HMAC-SHA256"
    salt_size = SALT_SIZE

    def __init__(self, iterations: int = ITERATIONS, key_length: int = KEY_LENGTH):
        if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 1:
            raise KDFParameterError(f"PBKDF2 iterations must be a positive int, got {iterations!r}")
        if key_length not in (16, 24, 32):
            raise KDFParameterError(f"Unsupported key length {key_length} (expected 16, 24 or 32)")
        self.iterations = iterations
        self.key_length = key_length

    def derive(self, password: bytes | bytearray, salt: bytes) -> bytearray:
        """Derive a key from the encoded password and salt.

        Returns a mutable bytearray so callers can zero it after use.
        """
        kdf = PBKDF2HMAC(
            algorithm=SHA256(),
            length=self.key_length,
            salt=bytes(salt),
            iterations=self.iterations,
        )
        return bytearray(kdf.derive(bytes(password)))

    def generate_salt(self) -> bytes:
        return os.urandom(self.salt_size)

    def __repr__(self) -> str:
        return f"Pbkdf2KDF(iterations={self.iterations})"


def derive_key(password: str, salt: bytes, iterations: int = ITERATIONS) -> bytearray:
    """Derive the AES-256 key for *password* and *salt*.

    Deterministic: the same three inputs always give the same key.
    """
    return Pbkdf2KDF(iterations=iterations).derive(encode_password(password), salt)

"""
AES-256-GCM wrapper.

The envelope carries no header, so no associated data is bound; the
16-byte tag is appended to the ciphertext by the library.
"""

from __future__ import annotations

import os

from cryptography.hazmat.primitives.ciphers.aead import AESGCM


class AES256GCM:
    """AES-256 in Galois/Counter Mode with a 96-bit random nonce."""

    name = "AES-256-GCM"
    key_size = 32
    nonce_size = 12
    tag_size = 16

    def encrypt(self, key: bytes | bytearray, plaintext: bytes) -> tuple[bytes, bytes]:
        """Encrypt under a fresh nonce, returning (nonce, ciphertext_with_tag)."""
        nonce = os.urandom(self.nonce_size)
        return nonce, self.encrypt_with_nonce(key, nonce, plaintext)

    def encrypt_with_nonce(self, key: bytes | bytearray, nonce: bytes, plaintext: bytes) -> bytes:
        # Never call twice with the same key and nonce.
        return AESGCM(bytes(key)).encrypt(nonce, plaintext, None)

    def decrypt(self, key: bytes | bytearray, nonce: bytes, ciphertext: bytes) -> bytes:
        """Decrypt and verify. Raises ``cryptography.exceptions.InvalidTag``."""
        return AESGCM(bytes(key)).decrypt(nonce, ciphertext, None)

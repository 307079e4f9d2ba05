"""
Envelope codec: turns {password, payload} into {salt, iv, ciphertext} and back.

Every encryption draws a new salt and a new iv, so each save is an
independent artifact and nonce reuse cannot happen. The price is one key
derivation per save or unlock, never per keystroke.

Decryption failures are reported as ``AuthFailure`` whatever the cause:
a wrong password and a tampered artifact look the same to AES-GCM, and no
partial plaintext is ever returned.
"""

from __future__ import annotations

import logging

from cryptography.exceptions import InvalidTag

from .ciphers import AES256GCM
from .errors import AuthFailure
from .formats import Envelope, VaultPayload, parse_payload, serialize_payload
from .kdf import Pbkdf2KDF
from .memory import Credential, encode_password, secure_zero

logger = logging.getLogger("vaultpad.codec")


class EnvelopeCodec:
    """
    Password-based authenticated encryption of vault payloads.

    Parameters:
        kdf: key derivation (default: PBKDF2-HMAC-SHA256, 200,000 iterations)
        cipher: AEAD cipher (default: AES-256-GCM)
    """

    def __init__(self, kdf: Pbkdf2KDF | None = None, cipher: AES256GCM | None = None):
        self.kdf = kdf or Pbkdf2KDF()
        self.cipher = cipher or AES256GCM()

    @property
    def description(self) -> str:
        return f"{self.cipher.name} | {self.kdf.name} ({self.kdf.iterations} iterations)"

    def derive_key(self, password: str | bytes | bytearray, salt: bytes) -> bytearray:
        return self.kdf.derive(encode_password(password), salt)

    # ------- ENCRYPT -------

    def encrypt(self, payload: VaultPayload, password: str) -> Envelope:
        """Encrypt *payload* under *password* with a fresh salt and iv."""
        password_bytes = bytearray(encode_password(password))
        key = bytearray()
        try:
            envelope, key = self._encrypt(payload, password_bytes)
            return envelope
        finally:
            secure_zero(key)
            secure_zero(password_bytes)

    def seal(self, payload: VaultPayload, credential: Credential) -> Envelope:
        """Encrypt under the credential's password and rebind its key to the new salt."""
        envelope, key = self._encrypt(payload, credential.password)
        credential.bind(key, envelope.salt)
        return envelope

    def _encrypt(self, payload: VaultPayload, password: bytes | bytearray) -> tuple[Envelope, bytearray]:
        salt = self.kdf.generate_salt()
        plaintext = serialize_payload(payload)
        key = self.kdf.derive(password, salt)
        try:
            iv, data = self.cipher.encrypt(key, plaintext)
        except Exception:
            secure_zero(key)
            raise
        logger.debug("Encrypted %d payload bytes (%s)", len(plaintext), self.description)
        return Envelope(salt=salt, iv=iv, data=data), key

    # ------- DECRYPT -------

    def decrypt(self, envelope: Envelope, password: str) -> VaultPayload:
        """
        Decrypt *envelope* with *password*.

        Raises:
            AuthFailure: the tag did not verify (wrong password or tampering)
            FormatError: the tag verified but the payload lacks a field
        """
        payload, credential = self.unseal(envelope, password)
        credential.wipe()
        return payload

    def unseal(self, envelope: Envelope, password: str) -> tuple[VaultPayload, Credential]:
        """Decrypt *envelope* and keep the verified password and key resident."""
        credential = Credential(password)
        key = self.kdf.derive(credential.password, envelope.salt)
        try:
            plaintext = self.cipher.decrypt(key, envelope.iv, envelope.data)
        except InvalidTag:
            secure_zero(key)
            credential.wipe()
            logger.debug("Envelope authentication failed")
            raise AuthFailure() from None

        try:
            payload = parse_payload(plaintext)
        except Exception:
            secure_zero(key)
            credential.wipe()
            raise
        credential.bind(key, envelope.salt)
        return payload, credential

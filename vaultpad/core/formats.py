"""
Envelope and payload serialization.

Persisted envelope (the only durable form of secret data)::

    {"salt": <base64, 16 bytes>, "iv": <base64, 12 bytes>, "data": <base64>}

``data`` is the AES-256-GCM ciphertext with the 16-byte tag appended.

Decrypted payload (memory only, never written in the clear)::

    {"content": <string>, "vaultId": <string>}

Key order is not significant; both payload fields are required.
"""

from __future__ import annotations

import base64
import binascii
import json
import uuid
from dataclasses import dataclass, replace

from .errors import FormatError

SALT_SIZE = 16
IV_SIZE = 12
TAG_SIZE = 16

ENVELOPE_FIELDS = ("salt", "iv", "data")


def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _b64decode(field: str, value: object) -> bytes:
    if not isinstance(value, str):
        raise FormatError(f"Envelope field '{field}' must be a base64 string")
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise FormatError(f"Envelope field '{field}' is not valid base64") from exc


@dataclass(frozen=True)
class Envelope:
    """Salt, iv and ciphertext of one save. Never modified after creation."""

    salt: bytes
    iv: bytes
    data: bytes

    def __post_init__(self) -> None:
        if len(self.salt) != SALT_SIZE:
            raise FormatError(f"Salt must be {SALT_SIZE} bytes, got {len(self.salt)}")
        if len(self.iv) != IV_SIZE:
            raise FormatError(f"IV must be {IV_SIZE} bytes, got {len(self.iv)}")
        if len(self.data) < TAG_SIZE:
            raise FormatError(
                f"Ciphertext too short ({len(self.data)} bytes, need >= {TAG_SIZE})"
            )

    def to_dict(self) -> dict[str, str]:
        return {
            "salt": _b64encode(self.salt),
            "iv": _b64encode(self.iv),
            "data": _b64encode(self.data),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, obj: object) -> Envelope:
        if not isinstance(obj, dict):
            raise FormatError("Envelope must be a JSON object")
        missing = [f for f in ENVELOPE_FIELDS if f not in obj]
        if missing:
            raise FormatError(f"Envelope is missing field(s): {', '.join(missing)}")
        return cls(
            salt=_b64decode("salt", obj["salt"]),
            iv=_b64decode("iv", obj["iv"]),
            data=_b64decode("data", obj["data"]),
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> Envelope:
        try:
            obj = json.loads(text)
        except ValueError as exc:
            raise FormatError("Envelope is not valid JSON") from exc
        return cls.from_dict(obj)

    def __repr__(self) -> str:
        return f"Envelope(<{len(self.data)} encrypted bytes>)"


@dataclass(frozen=True)
class VaultPayload:
    """Decrypted vault contents. ``vault_id`` never changes for a vault."""

    vault_id: str
    content: str = ""

    @classmethod
    def create(cls, content: str = "") -> VaultPayload:
        """A brand-new vault with a freshly generated identifier."""
        return cls(vault_id=str(uuid.uuid4()), content=content)

    def with_content(self, content: str) -> VaultPayload:
        return replace(self, content=content)

    def __repr__(self) -> str:
        return f"VaultPayload(vault_id={self.vault_id!r}, content=<{len(self.content)} chars>)"


def serialize_payload(payload: VaultPayload) -> bytes:
    """Canonical JSON form of *payload*.

    Non-ASCII characters are written as \\u escapes, the way JSON.stringify
    writes lone surrogates, so any Python string can be stored.
    """
    doc = {"content": payload.content, "vaultId": payload.vault_id}
    return json.dumps(doc, separators=(",", ":")).encode("ascii")


def parse_payload(raw: bytes) -> VaultPayload:
    """Parse decrypted payload bytes. Raises FormatError if a field is missing."""
    try:
        doc = json.loads(raw.decode("utf-8"))
    except ValueError as exc:
        raise FormatError("Decrypted payload is not valid UTF-8 JSON") from exc
    if not isinstance(doc, dict):
        raise FormatError("Decrypted payload must be a JSON object")
    content = doc.get("content")
    vault_id = doc.get("vaultId")
    if not isinstance(content, str):
        raise FormatError("Decrypted payload has no 'content' string")
    if not isinstance(vault_id, str):
        raise FormatError("Decrypted payload has no 'vaultId' string")
    return VaultPayload(vault_id=vault_id, content=content)

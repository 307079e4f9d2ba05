"""
Handling of secrets that stay resident while a vault is unlocked.

Best effort only: Python strings cannot be wiped, so secrets are copied into
bytearrays as early as possible. Those buffers are mlocked where libc allows
it, so they stay out of swap, and are overwritten when the vault locks.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import sys

_libc = None
_libc_tried = False


def _get_libc():
    """Load libc once; returns None where mlock is unavailable."""
    global _libc, _libc_tried
    if _libc_tried:
        return _libc
    _libc_tried = True

    if sys.platform == "win32":
        return None
    name = ctypes.util.find_library("c")
    if not name:
        return None
    try:
        libc = ctypes.CDLL(name, use_errno=True)
        for fn in (libc.mlock, libc.munlock):
            fn.argtypes = [ctypes.c_void_p, ctypes.c_size_t]
            fn.restype = ctypes.c_int
    except (OSError, AttributeError):
        return None
    _libc = libc
    return _libc


def _page_call(fn_name: str, buf: bytearray) -> bool:
    libc = _get_libc()
    if libc is None or not buf:
        return False
    try:
        addr = ctypes.addressof((ctypes.c_char * len(buf)).from_buffer(buf))
        return getattr(libc, fn_name)(addr, len(buf)) == 0
    except (ValueError, TypeError):
        return False


def mlock_buffer(buf: bytearray) -> bool:
    """Pin *buf* in RAM. Returns False when the platform refuses (non-fatal)."""
    return _page_call("mlock", buf)


def munlock_buffer(buf: bytearray) -> bool:
    return _page_call("munlock", buf)


def secure_zero(buf: bytearray) -> None:
    """Overwrite a bytearray with zeros."""
    for i in range(len(buf)):
        buf[i] = 0


def encode_password(password: str | bytes | bytearray) -> bytes | bytearray:
    """UTF-8 bytes of *password*. Lone surrogates (from undecodable argv or
    stdin bytes) are kept as their surrogate code units."""
    if isinstance(password, str):
        return password.encode("utf-8", "surrogatepass")
    return password


class Credential:
    """
    The master password and the key derived from it for the current envelope.

    Owned by exactly one unlocked session. Saves always re-derive from the
    password under a fresh salt; the key is held only so the derived key for
    the open envelope stays resident while the vault is unlocked. Both
    buffers are zeroed by ``wipe()``; afterwards the credential is unusable.
    """

    __slots__ = ("_password", "_key", "_salt", "_wiped")

    def __init__(self, password: str | bytes | bytearray):
        self._password = bytearray(encode_password(password))
        self._key = bytearray()
        self._salt = b""
        mlock_buffer(self._password)
        self._wiped = False

    @property
    def password(self) -> bytearray:
        self._check()
        return self._password

    @property
    def key(self) -> bytearray:
        self._check()
        return self._key

    @property
    def salt(self) -> bytes:
        """Salt the resident key was derived with (empty until bound)."""
        return self._salt

    @property
    def wiped(self) -> bool:
        return self._wiped

    def bind(self, key: bytearray, salt: bytes) -> None:
        """Replace the resident key with *key* derived for *salt*.

        Takes ownership of *key*; the previous key is zeroed.
        """
        self._check()
        self._drop_key()
        self._key = key
        self._salt = bytes(salt)
        mlock_buffer(self._key)

    def wipe(self) -> None:
        if self._wiped:
            return
        self._drop_key()
        secure_zero(self._password)
        munlock_buffer(self._password)
        self._wiped = True

    def _drop_key(self) -> None:
        if self._key:
            secure_zero(self._key)
            munlock_buffer(self._key)
        self._key = bytearray()
        self._salt = b""

    def _check(self) -> None:
        if self._wiped:
            raise ValueError("Credential has been wiped")

    def __repr__(self) -> str:
        state = "wiped" if self._wiped else "<redacted>"
        return f"Credential({state})"

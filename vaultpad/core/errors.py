"""Structured error types for vaultpad.

Value-shaped errors also inherit ``ValueError`` so callers that only know
about the built-in exception keep working.

Hierarchy::

    VaultError (Exception)
    +-- FormatError          (ValueError) malformed artifact, envelope or payload
    +-- KDFParameterError    (ValueError) key-derivation parameter out of bounds
    +-- ValidationError      (ValueError) empty or mismatched new password
    +-- AuthFailure          authenticated decryption did not verify
    +-- PersistenceFailure   the document could not be written
    +-- StateError           (RuntimeError) operation illegal in this state
    +-- OperationSuperseded  async result discarded after lock/close
"""

from __future__ import annotations

INVALID_PASSWORD = "Invalid password"


class VaultError(Exception):
    """Base class for all vaultpad errors."""


class FormatError(VaultError, ValueError):
    """The stored artifact or decrypted payload is malformed."""


class KDFParameterError(VaultError, ValueError):
    """Key-derivation parameter out of the allowed range."""


class ValidationError(VaultError, ValueError):
    """A new password was rejected before any envelope was produced.

    ``field`` names the input the message belongs to (``"password"`` or
    ``"confirm"``) so a form can show it next to the right box.
    """

    def __init__(self, message: str, field: str = "password") -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class AuthFailure(VaultError):
    """Wrong password or tampered data. The two cannot be told apart."""

    def __init__(self, message: str = INVALID_PASSWORD) -> None:
        super().__init__(message)


class PersistenceFailure(VaultError):
    """The document I/O layer failed to write the artifact."""


class StateError(VaultError, RuntimeError):
    """Operation not permitted in the session's current lifecycle state."""


class OperationSuperseded(VaultError):
    """An in-flight operation finished after its session was locked or closed."""

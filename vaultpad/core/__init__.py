"""Core vault modules."""

from .errors import (  # noqa: F401
    AuthFailure,
    FormatError,
    KDFParameterError,
    OperationSuperseded,
    PersistenceFailure,
    StateError,
    ValidationError,
    VaultError,
)

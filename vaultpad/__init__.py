"""vaultpad: a password-protected single-document notepad."""

__version__ = "1.0.0"
